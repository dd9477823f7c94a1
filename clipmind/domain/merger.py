"""Suggestion merging: rule actions plus AI candidates, deduplicated.

Pure Python, no framework dependencies.
"""

from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from clipmind.domain.models import AIActionCandidate, ActionSource, ActionSuggestion

DEFAULT_CAPACITY = 6


def _coerce_candidate(candidate: Any) -> Optional[AIActionCandidate]:
    """Accept AIActionCandidate or a wire dict; None for anything malformed."""
    if isinstance(candidate, AIActionCandidate):
        if isinstance(candidate.id, str) and isinstance(candidate.label, str) \
                and candidate.id and candidate.label:
            return candidate
        return None
    if isinstance(candidate, Mapping):
        return AIActionCandidate.from_dict(candidate)
    return None


def renumber(actions: Iterable[ActionSuggestion]) -> List[ActionSuggestion]:
    """Reassign hotkeys 1..N in list order."""
    return [replace(action, hotkey=str(i)) for i, action in enumerate(actions, start=1)]


def is_duplicate(candidate: AIActionCandidate, included: Sequence[ActionSuggestion]) -> bool:
    """Same id, or label contained in an included label (case-sensitive).

    The substring rule is loose on purpose: "Search" is dropped next to
    "Search Address".
    """
    return any(
        existing.id == candidate.id or candidate.label in existing.label
        for existing in included
    )


def merge_suggestions(
    base: Sequence[ActionSuggestion],
    ai_candidates: Iterable[Any],
    capacity: int = DEFAULT_CAPACITY,
) -> List[ActionSuggestion]:
    """Combine rule actions with AI candidates into one hotkey-numbered list.

    Base actions are always kept in full and in order. Candidates are
    appended in arrival order until ``capacity`` is reached; duplicates
    and malformed entries are skipped. Never raises.
    """
    merged = renumber(base)
    for raw in ai_candidates or ():
        if len(merged) >= capacity:
            break
        candidate = _coerce_candidate(raw)
        if candidate is None:
            continue
        if is_duplicate(candidate, merged):
            continue
        merged.append(ActionSuggestion(
            id=candidate.id,
            label=candidate.label,
            hotkey=str(len(merged) + 1),
            source=ActionSource.AI,
            reason=candidate.reason,
        ))
    return merged
