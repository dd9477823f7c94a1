"""Domain layer: pure Python, no framework dependencies."""

from clipmind.domain.models import (
    AIActionCandidate,
    AIResult,
    ActionSource,
    ActionSuggestion,
    ContentFragment,
    ContentType,
    DispatchOutcome,
    PopupMode,
    PopupSession,
    PopupSnapshot,
)
from clipmind.domain.errors import ActionExecutionError, AIEngineError, ClipMindError
from clipmind.domain.rules import rules_for
from clipmind.domain.merger import merge_suggestions
from clipmind.domain.dispatcher import ActionDispatcher
from clipmind.domain.popup import PopupController

__all__ = [
    "AIActionCandidate",
    "AIResult",
    "ActionSource",
    "ActionSuggestion",
    "ContentFragment",
    "ContentType",
    "DispatchOutcome",
    "PopupMode",
    "PopupSession",
    "PopupSnapshot",
    "ActionExecutionError",
    "AIEngineError",
    "ClipMindError",
    "rules_for",
    "merge_suggestions",
    "ActionDispatcher",
    "PopupController",
]
