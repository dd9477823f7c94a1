"""Rule action table: deterministic actions per content type.

Pure Python, no framework dependencies.
"""

from typing import Dict, List, Tuple

from clipmind.domain.models import ActionSource, ActionSuggestion, ContentType

# content type -> ordered (action_id, label)
RULE_TABLE: Dict[ContentType, Tuple[Tuple[str, str], ...]] = {
    ContentType.URL: (("open_browser", "Open URL"),),
    ContentType.CODE: (("open_vscode", "Open in VSCode"),),
    ContentType.EMAIL: (("compose_email", "Compose Email"),),
    ContentType.ADDRESS: (
        ("open_maps", "Open in Maps"),
        ("search", "Search Address"),
    ),
    ContentType.PLAIN_TEXT: (("search", "Google Search"),),
    ContentType.FINANCIAL: (("search", "Search Finance Info"),),
}

DEFAULT_RULES: Tuple[Tuple[str, str], ...] = (("search", "Search"),)


def rules_for(content_type) -> List[ActionSuggestion]:
    """Return the rule actions for a content type, hotkeys numbered from 1.

    Accepts a ContentType or its raw name; types without an entry
    (including unrecognized names) get the default search action.
    """
    if isinstance(content_type, ContentType):
        entries = RULE_TABLE.get(content_type, DEFAULT_RULES)
    else:
        try:
            entries = RULE_TABLE.get(ContentType(str(content_type)), DEFAULT_RULES)
        except ValueError:
            entries = DEFAULT_RULES
    return [
        ActionSuggestion(id=action_id, label=label, hotkey=str(i), source=ActionSource.RULE)
        for i, (action_id, label) in enumerate(entries, start=1)
    ]
