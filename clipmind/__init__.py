"""ClipMind: smart action popup for clipboard content."""

from clipmind.config import CONFIG, AppConfig, PopupConfig, AIConfig, ServerConfig
from clipmind.domain import (
    ActionDispatcher,
    ActionSuggestion,
    AIResult,
    ContentFragment,
    ContentType,
    PopupController,
    PopupMode,
    merge_suggestions,
    rules_for,
)
from clipmind.ports import KeyEvent, PointerEvent

__all__ = [
    "CONFIG",
    "AppConfig",
    "PopupConfig",
    "AIConfig",
    "ServerConfig",
    "ActionDispatcher",
    "ActionSuggestion",
    "AIResult",
    "ContentFragment",
    "ContentType",
    "PopupController",
    "PopupMode",
    "merge_suggestions",
    "rules_for",
    "KeyEvent",
    "PointerEvent",
]
