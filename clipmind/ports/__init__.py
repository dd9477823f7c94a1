"""Port interfaces (Hexagonal Architecture)."""

from clipmind.ports.inbound import KeyEvent, PointerEvent
from clipmind.ports.outbound import (
    AIProcessingPort,
    ActionRunnerPort,
    ClipboardPort,
    SuggestionPort,
    WindowPort,
)

__all__ = [
    "KeyEvent",
    "PointerEvent",
    "AIProcessingPort",
    "ActionRunnerPort",
    "ClipboardPort",
    "SuggestionPort",
    "WindowPort",
]
