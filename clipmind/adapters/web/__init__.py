"""Web shell: FastAPI routes driving the popup."""

from clipmind.adapters.web.manager import ManagedWindow, PopupManager, action_count_hint

__all__ = [
    "ManagedWindow",
    "PopupManager",
    "action_count_hint",
]
