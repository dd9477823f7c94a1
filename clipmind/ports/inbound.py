"""Inbound port: toolkit-agnostic UI events."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class KeyEvent:
    """Key press as captured at the popup's topmost scope."""

    key: str
    ctrl: bool = False
    meta: bool = False

    @property
    def has_modifier(self) -> bool:
        return self.ctrl or self.meta


@dataclass
class PointerEvent:
    """Pointer click; ``action_id`` is set when an action button was hit."""

    action_id: Optional[str] = None
