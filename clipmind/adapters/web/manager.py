"""Popup manager: owns the single live popup and its window adapter."""

import sys
import uuid
from typing import Optional

from clipmind.adapters.actions import SystemActionRunner
from clipmind.adapters.ai import AIEngine
from clipmind.adapters.clipboard import PyperclipClipboard
from clipmind.config import AppConfig, PopupConfig
from clipmind.domain.dispatcher import ActionDispatcher
from clipmind.domain.models import ContentFragment, ContentType
from clipmind.domain.popup import PopupController
from clipmind.ports.outbound import (
    AIProcessingPort,
    ActionRunnerPort,
    ClipboardPort,
    SuggestionPort,
)


def _log(msg: str):
    print(msg, file=sys.stderr)


def action_count_hint(content: str, content_type) -> int:
    """Expected number of actions, used by the shell to size the window."""
    content_type = ContentType.parse(content_type)
    if content_type == ContentType.CODE:
        return 5
    if content_type == ContentType.URL:
        return 4
    if content_type == ContentType.PLAIN_TEXT:
        return 6 if len(content) > 100 else 4
    return 3


class ManagedWindow:
    """WindowPort for a popup whose view lives in a remote client."""

    def __init__(self, manager: "PopupManager", popup_id: str):
        self._manager = manager
        self.popup_id = popup_id

    async def request_close(self) -> None:
        self._manager.release(self.popup_id)

    async def destroy(self) -> None:
        self._manager.release(self.popup_id)


class PopupManager:
    """At most one popup is live; opening a new one closes the previous one."""

    def __init__(
        self,
        suggestions: SuggestionPort,
        ai: AIProcessingPort,
        runner: ActionRunnerPort,
        clipboard: ClipboardPort,
        config: Optional[PopupConfig] = None,
    ):
        self._suggestions = suggestions
        self._ai = ai
        self._runner = runner
        self._clipboard = clipboard
        self._config = config or PopupConfig()
        self._popup_id: Optional[str] = None
        self._controller: Optional[PopupController] = None

    @classmethod
    def from_config(cls, config: AppConfig) -> "PopupManager":
        engine = AIEngine(config.ai)
        return cls(
            suggestions=engine,
            ai=engine,
            runner=SystemActionRunner(),
            clipboard=PyperclipClipboard(),
            config=config.popup,
        )

    @property
    def engine(self):
        return self._ai

    @property
    def current(self) -> Optional[PopupController]:
        return self._controller

    @property
    def current_id(self) -> Optional[str]:
        return self._popup_id

    async def open(self, content: str, content_type: str) -> PopupController:
        """Close any live popup, then create and start a new one."""
        if self._controller is not None:
            _log(f"[manager] closing existing popup {self._popup_id}")
            previous = self._controller
            self.release(self._popup_id)
            await previous.close()

        popup_id = uuid.uuid4().hex[:8]
        fragment = ContentFragment(
            content=content,
            content_type=ContentType.parse(content_type),
            action_count_hint=action_count_hint(content, content_type),
        )
        controller = PopupController(
            fragment=fragment,
            suggestions=self._suggestions,
            dispatcher=ActionDispatcher(
                ai=self._ai, runner=self._runner, prefix=self._config.ai_action_prefix
            ),
            clipboard=self._clipboard,
            window=ManagedWindow(self, popup_id),
            config=self._config,
            on_local_close=lambda: self.release(popup_id),
        )
        self._popup_id = popup_id
        self._controller = controller
        controller.start()
        _log(f"[manager] popup {popup_id} opened ({fragment.content_type.value})")
        return controller

    def release(self, popup_id: Optional[str]):
        """Forget the popup if it is still the current one."""
        if popup_id is not None and popup_id == self._popup_id:
            self._popup_id = None
            self._controller = None
