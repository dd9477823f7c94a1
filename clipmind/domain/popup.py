"""PopupController: lifecycle state machine for one smart action popup.

Owns the PopupSession, the auto-dismiss timers and keyboard routing.
Builds the action list from the rule table and AI suggestions, hands
the chosen action to the ActionDispatcher and reacts to its outcome.
No UI toolkit dependency: views subscribe to snapshots.
"""

import asyncio
import sys
from typing import Callable, List, Optional

from clipmind.config import PopupConfig
from clipmind.domain.dispatcher import ActionDispatcher
from clipmind.domain.errors import ActionExecutionError
from clipmind.domain.merger import merge_suggestions
from clipmind.domain.models import (
    AIResult,
    ActionSuggestion,
    ContentFragment,
    PopupMode,
    PopupSession,
    PopupSnapshot,
)
from clipmind.domain.rules import rules_for
from clipmind.ports.inbound import KeyEvent, PointerEvent
from clipmind.ports.outbound import ClipboardPort, SuggestionPort, WindowPort

HOTKEYS = "123456789"

TIMER_IDLE = "idle"
TIMER_RESULT = "result"
TIMER_ERROR = "error"

Listener = Callable[[PopupSnapshot], None]


def _log(msg: str):
    print(msg, file=sys.stderr)


class PopupController:
    """State machine: selecting -> processing -> selecting | result | closed.

    Handles:
    - Initial rule actions, then AI suggestions merged in the background
    - Digit / Escape / modifier+c / modifier+r routing
    - One dispatch at a time (repeated key presses are ignored)
    - Idle and result auto-dismiss timers scoped to their state
    - Close escalation: request_close -> destroy -> local close
    """

    def __init__(
        self,
        fragment: ContentFragment,
        suggestions: SuggestionPort,
        dispatcher: ActionDispatcher,
        clipboard: ClipboardPort,
        window: WindowPort,
        config: Optional[PopupConfig] = None,
        on_local_close: Optional[Callable[[], None]] = None,
    ):
        self.session = PopupSession(fragment=fragment)
        self._suggestions = suggestions
        self._dispatcher = dispatcher
        self._clipboard = clipboard
        self._window = window
        self._config = config or PopupConfig()
        self._on_local_close = on_local_close
        self._listeners: List[Listener] = []
        self._rule_actions: List[ActionSuggestion] = []
        self._tasks: set = set()
        self._suggestion_task: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._timer_kind: Optional[str] = None
        self._started = False

    # -- Produced interface --

    @property
    def mode(self) -> PopupMode:
        return self.session.mode

    @property
    def active_timer(self) -> Optional[str]:
        """Kind of the armed auto-dismiss timer, or None."""
        return self._timer_kind

    def snapshot(self) -> PopupSnapshot:
        return self.session.snapshot()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every mutation; returns an unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self):
        snap = self.session.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception as e:
                _log(f"[popup] listener error: {e}")

    # -- Lifecycle --

    def start(self):
        """Show rule actions now and fetch AI suggestions in the background.

        Must be called from a running event loop.
        """
        if self._started:
            return
        self._started = True
        fragment = self.session.fragment
        self._rule_actions = rules_for(fragment.content_type)
        self.session.actions = list(self._rule_actions)
        self.session.loading_suggestions = True
        if not self.session.user_interacted:
            self._arm_timer(TIMER_IDLE, self._config.idle_dismiss_seconds)
        _log(f"[popup] opened: type={fragment.content_type.value} "
             f"rules={len(self._rule_actions)}")
        self._notify()
        self._suggestion_task = self._spawn(self._load_suggestions())

    async def _load_suggestions(self):
        fragment = self.session.fragment
        candidates = None
        try:
            candidates = await asyncio.wait_for(
                self._suggestions.fetch_suggestions(fragment.content, fragment.content_type.value),
                timeout=self._config.suggestion_timeout_seconds,
            )
        except asyncio.TimeoutError:
            _log(f"[popup] AI suggestions timed out after "
                 f"{self._config.suggestion_timeout_seconds}s")
        except Exception as e:
            _log(f"[popup] AI suggestions failed: {e}")

        if not self.session.is_live:
            return
        if candidates:
            self.session.actions = merge_suggestions(
                self._rule_actions,
                list(candidates)[: self._config.max_ai_suggestions],
                capacity=self._config.capacity,
            )
            _log(f"[popup] action list updated: {len(self.session.actions)} item(s)")
        self.session.loading_suggestions = False
        self._notify()

    # -- Input routing --

    def handle_key(self, event: KeyEvent) -> bool:
        """Route a key press; returns True when the popup consumed it."""
        if self.session.mode == PopupMode.CLOSED:
            return False
        self._mark_interacted()

        key = event.key
        if key == "Escape":
            self._spawn(self.close())
            return True

        if event.has_modifier and key.lower() == "c":
            if self.session.mode != PopupMode.RESULT:
                return False
            self._spawn(self.copy_result())
            return True

        if event.has_modifier and key.lower() == "r":
            return self.retry()

        if len(key) == 1 and key in HOTKEYS:
            return self._select_hotkey(int(key))

        return False

    def handle_pointer(self, event: PointerEvent) -> bool:
        """Pointer click anywhere counts as interaction; on a button it dispatches."""
        if self.session.mode == PopupMode.CLOSED:
            return False
        self._mark_interacted()
        if not event.action_id:
            return True
        if not self._begin_dispatch(event.action_id):
            return False
        self._spawn(self._run_dispatch(event.action_id))
        return True

    async def execute_action(self, action_id: str) -> bool:
        """Dispatch an action and wait for its outcome to be applied."""
        if self.session.mode == PopupMode.CLOSED:
            return False
        self._mark_interacted()
        if not self._begin_dispatch(action_id):
            return False
        await self._run_dispatch(action_id)
        return True

    def _mark_interacted(self):
        if self.session.user_interacted:
            return
        self.session.user_interacted = True
        if self._timer_kind == TIMER_IDLE:
            self._cancel_timer()
        self._notify()

    def _select_hotkey(self, number: int) -> bool:
        session = self.session
        if session.mode != PopupMode.SELECTING or session.active_result is not None:
            return False
        if number < 1 or number > len(session.actions):
            return False
        action_id = session.actions[number - 1].id
        if not self._begin_dispatch(action_id):
            return False
        self._spawn(self._run_dispatch(action_id))
        return True

    # -- Dispatch --

    def _begin_dispatch(self, action_id: str) -> bool:
        session = self.session
        if session.processing_action_id is not None:
            _log(f"[popup] ignoring {action_id!r}: {session.processing_action_id!r} in flight")
            return False
        if session.mode != PopupMode.SELECTING:
            return False
        if not any(a.id == action_id for a in session.actions):
            _log(f"[popup] unknown action {action_id!r}")
            return False
        self._cancel_timer()
        session.processing_action_id = action_id
        session.mode = PopupMode.PROCESSING
        self._notify()
        return True

    async def _run_dispatch(self, action_id: str):
        session = self.session
        outcome = None
        try:
            outcome = await self._dispatcher.dispatch(
                action_id, session.fragment, list(session.actions)
            )
        except ActionExecutionError as e:
            _log(f"[popup] action failed: {e}")
        except Exception as e:
            _log(f"[popup] action {action_id!r} error: {e}")
        finally:
            session.processing_action_id = None

        if session.mode == PopupMode.CLOSING:
            _log(f"[popup] close requested during {action_id!r}, outcome discarded")
            await self._shutdown()
            return
        if session.mode != PopupMode.PROCESSING:
            return

        if outcome is None:
            session.mode = PopupMode.SELECTING
            self._notify()
            return
        if outcome.closes:
            await self._shutdown()
            return
        self._show_result(outcome.result)

    def _show_result(self, result: AIResult):
        self.session.active_result = result
        self.session.mode = PopupMode.RESULT
        if result.is_error:
            self._arm_timer(TIMER_ERROR, self._config.error_dismiss_seconds)
        else:
            self._arm_timer(TIMER_RESULT, self._config.result_dismiss_seconds)
        self._notify()

    # -- Result mode --

    async def copy_result(self) -> bool:
        """Write the shown result to the clipboard; no state change."""
        result = self.session.active_result
        if self.session.mode != PopupMode.RESULT or result is None:
            return False
        try:
            await self._clipboard.write(result.content)
        except Exception as e:
            _log(f"[popup] copy failed: {e}")
            return False
        _log("[popup] result copied")
        return True

    def retry(self) -> bool:
        """Drop the shown result and go back to the existing action list."""
        if self.session.mode != PopupMode.RESULT:
            return False
        self._cancel_timer()
        self.session.active_result = None
        self.session.mode = PopupMode.SELECTING
        self._notify()
        return True

    # -- Closing --

    async def close(self):
        """Close the popup; deferred while an action is in flight."""
        session = self.session
        if session.mode in (PopupMode.CLOSING, PopupMode.CLOSED):
            return
        if session.processing_action_id is not None:
            self._cancel_timer()
            session.mode = PopupMode.CLOSING
            _log(f"[popup] close deferred until {session.processing_action_id!r} settles")
            self._notify()
            return
        await self._shutdown()

    async def _shutdown(self):
        session = self.session
        self._cancel_timer()
        session.mode = PopupMode.CLOSING
        if self._suggestion_task and not self._suggestion_task.done():
            self._suggestion_task.cancel()
        self._notify()

        try:
            await self._window.request_close()
        except Exception as e:
            _log(f"[popup] close request failed: {e}")
            try:
                await self._window.destroy()
            except Exception as e2:
                _log(f"[popup] window destroy failed: {e2}, closing locally")
                self._local_close()

        session.mode = PopupMode.CLOSED
        _log("[popup] closed")
        self._notify()
        self._listeners.clear()

    def _local_close(self):
        if self._on_local_close is None:
            return
        try:
            self._on_local_close()
        except Exception as e:
            _log(f"[popup] local close failed: {e}")

    # -- Timers --

    def _arm_timer(self, kind: str, delay: float):
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._on_timer, kind)
        self._timer_kind = kind

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._timer_kind = None

    def _on_timer(self, kind: str):
        self._timer = None
        self._timer_kind = None
        _log(f"[popup] {kind} timer fired, closing")
        self._spawn(self.close())

    # -- Task tracking --

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_pending(self):
        """Wait for every background task spawned by this popup."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
