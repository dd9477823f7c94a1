"""Tests for domain/popup.py: PopupController state machine.

No UI toolkit needed, tests use mock ports only.
"""

import asyncio

import pytest

from clipmind.config import PopupConfig
from clipmind.domain.dispatcher import ActionDispatcher
from clipmind.domain.models import (
    AIActionCandidate,
    ActionSource,
    ContentFragment,
    ContentType,
    PopupMode,
)
from clipmind.domain.popup import PopupController, TIMER_ERROR, TIMER_IDLE, TIMER_RESULT
from clipmind.ports.inbound import KeyEvent, PointerEvent


# --- Mock Ports ---


class MockSuggestions:
    def __init__(self, candidates=None, error=None, gate=None):
        self.candidates = candidates or []
        self.error = error
        self.gate = gate
        self.calls = []

    async def fetch_suggestions(self, content, content_type):
        self.calls.append((content, content_type))
        if self.gate:
            await self.gate.wait()
        if self.error:
            raise self.error
        return self.candidates


class MockAI:
    def __init__(self, response="AI says hi", error=None, gate=None):
        self.response = response
        self.error = error
        self.gate = gate
        self.calls = []

    async def process_task(self, task_type, content, parameters):
        self.calls.append(task_type)
        if self.gate:
            await self.gate.wait()
        if self.error:
            raise self.error
        return self.response


class MockRunner:
    def __init__(self, error=None, gate=None):
        self.error = error
        self.gate = gate
        self.calls = []

    async def run(self, action_id, content):
        self.calls.append(action_id)
        if self.gate:
            await self.gate.wait()
        if self.error:
            raise self.error
        return "done"


class MockClipboard:
    def __init__(self, error=None):
        self.error = error
        self.written = []

    async def write(self, content):
        if self.error:
            raise self.error
        self.written.append(content)


class MockWindow:
    def __init__(self, close_error=None, destroy_error=None):
        self.close_error = close_error
        self.destroy_error = destroy_error
        self.close_requests = 0
        self.destroyed = 0

    async def request_close(self):
        self.close_requests += 1
        if self.close_error:
            raise self.close_error

    async def destroy(self):
        self.destroyed += 1
        if self.destroy_error:
            raise self.destroy_error


# --- Helpers ---


def _cand(action_id, label):
    return AIActionCandidate(id=action_id, label=label, reason=f"because {label}")


def _make_popup(
    content="Hello world",
    content_type=ContentType.PLAIN_TEXT,
    suggestions=None,
    ai=None,
    runner=None,
    clipboard=None,
    window=None,
    config=None,
    on_local_close=None,
):
    suggestions = suggestions or MockSuggestions()
    ai = ai or MockAI()
    runner = runner or MockRunner()
    clipboard = clipboard or MockClipboard()
    window = window or MockWindow()
    popup = PopupController(
        fragment=ContentFragment(content=content, content_type=content_type),
        suggestions=suggestions,
        dispatcher=ActionDispatcher(ai=ai, runner=runner),
        clipboard=clipboard,
        window=window,
        config=config or PopupConfig(),
        on_local_close=on_local_close,
    )
    return popup, suggestions, ai, runner, clipboard, window


def _key(key, ctrl=False):
    return KeyEvent(key=key, ctrl=ctrl)


async def _started(**kwargs):
    popup, *ports = _make_popup(**kwargs)
    popup.start()
    await popup.wait_pending()
    return (popup, *ports)


# --- Tests ---


class TestStart:
    @pytest.mark.asyncio
    async def test_rules_shown_before_suggestions(self):
        gate = asyncio.Event()
        popup, *_ = _make_popup(suggestions=MockSuggestions([_cand("ai_translate", "AI Translate")], gate=gate))
        popup.start()
        assert [a.id for a in popup.session.actions] == ["search"]
        assert popup.session.loading_suggestions is True
        gate.set()
        await popup.wait_pending()
        assert [a.id for a in popup.session.actions] == ["search", "ai_translate"]
        assert popup.session.actions[1].source == ActionSource.AI
        assert popup.session.actions[1].hotkey == "2"
        assert popup.session.loading_suggestions is False

    @pytest.mark.asyncio
    async def test_url_fetch_failure_keeps_rules(self):
        popup, suggestions, *_ = await _started(
            content="https://a.com",
            content_type=ContentType.URL,
            suggestions=MockSuggestions(error=RuntimeError("offline")),
        )
        assert [(a.id, a.hotkey) for a in popup.session.actions] == [("open_browser", "1")]
        assert popup.session.loading_suggestions is False
        assert suggestions.calls == [("https://a.com", "Url")]
        assert popup.mode == PopupMode.SELECTING

    @pytest.mark.asyncio
    async def test_fetch_timeout_keeps_rules(self):
        class SlowSuggestions:
            async def fetch_suggestions(self, content, content_type):
                await asyncio.sleep(10)
                return [_cand("ai_x", "Never")]

        popup, *_ = await _started(
            suggestions=SlowSuggestions(),
            config=PopupConfig(suggestion_timeout_seconds=0.01),
        )
        assert [a.id for a in popup.session.actions] == ["search"]
        assert popup.session.loading_suggestions is False

    @pytest.mark.asyncio
    async def test_only_first_three_candidates_considered(self):
        cands = [_cand(f"ai_{n}", n.title()) for n in ("one", "two", "three", "four")]
        popup, *_ = await _started(suggestions=MockSuggestions(cands))
        assert [a.id for a in popup.session.actions] == ["search", "ai_one", "ai_two", "ai_three"]

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        popup, suggestions, *_ = _make_popup()
        popup.start()
        popup.start()
        await popup.wait_pending()
        assert len(suggestions.calls) == 1

    @pytest.mark.asyncio
    async def test_idle_timer_armed_on_start(self):
        popup, *_ = await _started()
        assert popup.active_timer == TIMER_IDLE


class TestHotkeys:
    @pytest.mark.asyncio
    async def test_digit_beyond_count_is_noop(self):
        popup, _, ai, runner, _, _ = await _started()
        assert popup.handle_key(_key("5")) is False
        await popup.wait_pending()
        assert popup.mode == PopupMode.SELECTING
        assert ai.calls == [] and runner.calls == []

    @pytest.mark.asyncio
    async def test_non_hotkey_ignored(self):
        popup, *_ = await _started()
        assert popup.handle_key(_key("0")) is False
        assert popup.handle_key(_key("x")) is False
        assert popup.mode == PopupMode.SELECTING

    @pytest.mark.asyncio
    async def test_ai_action_shows_result(self):
        popup, _, ai, _, _, _ = await _started(
            suggestions=MockSuggestions([_cand("ai_translate", "AI Translate")]),
            ai=MockAI("Bonjour"),
        )
        assert popup.handle_key(_key("2")) is True
        assert popup.mode == PopupMode.PROCESSING
        assert popup.session.processing_action_id == "ai_translate"
        await popup.wait_pending()
        assert popup.mode == PopupMode.RESULT
        assert popup.session.active_result.content == "Bonjour"
        assert popup.session.active_result.action_type == "translate"
        assert popup.session.processing_action_id is None
        assert popup.active_timer == TIMER_RESULT
        assert ai.calls == ["translate"]

    @pytest.mark.asyncio
    async def test_repeated_press_while_processing_ignored(self):
        gate = asyncio.Event()
        popup, _, ai, _, _, _ = await _started(
            suggestions=MockSuggestions([_cand("ai_translate", "AI Translate")]),
            ai=MockAI(gate=gate),
        )
        assert popup.handle_key(_key("2")) is True
        assert popup.handle_key(_key("2")) is False
        assert popup.handle_key(_key("1")) is False
        gate.set()
        await popup.wait_pending()
        assert ai.calls == ["translate"]

    @pytest.mark.asyncio
    async def test_digits_ignored_while_result_shown(self):
        popup, _, ai, runner, _, _ = await _started(
            suggestions=MockSuggestions([_cand("ai_translate", "AI Translate")]),
        )
        await popup.execute_action("ai_translate")
        assert popup.handle_key(_key("1")) is False
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_basic_success_closes(self):
        popup, _, _, runner, _, window = await _started()
        popup.handle_key(_key("1"))
        await popup.wait_pending()
        assert runner.calls == ["search"]
        assert popup.mode == PopupMode.CLOSED
        assert window.close_requests == 1

    @pytest.mark.asyncio
    async def test_basic_failure_stays_open(self):
        popup, _, _, runner, _, window = await _started(runner=MockRunner(error=OSError("boom")))
        popup.handle_key(_key("1"))
        await popup.wait_pending()
        assert popup.mode == PopupMode.SELECTING
        assert popup.session.processing_action_id is None
        assert popup.session.active_result is None
        assert window.close_requests == 0

    @pytest.mark.asyncio
    async def test_pointer_dispatch(self):
        popup, _, _, runner, _, _ = await _started()
        assert popup.handle_pointer(PointerEvent(action_id="search")) is True
        await popup.wait_pending()
        assert runner.calls == ["search"]

    @pytest.mark.asyncio
    async def test_unknown_action_rejected(self):
        popup, _, ai, runner, _, _ = await _started()
        assert await popup.execute_action("ai_unknown") is False
        assert ai.calls == [] and runner.calls == []


class TestResultMode:
    async def _with_result(self, **kwargs):
        kwargs.setdefault("suggestions", MockSuggestions([_cand("ai_summarize", "AI Summarize")]))
        popup, *ports = await _started(**kwargs)
        await popup.execute_action("ai_summarize")
        return (popup, *ports)

    @pytest.mark.asyncio
    async def test_copy_result(self):
        popup, _, _, _, clipboard, _ = await self._with_result(ai=MockAI("short summary"))
        assert popup.handle_key(_key("c", ctrl=True)) is True
        await popup.wait_pending()
        assert clipboard.written == ["short summary"]
        assert popup.mode == PopupMode.RESULT

    @pytest.mark.asyncio
    async def test_copy_with_meta_modifier(self):
        popup, _, _, _, clipboard, _ = await self._with_result()
        assert popup.handle_key(KeyEvent(key="c", meta=True)) is True
        await popup.wait_pending()
        assert len(clipboard.written) == 1

    @pytest.mark.asyncio
    async def test_copy_outside_result_ignored(self):
        popup, _, _, _, clipboard, _ = await _started()
        assert popup.handle_key(_key("c", ctrl=True)) is False
        assert await popup.copy_result() is False
        assert clipboard.written == []

    @pytest.mark.asyncio
    async def test_copy_failure_keeps_result(self):
        popup, *_ = await self._with_result(clipboard=MockClipboard(error=RuntimeError("no display")))
        assert await popup.copy_result() is False
        assert popup.mode == PopupMode.RESULT

    @pytest.mark.asyncio
    async def test_retry_returns_to_selecting(self):
        popup, *_ = await self._with_result()
        actions_before = list(popup.session.actions)
        assert popup.handle_key(_key("r", ctrl=True)) is True
        assert popup.mode == PopupMode.SELECTING
        assert popup.session.active_result is None
        assert popup.session.actions == actions_before
        assert popup.active_timer is None

    @pytest.mark.asyncio
    async def test_retry_outside_result_ignored(self):
        popup, *_ = await _started()
        assert popup.handle_key(_key("r", ctrl=True)) is False
        assert popup.retry() is False

    @pytest.mark.asyncio
    async def test_error_result_never_arms_result_timer(self):
        popup, *_ = await self._with_result(ai=MockAI(error=RuntimeError("down")))
        assert popup.session.active_result.action_type == "error"
        assert popup.active_timer == TIMER_ERROR


class TestTimers:
    @pytest.mark.asyncio
    async def test_idle_timer_closes(self):
        popup, *_, window = await _started(config=PopupConfig(idle_dismiss_seconds=0.01))
        await asyncio.sleep(0.05)
        await popup.wait_pending()
        assert popup.mode == PopupMode.CLOSED
        assert window.close_requests == 1

    @pytest.mark.asyncio
    async def test_interaction_disarms_idle_timer(self):
        popup, *_ = await _started(config=PopupConfig(idle_dismiss_seconds=0.02))
        popup.handle_pointer(PointerEvent())
        assert popup.session.user_interacted is True
        assert popup.active_timer is None
        await asyncio.sleep(0.05)
        assert popup.mode == PopupMode.SELECTING

    @pytest.mark.asyncio
    async def test_result_timer_closes(self):
        popup, *_, window = await _started(
            suggestions=MockSuggestions([_cand("ai_summarize", "AI Summarize")]),
            config=PopupConfig(result_dismiss_seconds=0.01),
        )
        await popup.execute_action("ai_summarize")
        await asyncio.sleep(0.05)
        await popup.wait_pending()
        assert popup.mode == PopupMode.CLOSED

    @pytest.mark.asyncio
    async def test_error_result_closes_after_error_delay(self):
        popup, *_ = await _started(
            suggestions=MockSuggestions([_cand("ai_summarize", "AI Summarize")]),
            ai=MockAI(error=RuntimeError("down")),
            config=PopupConfig(error_dismiss_seconds=0.01, result_dismiss_seconds=10),
        )
        await popup.execute_action("ai_summarize")
        await asyncio.sleep(0.05)
        await popup.wait_pending()
        assert popup.mode == PopupMode.CLOSED

    @pytest.mark.asyncio
    async def test_retry_cancels_result_timer(self):
        popup, *_ = await _started(
            suggestions=MockSuggestions([_cand("ai_summarize", "AI Summarize")]),
            config=PopupConfig(result_dismiss_seconds=0.02),
        )
        await popup.execute_action("ai_summarize")
        popup.retry()
        await asyncio.sleep(0.05)
        assert popup.mode == PopupMode.SELECTING


class TestClosing:
    @pytest.mark.asyncio
    async def test_escape_closes(self):
        popup, *_, window = await _started()
        assert popup.handle_key(_key("Escape")) is True
        await popup.wait_pending()
        assert popup.mode == PopupMode.CLOSED
        assert window.close_requests == 1
        assert popup.active_timer is None

    @pytest.mark.asyncio
    async def test_closed_popup_ignores_input(self):
        popup, *_ = await _started()
        await popup.close()
        assert popup.handle_key(_key("1")) is False
        assert popup.handle_pointer(PointerEvent(action_id="search")) is False

    @pytest.mark.asyncio
    async def test_close_twice_requests_once(self):
        popup, *_, window = await _started()
        await popup.close()
        await popup.close()
        assert window.close_requests == 1

    @pytest.mark.asyncio
    async def test_escape_while_processing_is_deferred(self):
        gate = asyncio.Event()
        popup, _, ai, _, _, window = await _started(
            suggestions=MockSuggestions([_cand("ai_translate", "AI Translate")]),
            ai=MockAI("late", gate=gate),
        )
        popup.handle_key(_key("2"))
        popup.handle_key(_key("Escape"))
        await asyncio.sleep(0)
        assert popup.mode == PopupMode.CLOSING
        assert window.close_requests == 0
        gate.set()
        await popup.wait_pending()
        assert popup.mode == PopupMode.CLOSED
        assert popup.session.active_result is None
        assert window.close_requests == 1

    @pytest.mark.asyncio
    async def test_close_falls_back_to_destroy(self):
        popup, *_, window = await _started(window=MockWindow(close_error=RuntimeError("ipc")))
        await popup.close()
        assert window.destroyed == 1
        assert popup.mode == PopupMode.CLOSED

    @pytest.mark.asyncio
    async def test_close_falls_back_to_local_close(self):
        closed_locally = []
        popup, *_ = await _started(
            window=MockWindow(close_error=RuntimeError("ipc"), destroy_error=RuntimeError("gone")),
            on_local_close=lambda: closed_locally.append(True),
        )
        await popup.close()
        assert closed_locally == [True]
        assert popup.mode == PopupMode.CLOSED


class TestLateSuggestions:
    @pytest.mark.asyncio
    async def test_late_suggestions_never_reopen_closed_popup(self):
        gate = asyncio.Event()
        popup, *_ = _make_popup(suggestions=MockSuggestions([_cand("ai_x", "Extra")], gate=gate))
        popup.start()
        await popup.close()
        gate.set()
        await popup.wait_pending()
        assert popup.mode == PopupMode.CLOSED
        assert [a.id for a in popup.session.actions] == ["search"]

    @pytest.mark.asyncio
    async def test_late_suggestions_update_list_while_processing(self):
        sugg_gate, run_gate = asyncio.Event(), asyncio.Event()
        popup, *_ = _make_popup(
            suggestions=MockSuggestions([_cand("ai_summarize", "AI Summarize")], gate=sugg_gate),
            runner=MockRunner(error=OSError("no browser"), gate=run_gate),
        )
        popup.start()
        popup.handle_key(_key("1"))
        sugg_gate.set()
        await asyncio.sleep(0.01)
        assert popup.mode == PopupMode.PROCESSING
        assert [a.id for a in popup.session.actions] == ["search", "ai_summarize"]
        run_gate.set()
        await popup.wait_pending()
        assert popup.mode == PopupMode.SELECTING
        assert len(popup.session.actions) == 2


class TestSubscription:
    @pytest.mark.asyncio
    async def test_listener_receives_snapshots(self):
        snapshots = []
        popup, *_ = _make_popup(suggestions=MockSuggestions([_cand("ai_translate", "AI Translate")]))
        popup.subscribe(snapshots.append)
        popup.start()
        await popup.wait_pending()
        assert snapshots[0].loading_suggestions is True
        assert snapshots[-1].loading_suggestions is False
        assert len(snapshots[-1].actions) == 2

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        snapshots = []
        popup, *_ = _make_popup()
        unsubscribe = popup.subscribe(snapshots.append)
        unsubscribe()
        popup.start()
        await popup.wait_pending()
        assert snapshots == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_popup(self):
        def bad_listener(snapshot):
            raise ValueError("render failed")

        popup, *_ = _make_popup()
        popup.subscribe(bad_listener)
        popup.start()
        await popup.wait_pending()
        assert popup.mode == PopupMode.SELECTING
