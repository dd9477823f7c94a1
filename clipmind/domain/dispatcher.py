"""Action dispatch: route a chosen action to the AI or basic-action port."""

import sys
import time
from typing import Callable, Optional, Sequence

from clipmind.domain.errors import ActionExecutionError
from clipmind.domain.models import (
    AIResult,
    ActionSource,
    ActionSuggestion,
    ContentFragment,
    DispatchOutcome,
    ERROR_ACTION_TYPE,
)
from clipmind.ports.outbound import AIProcessingPort, ActionRunnerPort

AI_ACTION_PREFIX = "ai_"


def _log(msg: str):
    print(msg, file=sys.stderr)


class ActionDispatcher:
    """Runs one action and turns its completion into a DispatchOutcome.

    AI tasks never raise: failures come back as an ``"error"`` result so
    the popup always has something to show. Basic actions raise
    ActionExecutionError on failure and leave logging to the caller.
    """

    def __init__(
        self,
        ai: AIProcessingPort,
        runner: ActionRunnerPort,
        prefix: str = AI_ACTION_PREFIX,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ai = ai
        self._runner = runner
        self._prefix = prefix
        self._clock = clock

    def is_ai_action(self, action_id: str, known_actions: Sequence[ActionSuggestion]) -> bool:
        if action_id.startswith(self._prefix):
            return True
        known = self._find(action_id, known_actions)
        return known is not None and known.source == ActionSource.AI

    def task_type(self, action_id: str) -> str:
        if action_id.startswith(self._prefix):
            return action_id[len(self._prefix):]
        return action_id

    async def dispatch(
        self,
        action_id: str,
        fragment: ContentFragment,
        known_actions: Sequence[ActionSuggestion],
    ) -> DispatchOutcome:
        if self.is_ai_action(action_id, known_actions):
            return await self._dispatch_ai(action_id, fragment)
        return await self._dispatch_basic(action_id, fragment)

    async def _dispatch_ai(self, action_id: str, fragment: ContentFragment) -> DispatchOutcome:
        task_type = self.task_type(action_id)
        _log(f"[dispatcher] AI task {task_type!r} ({action_id})")
        started = self._clock()
        try:
            text = await self._ai.process_task(task_type, fragment.content, {})
        except Exception as e:
            _log(f"[dispatcher] AI task {task_type!r} failed: {e}")
            return DispatchOutcome.show_result(
                AIResult(content=f"Execution failed: {e}", action_type=ERROR_ACTION_TYPE)
            )
        elapsed_ms = int(round((self._clock() - started) * 1000))
        _log(f"[dispatcher] AI task {task_type!r} done in {elapsed_ms}ms")
        return DispatchOutcome.show_result(
            AIResult(content=text, action_type=task_type, processing_time_ms=elapsed_ms)
        )

    async def _dispatch_basic(self, action_id: str, fragment: ContentFragment) -> DispatchOutcome:
        try:
            result = await self._runner.run(action_id, fragment.content)
        except ActionExecutionError:
            raise
        except Exception as e:
            raise ActionExecutionError(action_id, str(e)) from e
        _log(f"[dispatcher] basic action {action_id!r}: {result}")
        return DispatchOutcome.close_now()

    @staticmethod
    def _find(action_id: str, actions: Sequence[ActionSuggestion]) -> Optional[ActionSuggestion]:
        for action in actions:
            if action.id == action_id:
                return action
        return None
