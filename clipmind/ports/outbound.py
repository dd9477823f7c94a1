"""Outbound ports: interfaces for the popup's external collaborators."""

from typing import TYPE_CHECKING, Any, Dict, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from clipmind.domain.models import AIActionCandidate


@runtime_checkable
class SuggestionPort(Protocol):
    """Interface for the AI action-suggestion backend."""

    async def fetch_suggestions(
        self, content: str, content_type: str
    ) -> List["AIActionCandidate"]: ...


@runtime_checkable
class AIProcessingPort(Protocol):
    """Interface for running one AI task and returning rendered text."""

    async def process_task(
        self, task_type: str, content: str, parameters: Dict[str, Any]
    ) -> str: ...


@runtime_checkable
class ActionRunnerPort(Protocol):
    """Interface for fire-and-forget basic actions (open URL, compose email...)."""

    async def run(self, action_id: str, content: str) -> Any: ...


@runtime_checkable
class ClipboardPort(Protocol):
    """Interface for writing text back to the system clipboard."""

    async def write(self, content: str) -> None: ...


@runtime_checkable
class WindowPort(Protocol):
    """Interface for the window hosting the popup."""

    async def request_close(self) -> None: ...
    async def destroy(self) -> None: ...
