"""Domain exceptions."""


class ClipMindError(Exception):
    """Base class for popup errors."""
    pass


class ActionExecutionError(ClipMindError):
    """Raised when a basic (non-AI) action could not be run."""

    def __init__(self, action_id: str, reason: str):
        super().__init__(f"{action_id}: {reason}")
        self.action_id = action_id
        self.reason = reason


class AIEngineError(ClipMindError):
    """Raised when the AI backend call fails or returns nothing usable."""
    pass
