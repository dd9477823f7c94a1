"""Basic (non-AI) action adapters."""

from clipmind.adapters.actions.runner import SystemActionRunner

__all__ = ["SystemActionRunner"]
