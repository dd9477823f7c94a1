"""AI backend adapters: chat completions client and suggestion engine."""

from clipmind.adapters.ai.chat_client import ChatClient
from clipmind.adapters.ai.engine import AIEngine

__all__ = [
    "ChatClient",
    "AIEngine",
]
