"""Configuration and shared state."""

__version__ = "0.1.0"

import os
import sys
from dataclasses import dataclass, field
from typing import Dict

from dotenv import load_dotenv

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)


def _parse_models(raw: str) -> Dict[str, str]:
    """Parse ``task=model,task=model`` into a dict, skipping junk entries."""
    models: Dict[str, str] = {}
    for part in raw.split(","):
        if "=" not in part:
            continue
        task, _, model = part.partition("=")
        task, model = task.strip(), model.strip()
        if task and model:
            models[task] = model
    return models


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, falling back to {default}")
        return default


DEFAULT_AI_URL = "http://127.0.0.1/v1.0"
DEFAULT_AI_MODEL = ".bot/Llama 3.2 3B @NPU"

AI_MODELS = _parse_models(os.getenv("CLIPMIND_AI_MODELS", ""))
AI_MODELS.setdefault("default", os.getenv("CLIPMIND_AI_MODEL", DEFAULT_AI_MODEL))

CONFIG = {
    "host": os.getenv("CLIPMIND_HOST", "127.0.0.1"),
    "port": _int_env("CLIPMIND_PORT", 3000),
    # AI backend (OpenAI-compatible chat completions)
    "ai_url": os.getenv("CLIPMIND_AI_URL", DEFAULT_AI_URL).rstrip("/"),
    "ai_api_key": os.getenv("CLIPMIND_AI_API_KEY", os.getenv("KUWA_API_KEY", "")),
    "ai_timeout_ms": _int_env("CLIPMIND_AI_TIMEOUT_MS", 100000),
    "ai_models": AI_MODELS,
    # Popup behaviour
    "popup": {
        "capacity": 6,
        "max_ai_suggestions": 3,
        "ai_action_prefix": "ai_",
        "idle_dismiss_seconds": float(_int_env("CLIPMIND_IDLE_DISMISS_SECONDS", 30)),
        "result_dismiss_seconds": float(_int_env("CLIPMIND_RESULT_DISMISS_SECONDS", 15)),
        "error_dismiss_seconds": 3.0,
        "suggestion_timeout_seconds": 100.0,
    },
}


# ── Typed config ──────────────────────────────────────


@dataclass
class PopupConfig:
    capacity: int = 6
    max_ai_suggestions: int = 3
    ai_action_prefix: str = "ai_"
    idle_dismiss_seconds: float = 30.0
    result_dismiss_seconds: float = 15.0
    error_dismiss_seconds: float = 3.0
    suggestion_timeout_seconds: float = 100.0


@dataclass
class AIConfig:
    base_url: str = DEFAULT_AI_URL
    api_key: str = ""
    timeout_ms: int = 100000
    models: Dict[str, str] = field(default_factory=lambda: {"default": DEFAULT_AI_MODEL})


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 3000


@dataclass
class AppConfig:
    """Typed configuration bundle built from CONFIG."""

    popup: PopupConfig = field(default_factory=PopupConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            popup=PopupConfig(**CONFIG["popup"]),
            ai=AIConfig(
                base_url=CONFIG["ai_url"],
                api_key=CONFIG["ai_api_key"],
                timeout_ms=CONFIG["ai_timeout_ms"],
                models=dict(CONFIG["ai_models"]),
            ),
            server=ServerConfig(host=CONFIG["host"], port=CONFIG["port"]),
        )
