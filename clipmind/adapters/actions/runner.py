"""Basic action runner: implements ActionRunnerPort.

Opens URLs, mail drafts and files with the platform opener.
"""

import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional
from urllib.parse import quote, quote_plus

from clipmind.domain.errors import ActionExecutionError

GOOGLE_SEARCH_URL = "https://www.google.com/search?q="
GOOGLE_MAPS_URL = "https://www.google.com/maps/search/"
VSCODE_TEMP_FILE = "clipmind_temp.txt"
SAVED_TEXT_FILE = "clipmind_saved_text.txt"


def _log(msg: str):
    print(msg, file=sys.stderr)


def opener_args(target: str, platform: Optional[str] = None) -> List[str]:
    """Command that hands ``target`` to the desktop's default handler."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        return ["cmd", "/C", "start", "", target]
    if platform == "darwin":
        return ["open", target]
    return ["xdg-open", target]


def vscode_args(path: str, platform: Optional[str] = None) -> List[str]:
    platform = platform or sys.platform
    if platform.startswith("win"):
        return ["cmd", "/C", "start", "code", path]
    if platform == "darwin":
        return ["open", "-a", "Visual Studio Code", path]
    return ["code", path]


async def _spawn_detached(cmd_args: List[str]):
    """Start a process without waiting for it to exit."""
    await asyncio.create_subprocess_exec(
        *cmd_args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )


class SystemActionRunner:
    """Runs basic actions. Implements ActionRunnerPort protocol."""

    def __init__(
        self,
        work_dir: str = ".",
        spawn: Callable[[List[str]], Awaitable[None]] = _spawn_detached,
    ):
        self._work_dir = Path(work_dir)
        self._spawn = spawn
        self._handlers: Dict[str, Callable[[str], Awaitable[str]]] = {
            "search": self._search,
            "open_browser": self._open_browser,
            "open_vscode": self._open_vscode,
            "compose_email": self._compose_email,
            "open_maps": self._open_maps,
            "save_text": self._save_text,
            "translate": self._trigger("Translation feature triggered"),
            "summarize": self._trigger("Summarization feature triggered"),
        }

    async def run(self, action_id: str, content: str) -> str:
        _log(f"[actions] running {action_id!r} ({len(content or '')} chars)")
        handler = self._handlers.get(action_id)
        if handler is None:
            _log(f"[actions] unimplemented action: {action_id}")
            return f"Action '{action_id}' triggered but not yet implemented"
        try:
            return await handler(content)
        except ActionExecutionError:
            raise
        except OSError as e:
            raise ActionExecutionError(action_id, str(e)) from e

    @staticmethod
    def _require(action_id: str, content: str, reason: str) -> str:
        if not content:
            raise ActionExecutionError(action_id, reason)
        return content

    async def _open(self, target: str):
        await self._spawn(opener_args(target))

    async def _search(self, content: str) -> str:
        query = self._require("search", content, "no search context")
        await self._open(GOOGLE_SEARCH_URL + quote_plus(query))
        return f"Open Google search: {query}"

    async def _open_browser(self, content: str) -> str:
        url = self._require("open_browser", content, "No URL provided").strip()
        if not url.startswith(("http://", "https://")):
            url = f"http://{url}"
        await self._open(url)
        return f"Opened in browser: {url}"

    async def _open_vscode(self, content: str) -> str:
        text = self._require("open_vscode", content, "no context")
        path = self._work_dir / VSCODE_TEMP_FILE
        path.write_text(text, encoding="utf-8")
        await self._spawn(vscode_args(str(path)))
        return f"Use VSCode to open: {path}"

    async def _compose_email(self, content: str) -> str:
        address = self._require("compose_email", content, "no email address").strip()
        await self._open(f"mailto:{address}")
        return f"Write email to: {address}"

    async def _open_maps(self, content: str) -> str:
        address = self._require("open_maps", content, "no address")
        await self._open(GOOGLE_MAPS_URL + quote(address, safe=""))
        return f"open google map: {address}"

    async def _save_text(self, content: str) -> str:
        text = self._require("save_text", content, "no context")
        path = self._work_dir / SAVED_TEXT_FILE
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise ActionExecutionError("save_text", f"save failed: {e}") from e
        return f"save file: {path}"

    @staticmethod
    def _trigger(message: str) -> Callable[[str], Awaitable[str]]:
        async def _handler(content: str) -> str:
            return message
        return _handler
