"""Clipboard adapter: implements ClipboardPort with pyperclip."""

import asyncio

import pyperclip


class PyperclipClipboard:
    """Writes text to the system clipboard off the event loop."""

    async def write(self, content: str) -> None:
        await asyncio.to_thread(pyperclip.copy, content)
