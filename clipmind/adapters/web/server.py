"""FastAPI application and startup."""

import uvicorn
from fastapi import FastAPI

from clipmind.adapters.web.popup_routes import ai_router, popup_router
from clipmind.config import CONFIG, __version__

app = FastAPI(title="ClipMind Popup Server", version=__version__)
app.include_router(popup_router)
app.include_router(ai_router)


@app.get("/status")
async def status():
    """Server status endpoint"""
    return {"version": __version__, "aiUrl": CONFIG["ai_url"]}


def main():
    uvicorn.run(app, host=CONFIG["host"], port=CONFIG["port"], log_level="info")
