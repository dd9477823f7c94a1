"""Popup API routes: the shell drives the popup over HTTP."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from clipmind.adapters.web.manager import PopupManager
from clipmind.config import AppConfig
from clipmind.domain.errors import AIEngineError
from clipmind.domain.models import PopupSnapshot
from clipmind.domain.popup import PopupController
from clipmind.ports.inbound import KeyEvent, PointerEvent

popup_router = APIRouter(prefix="/popup", tags=["Popup"])
ai_router = APIRouter(prefix="/ai", tags=["AI"])

manager = PopupManager.from_config(AppConfig.from_env())


class OpenPopupRequest(BaseModel):
    content: str
    contentType: str = "PlainText"


class KeyRequest(BaseModel):
    key: str
    ctrl: bool = False
    meta: bool = False


class ClickRequest(BaseModel):
    actionId: Optional[str] = None


class ActionView(BaseModel):
    id: str
    label: str
    hotkey: str
    source: str
    reason: Optional[str] = None


class ResultView(BaseModel):
    content: str
    actionType: str
    processingTime: Optional[int] = None


class PopupView(BaseModel):
    id: str
    content: str
    contentType: str
    actionCount: Optional[int] = None
    mode: str
    actions: List[ActionView]
    loadingSuggestions: bool
    processingActionId: Optional[str] = None
    userInteracted: bool
    result: Optional[ResultView] = None


class EventResponse(BaseModel):
    handled: bool
    popup: Optional[PopupView] = None


class HealthResponse(BaseModel):
    connected: bool
    error: Optional[str] = None


def _view(popup_id: str, controller: PopupController) -> PopupView:
    snap: PopupSnapshot = controller.snapshot()
    result = snap.active_result
    return PopupView(
        id=popup_id,
        content=snap.content,
        contentType=snap.content_type.value,
        actionCount=controller.session.fragment.action_count_hint,
        mode=snap.mode.value,
        actions=[
            ActionView(
                id=a.id,
                label=a.label,
                hotkey=a.hotkey,
                source=a.source.value,
                reason=a.reason,
            )
            for a in snap.actions
        ],
        loadingSuggestions=snap.loading_suggestions,
        processingActionId=snap.processing_action_id,
        userInteracted=snap.user_interacted,
        result=(
            ResultView(
                content=result.content,
                actionType=result.action_type,
                processingTime=result.processing_time_ms,
            )
            if result
            else None
        ),
    )


def _current() -> PopupController:
    controller = manager.current
    if controller is None:
        raise HTTPException(status_code=404, detail="No popup open")
    return controller


def _event_response(handled: bool, popup_id: str, controller: PopupController) -> EventResponse:
    return EventResponse(handled=handled, popup=_view(popup_id, controller))


@popup_router.post("", response_model=PopupView)
async def open_popup(req: OpenPopupRequest):
    controller = await manager.open(req.content, req.contentType)
    return _view(manager.current_id, controller)


@popup_router.get("", response_model=PopupView)
async def get_popup():
    controller = _current()
    return _view(manager.current_id, controller)


@popup_router.post("/keys", response_model=EventResponse)
async def press_key(req: KeyRequest):
    popup_id, controller = manager.current_id, _current()
    handled = controller.handle_key(KeyEvent(key=req.key, ctrl=req.ctrl, meta=req.meta))
    return _event_response(handled, popup_id, controller)


@popup_router.post("/click", response_model=EventResponse)
async def click(req: ClickRequest):
    popup_id, controller = manager.current_id, _current()
    handled = controller.handle_pointer(PointerEvent(action_id=req.actionId))
    return _event_response(handled, popup_id, controller)


@popup_router.post("/actions/{action_id}", response_model=EventResponse)
async def run_action(action_id: str):
    popup_id, controller = manager.current_id, _current()
    handled = await controller.execute_action(action_id)
    return _event_response(handled, popup_id, controller)


@popup_router.post("/copy")
async def copy_result():
    controller = _current()
    return {"copied": await controller.copy_result()}


@popup_router.post("/retry", response_model=EventResponse)
async def retry():
    popup_id, controller = manager.current_id, _current()
    handled = controller.retry()
    return _event_response(handled, popup_id, controller)


@popup_router.delete("")
async def close_popup():
    controller = _current()
    await controller.close()
    return {"mode": controller.mode.value}


@ai_router.get("/health", response_model=HealthResponse)
async def ai_health():
    engine = manager.engine
    test_connection = getattr(engine, "test_connection", None)
    if test_connection is None:
        return HealthResponse(connected=False, error="AI engine does not support health checks")
    try:
        return HealthResponse(connected=await test_connection())
    except AIEngineError as e:
        return HealthResponse(connected=False, error=str(e))
