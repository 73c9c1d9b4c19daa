"""API route definitions for flutter-commander."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..commander import FlutterCommander
from ..core.config import config
from ..core.exceptions import (
    ADBError,
    ElementNotFoundError,
    FlutterCommanderError,
    NoActiveSessionError,
    ProcessSpawnError,
    TreeUnavailableError,
)
from ..core.logger import log

# Create router instances
session_router = APIRouter()
inspection_router = APIRouter()
interaction_router = APIRouter()

# Global commander instance
commander_instance: Optional[FlutterCommander] = None


def get_commander() -> FlutterCommander:
    """Get or create the global commander instance."""
    global commander_instance
    if commander_instance is None:
        commander_instance = FlutterCommander()
    return commander_instance


def to_http_error(error: Exception) -> HTTPException:
    """Map a framework error onto the HTTP status an agent can act on."""
    if isinstance(error, NoActiveSessionError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, TreeUnavailableError):
        return HTTPException(status_code=503, detail=str(error))
    if isinstance(error, ElementNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (ADBError, ProcessSpawnError)):
        return HTTPException(status_code=502, detail=str(error))
    if isinstance(error, ValueError):
        return HTTPException(status_code=400, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


# Pydantic models for request/response
class StartSessionRequest(BaseModel):
    """Request model for starting a dev session."""
    device_id: str = Field(default_factory=lambda: config.android_device_id)


class HotReloadRequest(BaseModel):
    reason: Optional[str] = None


class FindRequest(BaseModel):
    """Request model for element search."""
    criteria: str
    timeout_ms: int = Field(default_factory=lambda: config.find_default_timeout_ms, ge=0)


class TapRequest(BaseModel):
    finder: Optional[str] = None
    x: Optional[int] = None
    y: Optional[int] = None


class InputTextRequest(BaseModel):
    text: str
    submit: bool = False


class ScrollRequest(BaseModel):
    direction: Literal["up", "down", "left", "right"]
    finder: Optional[str] = None


class SystemDialogRequest(BaseModel):
    action: Literal["accept", "deny"]


class InjectFileRequest(BaseModel):
    source: str
    target: str


class MessageResponse(BaseModel):
    message: str


class SessionStatusResponse(BaseModel):
    """Response model for session state."""
    running: bool
    device_id: Optional[str] = None
    endpoint: Optional[str] = None


# Session routes
@session_router.post("/start", response_model=MessageResponse)
async def start_session(request: StartSessionRequest, commander: FlutterCommander = Depends(get_commander)):
    """Start a 'flutter run --machine' session."""
    try:
        return MessageResponse(message=await commander.session.start(request.device_id))
    except FlutterCommanderError as e:
        log.error(f"Session start error: {e}")
        raise to_http_error(e)


@session_router.post("/stop", response_model=MessageResponse)
async def stop_session(commander: FlutterCommander = Depends(get_commander)):
    """Stop the current flutter process."""
    return MessageResponse(message=await commander.session.stop())


@session_router.post("/hot-reload", response_model=MessageResponse)
async def hot_reload(request: HotReloadRequest, commander: FlutterCommander = Depends(get_commander)):
    try:
        return MessageResponse(message=await commander.session.hot_reload(request.reason or "agent request"))
    except NoActiveSessionError as e:
        raise to_http_error(e)


@session_router.post("/hot-restart", response_model=MessageResponse)
async def hot_restart(commander: FlutterCommander = Depends(get_commander)):
    try:
        return MessageResponse(message=await commander.session.hot_restart())
    except NoActiveSessionError as e:
        raise to_http_error(e)


@session_router.get("", response_model=SessionStatusResponse)
async def get_session_status(commander: FlutterCommander = Depends(get_commander)):
    """Get current session information."""
    session = commander.session
    return SessionStatusResponse(
        running=session.is_running,
        device_id=session.device_id if session.is_running else None,
        endpoint=session.endpoint,
    )


# Inspection routes
@inspection_router.get("/tree")
async def get_semantic_tree(commander: FlutterCommander = Depends(get_commander)) -> Dict[str, Any]:
    """Get the simplified semantic tree of UI elements."""
    try:
        tree = await commander.normalizer.get_tree()
    except FlutterCommanderError as e:
        log.error(f"Semantic tree error: {e}")
        raise to_http_error(e)
    return tree.to_dict()


@inspection_router.post("/find")
async def find_element(request: FindRequest, commander: FlutterCommander = Depends(get_commander)) -> Dict[str, Any]:
    """Wait for an element to appear."""
    node = await commander.normalizer.find(request.criteria, request.timeout_ms)
    if node is None:
        raise HTTPException(status_code=404, detail="Element not found within timeout")
    return node.to_dict()


@inspection_router.post("/screenshot")
async def take_screenshot(commander: FlutterCommander = Depends(get_commander)):
    """Capture current screen state."""
    try:
        path = await commander.take_screenshot()
    except ADBError as e:
        log.error(f"Screenshot capture error: {e}")
        raise to_http_error(e)
    return {"screenshot_path": path}


@inspection_router.get("/analysis", response_model=MessageResponse)
async def analyze_visual_state(commander: FlutterCommander = Depends(get_commander)):
    """Screenshot plus a summary of the current tree."""
    try:
        return MessageResponse(message=await commander.analyze_visual_state())
    except ADBError as e:
        raise to_http_error(e)


# Interaction routes
@interaction_router.post("/tap", response_model=MessageResponse)
async def tap_element(request: TapRequest, commander: FlutterCommander = Depends(get_commander)):
    """Tap on an element or coordinate."""
    try:
        message = await commander.interaction.tap_element(request.finder, request.x, request.y)
    except (FlutterCommanderError, ValueError) as e:
        raise to_http_error(e)
    return MessageResponse(message=message)


@interaction_router.post("/input", response_model=MessageResponse)
async def input_text(request: InputTextRequest, commander: FlutterCommander = Depends(get_commander)):
    """Type text (via ADB)."""
    try:
        message = await commander.interaction.input_text(request.text, request.submit)
    except ADBError as e:
        raise to_http_error(e)
    return MessageResponse(message=message)


@interaction_router.post("/scroll", response_model=MessageResponse)
async def scroll_to(request: ScrollRequest, commander: FlutterCommander = Depends(get_commander)):
    """Scroll in a direction."""
    try:
        message = await commander.interaction.scroll_to(request.direction, request.finder)
    except (FlutterCommanderError, ValueError) as e:
        raise to_http_error(e)
    return MessageResponse(message=message)


@interaction_router.post("/system-dialog", response_model=MessageResponse)
async def handle_system_dialog(request: SystemDialogRequest, commander: FlutterCommander = Depends(get_commander)):
    """Handle native popups."""
    try:
        message = await commander.interaction.handle_system_dialog(request.action)
    except (FlutterCommanderError, ValueError) as e:
        raise to_http_error(e)
    return MessageResponse(message=message)


@interaction_router.post("/inject", response_model=MessageResponse)
async def inject_file(request: InjectFileRequest, commander: FlutterCommander = Depends(get_commander)):
    """Push a file to device."""
    try:
        message = await commander.interaction.inject_file(request.source, request.target)
    except ADBError as e:
        raise to_http_error(e)
    return MessageResponse(message=message)
