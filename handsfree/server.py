"""
Clinic Hands-Free Interpreter - FastAPI control server
Exposes the gesture/voice toggles and session state to the rest of the application
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import Cfg
from .controller import HandsFreeController
from .session import NotificationLog
from .surface_browser import BrowserSession

logger = logging.getLogger(__name__)


# Request/Response models
class SessionModel(BaseModel):
    is_listening: bool
    last_command: Optional[str] = None
    last_error: Optional[str] = None


class ToggleResponse(BaseModel):
    success: bool
    enabled: bool
    error: Optional[str] = None
    timestamp: str


class StateResponse(BaseModel):
    session: SessionModel
    gestures: dict
    voice: dict
    timestamp: str


class NotificationModel(BaseModel):
    level: str
    message: str
    timestamp: float


def create_app(cfg: Cfg, controller: Optional[HandsFreeController] = None) -> FastAPI:
    """
    Build the control server.

    Args:
        cfg: Loaded configuration
        controller: Pre-built controller (mock surface, tests); if None the
            lifespan launches the browser and builds one
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Launch the browser and controller on startup, tear down on shutdown"""
        browser: Optional[BrowserSession] = None
        if controller is None:
            logger.info("🚀 Starting Clinic Hands-Free Interpreter...")
            browser = BrowserSession(cfg.server)
            surface = await browser.start()
            await surface.install_highlight_style(cfg.gestures.highlight_class)
            app.state.controller = HandsFreeController(cfg, surface)
            logger.info("✅ Browser ready")
        else:
            app.state.controller = controller
        app.state.browser = browser

        yield

        logger.info("🧹 Shutting down server...")
        try:
            await app.state.controller.close()
        except Exception as e:
            logger.error(f"⚠️ Error stopping pipelines: {e}")
        if browser is not None:
            await browser.close()

    app = FastAPI(
        title="Clinic Hands-Free Interpreter API",
        description="Gesture and voice control for the dental clinic web application",
        version="1.0.0",
        lifespan=lifespan
    )

    def get_controller() -> HandsFreeController:
        return app.state.controller

    def toggle_response(enabled: bool) -> ToggleResponse:
        ctrl = get_controller()
        return ToggleResponse(
            success=enabled,
            enabled=enabled,
            error=None if enabled else ctrl.session.last_error,
            timestamp=datetime.now().isoformat()
        )

    @app.get("/")
    async def root():
        """Health check endpoint"""
        ctrl = get_controller()
        browser = app.state.browser
        return {
            "status": "online",
            "service": "Clinic Hands-Free Interpreter",
            "browser_connected": browser.connected if browser is not None else False,
            "gestures_supported": ctrl.gestures_supported,
            "voice_supported": ctrl.voice_supported,
        }

    @app.get("/state", response_model=StateResponse)
    async def get_state():
        """Session flags and pipeline status for passive display"""
        status = get_controller().status()
        return StateResponse(
            session=SessionModel(**status["session"]),
            gestures=status["gestures"],
            voice=status["voice"],
            timestamp=datetime.now().isoformat()
        )

    @app.post("/gestures/enable", response_model=ToggleResponse)
    async def enable_gestures():
        ctrl = get_controller()
        enabled = await ctrl.enable_gestures()
        if not ctrl.gestures_supported:
            raise HTTPException(status_code=503, detail="Gesture control is not supported")
        return toggle_response(enabled)

    @app.post("/gestures/disable", response_model=ToggleResponse)
    async def disable_gestures():
        await get_controller().disable_gestures()
        return ToggleResponse(success=True, enabled=False, timestamp=datetime.now().isoformat())

    @app.post("/voice/enable", response_model=ToggleResponse)
    async def enable_voice():
        ctrl = get_controller()
        enabled = await ctrl.enable_voice()
        if not ctrl.voice_supported:
            raise HTTPException(status_code=503, detail="Voice commands are not supported")
        return toggle_response(enabled)

    @app.post("/voice/disable", response_model=ToggleResponse)
    async def disable_voice():
        await get_controller().disable_voice()
        return ToggleResponse(success=True, enabled=False, timestamp=datetime.now().isoformat())

    @app.get("/notifications", response_model=List[NotificationModel])
    async def get_notifications(limit: int = 20):
        """Recent command outcomes"""
        notifier = get_controller().notifier
        if not isinstance(notifier, NotificationLog):
            return []
        return [NotificationModel(level=n.level, message=n.message, timestamp=n.timestamp)
                for n in notifier.recent(limit)]

    return app
