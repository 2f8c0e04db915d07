"""FastAPI endpoints for player and admin websockets and admin overrides."""

from __future__ import annotations

import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Literal

from fastapi import Depends, FastAPI, Header, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic import ValidationError as MessageFormatError

from .admin import AdminControls
from .broadcast import BroadcastHub
from .clock import RoundClock
from .config import RoyaleSettings, load_settings
from .engine import RoundOrchestrator
from .errors import StateConflict, ValidationError
from .models import AdminResult
from .narrative import Narrator, create_narrator
from .security import generate_identity, verify_admin_key
from .state import error_event, welcome_event

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 40


class ClientMessage(BaseModel):
    type: Literal["enroll", "unenroll"]
    name: str | None = Field(default=None, max_length=MAX_NAME_LENGTH)


class AdminResponse(BaseModel):
    success: bool
    message: str


class ServiceStatusResponse(BaseModel):
    message: str
    status: str


def _admin_response(result: AdminResult) -> AdminResponse:
    return AdminResponse(success=result.success, message=result.message)


def create_app(
    settings: RoyaleSettings | None = None,
    narrator: Narrator | None = None,
    clock: RoundClock | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    app_settings = settings if settings is not None else load_settings()
    round_narrator = (
        narrator if narrator is not None else create_narrator(app_settings.openai_api_key, app_settings.openai_model)
    )
    hub = BroadcastHub()
    orchestrator = RoundOrchestrator(
        settings=app_settings,
        narrator=round_narrator,
        publish=hub.publish,
        clock=clock,
        rng=rng,
    )
    controls = AdminControls(orchestrator=orchestrator, hub=hub)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        orchestrator.shutdown()

    app = FastAPI(title="RumbleRoyale API", version="0.1.0", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.hub = hub
    app.state.admin = controls

    def get_controls() -> AdminControls:
        return controls

    def require_admin(x_admin_key: str | None = Header(default=None)) -> None:
        if not verify_admin_key(x_admin_key, app_settings.admin_key):
            raise HTTPException(status_code=403, detail="Admin key required")

    def handle_client_message(identity: str, raw: str) -> None:
        try:
            message = ClientMessage.model_validate_json(raw)
        except MessageFormatError:
            hub.send_to(identity, error_event("INVALID_MESSAGE", "Message not understood"))
            return
        try:
            if message.type == "enroll":
                orchestrator.enroll(identity, message.name or "")
            else:
                orchestrator.unenroll(identity)
        except (ValidationError, StateConflict) as exc:
            hub.send_to(identity, error_event(exc.code, str(exc)))

    @app.get("/", response_model=ServiceStatusResponse)
    def root() -> ServiceStatusResponse:
        return ServiceStatusResponse(message="RumbleRoyale API", status="ok")

    @app.get("/health", response_model=ServiceStatusResponse)
    def health() -> ServiceStatusResponse:
        return ServiceStatusResponse(message="RumbleRoyale API", status="healthy")

    @app.get("/api/state")
    async def get_state() -> dict[str, Any]:
        return orchestrator.players_update()

    @app.post("/admin/force-end", response_model=AdminResponse, dependencies=[Depends(require_admin)])
    async def force_end(local_controls: AdminControls = Depends(get_controls)) -> AdminResponse:
        return _admin_response(local_controls.force_end())

    @app.post("/admin/reset", response_model=AdminResponse, dependencies=[Depends(require_admin)])
    async def reset(local_controls: AdminControls = Depends(get_controls)) -> AdminResponse:
        return _admin_response(local_controls.reset())

    @app.post("/admin/kick-all", response_model=AdminResponse, dependencies=[Depends(require_admin)])
    async def kick_all(local_controls: AdminControls = Depends(get_controls)) -> AdminResponse:
        return _admin_response(local_controls.kick_all())

    @app.post("/admin/start-round", response_model=AdminResponse, dependencies=[Depends(require_admin)])
    async def start_round(local_controls: AdminControls = Depends(get_controls)) -> Any:
        response = _admin_response(local_controls.start_round())
        if not response.success:
            return JSONResponse(status_code=400, content=response.model_dump())
        return response

    @app.websocket("/ws")
    async def player_ws(websocket: WebSocket) -> None:
        await websocket.accept()
        identity = generate_identity()
        observer = hub.attach(
            identity,
            websocket,
            initial=[welcome_event(identity, admin=False), orchestrator.players_update()],
        )
        sender = asyncio.create_task(hub.pump(observer))
        orchestrator.connect(identity)

        try:
            while True:
                handle_client_message(identity, await websocket.receive_text())
        except (WebSocketDisconnect, RuntimeError):
            pass
        finally:
            hub.detach(identity)
            sender.cancel()
            orchestrator.disconnect(identity)

    @app.websocket("/ws/admin")
    async def admin_ws(websocket: WebSocket) -> None:
        if not verify_admin_key(websocket.query_params.get("key"), app_settings.admin_key):
            await websocket.close(code=1008)
            return

        await websocket.accept()
        identity = f"admin-{generate_identity()}"
        observer = hub.attach(
            identity,
            websocket,
            admin=True,
            initial=[
                welcome_event(identity, admin=True),
                orchestrator.players_update(),
                orchestrator.stats_update(),
            ],
        )
        sender = asyncio.create_task(hub.pump(observer))

        try:
            while True:
                await websocket.receive_text()
        except (WebSocketDisconnect, RuntimeError):
            pass
        finally:
            hub.detach(identity)
            sender.cancel()

    return app


app = create_app()
