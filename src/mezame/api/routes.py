"""FastAPI routes for the Mezame JSON API."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mezame import __version__
from mezame.api.models import (
    DeviceCreatedResponse,
    DeviceListResponse,
    DeviceModel,
    DeviceUpdate,
    HealthResponse,
    MessageResponse,
    WakeMultipleRequest,
    WakeMultipleResponseModel,
    WakeResultResponse,
)
from mezame.core.batch import BatchWaker
from mezame.core.device import Device
from mezame.core.mac import parse_mac
from mezame.core.registry import DeviceRegistry, DuplicateName, NotFound
from mezame.core.wol import wake

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path.home() / ".config" / "mezame" / "config.yaml"


def _device_model(device: Device) -> DeviceModel:
    return DeviceModel(name=device.name, mac=device.mac, ip=device.ip, broadcast=device.broadcast)


def create_app(config_path: Optional[str] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The device registry is built once from the config file and shared by
    every request through ``app.state``.

    Args:
        config_path: Path to mezame config.yaml. If None, uses the default location.

    Returns:
        FastAPI application instance
    """
    from mezame.config.loader import load_config, settings_from_config
    from mezame.config.store import YamlDeviceStore

    _config_path = Path(config_path) if config_path else DEFAULT_CONFIG

    if not _config_path.exists():
        logger.warning("Config not found at %s — starting with no devices", _config_path)
    # The store validates the file, so build it before reading settings.
    registry = DeviceRegistry(YamlDeviceStore(_config_path))
    raw = (load_config(_config_path) if _config_path.exists() else None) or {}
    settings = settings_from_config(raw)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Serving %d device(s) from %s", len(registry), _config_path)
        yield
        registry.flush()

    app = FastAPI(
        title="Mezame",
        version=__version__,
        description="Wake-on-LAN device registry",
        lifespan=lifespan,
    )

    # ── App state ─────────────────────────────────────────────────────────────
    app.state.config_path = _config_path
    app.state.settings = settings
    app.state.registry = registry
    app.state.waker = BatchWaker(
        registry,
        broadcast=settings["broadcast"],
        port=settings["port"],
        max_workers=settings["max_workers"],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings["cors_origins"]),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error mapping ─────────────────────────────────────────────────────────

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=404)

    @app.exception_handler(DuplicateName)
    async def _duplicate(request: Request, exc: DuplicateName) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=409)

    @app.exception_handler(ValueError)
    async def _invalid(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=400)

    # ── Devices ───────────────────────────────────────────────────────────────

    @app.get("/api/health", response_model=HealthResponse)
    async def get_health() -> HealthResponse:
        return HealthResponse(status="ok", devices=len(registry))

    @app.get("/api/devices", response_model=DeviceListResponse)
    def list_devices() -> DeviceListResponse:
        devices = registry.list()
        return DeviceListResponse(devices=[_device_model(d) for d in devices], count=len(devices))

    @app.get("/api/devices/{name}", response_model=DeviceModel)
    def get_device(name: str) -> DeviceModel:
        return _device_model(registry.get(name))

    @app.post("/api/devices", response_model=DeviceCreatedResponse, status_code=201)
    def add_device(req: DeviceModel) -> DeviceCreatedResponse:
        device = registry.add(
            Device(name=req.name, mac=req.mac, ip=req.ip, broadcast=req.broadcast)
        )
        return DeviceCreatedResponse(
            message=f"Device '{device.name}' added", device=_device_model(device)
        )

    @app.put("/api/devices/{name}", response_model=MessageResponse)
    def update_device(name: str, req: DeviceUpdate) -> MessageResponse:
        device = registry.update(name, **req.model_dump(exclude_unset=True))
        return MessageResponse(message=f"Device '{device.name}' updated")

    @app.delete("/api/devices/{name}", response_model=MessageResponse)
    def delete_device(name: str) -> MessageResponse:
        registry.remove(name)
        return MessageResponse(message=f"Device '{name}' deleted")

    # ── Wake ──────────────────────────────────────────────────────────────────

    @app.get("/api/wake", response_model=WakeResultResponse)
    def get_wake(
        device: Optional[str] = None,
        mac: Optional[str] = None,
        broadcast: Optional[str] = None,
        port: Optional[int] = Query(None, ge=1, le=65535),
    ) -> JSONResponse:
        waker: BatchWaker = app.state.waker
        if device:
            result = waker.wake_one(device)
        elif mac:
            # Reject malformed input before anything reaches the network.
            parse_mac(mac)
            result = wake(
                mac,
                broadcast=broadcast or settings["broadcast"],
                port=port if port is not None else settings["port"],
            )
        else:
            return JSONResponse(
                {"error": "Provide either 'device' or 'mac' query parameter"}, status_code=400
            )
        return JSONResponse(result.to_dict())

    @app.post("/api/wake-all", response_model=WakeMultipleResponseModel)
    def post_wake_all() -> JSONResponse:
        response = app.state.waker.wake_all()
        return JSONResponse(response.to_dict())

    @app.post("/api/wake-multiple", response_model=WakeMultipleResponseModel)
    def post_wake_multiple(req: WakeMultipleRequest) -> JSONResponse:
        if not req.devices:
            return JSONResponse({"error": "'devices' must be a non-empty list"}, status_code=400)
        response = app.state.waker.wake_multiple(req.devices)
        return JSONResponse(response.to_dict(include_not_found=True))

    return app

