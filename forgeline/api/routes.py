"""HTTP routes for config, engine discovery and build jobs.

Errors are returned as ``{"error": "<message>"}`` with 400 for invalid
request bodies or start input, 404 for unknown build ids and 409 for conflicts.
"""

from __future__ import annotations

import logging
import re
from http import HTTPStatus

from fastapi import APIRouter, Depends, Query
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from forgeline.api.dependencies import (
    EngineDetector,
    get_build_manager,
    get_config_store,
    get_engine_detector,
)
from forgeline.core.build_manager import BuildManager
from forgeline.models.config import EngineDetectResponse, UserConfig
from forgeline.models.jobs import (
    ActiveBuildResponse,
    BuildLogsResponse,
    BuildStartRequest,
    BuildStartResponse,
    BuildStatus,
)
from forgeline.store.config_store import ConfigStore

logger = logging.getLogger(__name__)

router = APIRouter()

BUILD_NOT_FOUND = "Build not found."
BUILD_NOT_RUNNING = "Build not running."

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def error_response(status: HTTPStatus, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


def describe_validation_error(exc: RequestValidationError) -> str:
    """First body/query error as ``Invalid request: <field>: <reason>``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    reason = first.get("msg", "invalid value")
    return f"Invalid request: {field}: {reason}" if field else f"Invalid request: {reason}"


def parse_cursor(raw: str | None) -> int:
    """Parse the leading integer of the ``from`` query value.

    ``"12abc"`` and ``"1.5"`` read as 12 and 1; anything without a leading
    integer, or negative, is 0.
    """
    match = _LEADING_INT_RE.match(raw) if raw is not None else None
    if match is None:
        return 0
    return max(0, int(match.group(1)))


@router.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


# ---------------------------------------------------------------------------
# Config & discovery
# ---------------------------------------------------------------------------


@router.get("/config", response_model=UserConfig)
def read_config(store: ConfigStore = Depends(get_config_store)) -> UserConfig:
    return store.load()


@router.post("/config")
def write_config(
    config: UserConfig, store: ConfigStore = Depends(get_config_store)
) -> dict[str, bool]:
    store.save(config)
    return {"ok": True}


@router.get("/engine/detect", response_model=EngineDetectResponse)
def detect_engines(detector: EngineDetector = Depends(get_engine_detector)):
    try:
        installs = detector()
    except Exception as exc:
        logger.exception("Engine detection error")
        return error_response(
            HTTPStatus.INTERNAL_SERVER_ERROR,
            str(exc) or "Failed to detect Unreal Engine installs.",
        )
    return EngineDetectResponse(installs=installs)


# ---------------------------------------------------------------------------
# Builds
# ---------------------------------------------------------------------------


@router.post("/build/start", response_model=BuildStartResponse)
def start_build(
    payload: BuildStartRequest, manager: BuildManager = Depends(get_build_manager)
) -> BuildStartResponse:
    # BuildValidationError / BuildConflictError are mapped by the app handlers
    return BuildStartResponse(job_id=manager.start_build(payload))


@router.get("/build/active", response_model=ActiveBuildResponse)
def active_build(manager: BuildManager = Depends(get_build_manager)) -> ActiveBuildResponse:
    return ActiveBuildResponse(job_id=manager.active_job_id)


@router.get("/build/{job_id}/status", response_model=BuildStatus)
def build_status(job_id: str, manager: BuildManager = Depends(get_build_manager)):
    status = manager.get_status(job_id)
    if status is None:
        return error_response(HTTPStatus.NOT_FOUND, BUILD_NOT_FOUND)
    return status


@router.get("/build/{job_id}/logs", response_model=BuildLogsResponse)
def build_logs(
    job_id: str,
    from_: str | None = Query(None, alias="from"),
    manager: BuildManager = Depends(get_build_manager),
):
    logs = manager.get_logs(job_id, parse_cursor(from_))
    if logs is None:
        return error_response(HTTPStatus.NOT_FOUND, BUILD_NOT_FOUND)
    return logs


@router.post("/build/{job_id}/cancel")
def cancel_build(job_id: str, manager: BuildManager = Depends(get_build_manager)):
    if not manager.cancel_build(job_id):
        return error_response(HTTPStatus.CONFLICT, BUILD_NOT_RUNNING)
    return {"ok": True}
