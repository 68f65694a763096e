"""Request-scoped access to the services held on ``app.state``."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from forgeline.core.build_manager import BuildManager
from forgeline.models.config import EngineInstall
from forgeline.store.config_store import ConfigStore

EngineDetector = Callable[[], list[EngineInstall]]


def get_build_manager(request: Request) -> BuildManager:
    return request.app.state.build_manager


def get_config_store(request: Request) -> ConfigStore:
    return request.app.state.config_store


def get_engine_detector(request: Request) -> EngineDetector:
    return request.app.state.engine_detector
