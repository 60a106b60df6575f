"""FastAPI dependencies for artifact routes.

Both values are created once by `create_app()` and stored on `app.state`;
handlers never build their own.
"""

from fastapi import Request

from spmhost.artifacts.cleaner import EvictionScheduler
from spmhost.core.config import StorageConfig


def get_storage_config(request: Request) -> StorageConfig:
    return request.app.state.storage_config


def get_eviction_scheduler(request: Request) -> EvictionScheduler:
    return request.app.state.eviction_scheduler
