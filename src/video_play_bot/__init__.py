from __future__ import annotations

from .config import Settings, load_settings
from .run import run_batch
from .preflight.checks import run_preflight
from .exceptions import VideoBotError, ConfigError, PreflightError, SessionError, PersistenceError
from .models import BatchResult, DeviceProfile, PreflightResult, QueuedVideo, QueueStats, TestResult
from .store.queue import QueueStore

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "run_batch",
    "run_preflight",
    "Settings",
    "load_settings",
    "BatchResult",
    "DeviceProfile",
    "PreflightResult",
    "QueuedVideo",
    "QueueStats",
    "TestResult",
    "QueueStore",
    "VideoBotError",
    "ConfigError",
    "PreflightError",
    "SessionError",
    "PersistenceError",
]
