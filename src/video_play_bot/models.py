from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


class VideoStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class DeviceProfile:
    """One entry of the mobile device catalog."""

    device: str
    os: str
    os_version: str
    real_mobile: bool = True
    browser: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.device, self.os_version)


@dataclass
class NewVideoUrl:
    url: str
    user_name: str | None = None
    post_id: str | None = None
    caption: str | None = None


@dataclass
class QueuedVideo:
    """A row picked for the current batch."""

    id: int
    url: str
    user_name: str | None = None
    post_id: str | None = None
    view_count: int = 0


@dataclass
class TestResult:
    """Outcome of playing one queued video."""

    __test__ = False  # not a pytest test class

    id: int
    url: str
    success: bool = False
    play_button_found: bool = False
    play_button_clicked: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class QueueStats:
    total: int = 0
    total_views: int = 0
    errors: int = 0
    avg_views: float = 0.0


@dataclass
class BatchResult:
    """Outcome of a ``run_batch()`` invocation."""

    device: DeviceProfile | None = None
    results: list[TestResult] = field(default_factory=list)
    stats: QueueStats | None = None

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def ok(self) -> bool:
        return self.failed == 0


@dataclass
class PreflightResult:
    """Outcome of ``run_preflight()``."""

    ok: bool
    results: list[dict] = field(default_factory=list)
