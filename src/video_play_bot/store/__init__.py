from __future__ import annotations

from .queue import QueueStore, create_queue_engine
from .schema import Base, VideoUrl

__all__ = ["Base", "QueueStore", "VideoUrl", "create_queue_engine"]
