from __future__ import annotations

import logging
import random
from typing import Callable, ContextManager, Any

from .config import Settings
from .devices.catalog import get_random_device, load_mobile_devices
from .exceptions import PreflightError
from .models import BatchResult, DeviceProfile
from .player.video_play import play_video
from .preflight.checks import run_preflight
from .session.remote import open_remote_session
from .store.queue import QueueStore

_logger = logging.getLogger(__name__)

SessionOpener = Callable[[Settings, DeviceProfile], ContextManager[Any]]


def run_batch(
    cfg: Settings,
    *,
    store: QueueStore | None = None,
    open_session: SessionOpener | None = None,
    rng: random.Random | None = None,
) -> BatchResult:
    """Play the next batch of queued videos on one random remote device.

    Raises PreflightError before any side effect when required settings are
    missing, and SessionError when the remote session cannot be opened. The
    queue store is closed on every exit path.
    """
    if open_session is None:
        open_session = open_remote_session

    preflight = run_preflight(cfg)
    if not preflight.ok:
        raise PreflightError(preflight.results)

    _logger.info("Loading devices from %s", cfg.DEVICES_JSON_PATH)
    devices = load_mobile_devices(cfg.DEVICES_JSON_PATH)
    _logger.info("Total mobile devices available: %d", len(devices))

    if store is None:
        store = QueueStore.from_url(cfg.DATABASE_URL or "", sslmode=cfg.DB_SSLMODE)

    try:
        store.init_schema()

        _logger.info("Fetching next batch of %d videos", cfg.BATCH_SIZE,
                     extra={"batch_size": cfg.BATCH_SIZE})
        videos = store.get_next_batch(cfg.BATCH_SIZE)
        if not videos:
            _logger.info("No videos to test")
            return BatchResult()
        _logger.info("Found %d videos to test", len(videos))

        device = get_random_device(devices, rng=rng)
        _logger.info("Selected device: %s (%s %s)", device.device, device.os, device.os_version,
                     extra={"device": device.device})

        result = BatchResult(device=device)
        with open_session(cfg, device) as page:
            for i, video in enumerate(videos):
                result.results.append(
                    play_video(page, video, store, device.device, cfg, index=i + 1)
                )
                if i < len(videos) - 1:
                    page.wait_for_timeout(cfg.INTER_VIDEO_GAP_MS)

        result.stats = store.get_stats()
        return result
    finally:
        store.close()
