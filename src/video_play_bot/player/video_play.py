from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NamedTuple, Sequence

from ..config import Settings
from ..models import QueuedVideo, TestResult

_logger = logging.getLogger(__name__)

PLAY_BUTTON_NOT_FOUND = "Play button not found"


class LookupStrategy(NamedTuple):
    selector: str
    timeout_ms: int = 5_000


# Tried in order; the first selector that resolves wins.
PLAY_CONTROL_STRATEGIES: tuple[LookupStrategy, ...] = (
    LookupStrategy("div.videoPlayer_videoPlayer__rl3_b.videoPlayer_videoPlayIcon__6H_mJ"),
    LookupStrategy('div[class*="videoPlayIcon"]'),
    LookupStrategy('div[class*="videoPlayer_videoPlayIcon"]'),
    LookupStrategy('div[class*="videoPlayer"] img[alt=""]'),
    LookupStrategy('xpath=//div[contains(@class, "videoPlayIcon")]'),
)


def find_play_control(page, strategies: Sequence[LookupStrategy]) -> Any | None:
    """Return the first element matched by *strategies*, or None."""
    for strategy in strategies:
        try:
            element = page.wait_for_selector(strategy.selector, timeout=strategy.timeout_ms)
        except Exception as exc:
            _logger.debug("Selector %s did not match: %s", strategy.selector, exc)
            continue
        if element is not None:
            _logger.info("    Play button found with selector: %s", strategy.selector)
            return element
    return None


def play_video(
    page,
    video: QueuedVideo,
    store,
    device_name: str,
    cfg: Settings,
    *,
    strategies: Sequence[LookupStrategy] | None = None,
    index: int | None = None,
) -> TestResult:
    """Open *video* in the session, press play and record the outcome.

    Success increments the view count; any failure marks the row as a
    terminal error, written once. Page-level problems never raise; a
    database error from ``mark_error`` does.
    """
    if strategies is None:
        strategies = [
            s._replace(timeout_ms=cfg.LOOKUP_TIMEOUT_MS) for s in PLAY_CONTROL_STRATEGIES
        ]
    result = TestResult(id=video.id, url=video.url)
    ctx = {"video_id": video.id, "device": device_name}
    label = f"[{index}] " if index is not None else ""
    _logger.info("%sTesting %s", label, video.url, extra=ctx)
    _logger.info("    Current views: %d", video.view_count, extra=ctx)

    # Page phase: only browser errors are caught here.
    try:
        page.goto(video.url, timeout=cfg.PAGE_LOAD_TIMEOUT_MS)
        _logger.info("    Page loaded", extra=ctx)
        page.wait_for_timeout(cfg.PAGE_SETTLE_MS)

        play_button = find_play_control(page, strategies)

        if play_button is not None:
            result.play_button_found = True
            play_button.click()
            result.play_button_clicked = True
            _logger.info("    Play button clicked", extra=ctx)

            _logger.info("    Waiting %.0fs for video...", cfg.PLAY_DWELL_MS / 1000, extra=ctx)
            page.wait_for_timeout(cfg.PLAY_DWELL_MS)
            result.success = True
        else:
            result.error = PLAY_BUTTON_NOT_FOUND
    except Exception as exc:
        result.error = str(exc)

    if result.success:
        try:
            store.update_view_count(video.id, device_name)
            _logger.info("    Test PASSED, view count updated", extra=ctx)
        except Exception as exc:
            result.success = False
            result.error = str(exc)

    if not result.success:
        _logger.warning("    Test FAILED: %s", result.error, extra=ctx)
        _capture_failure(page, video, cfg)
        store.mark_error(video.id, result.error or "")

    return result


def _capture_failure(page, video: QueuedVideo, cfg: Settings) -> None:
    """Save a screenshot of the failed page for debugging."""
    if not cfg.CAPTURE_ARTIFACTS_ON_ERROR or not cfg.ARTIFACT_DIR:
        return
    try:
        path = Path(cfg.ARTIFACT_DIR) / f"play_{video.id}.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        page.screenshot(path=str(path))
        _logger.debug("Saved artifact screenshot to %s", path)
    except Exception as exc:
        _logger.debug("Could not save screenshot for %s: %s", video.url, exc)
