from __future__ import annotations

import logging

from ..config import Settings
from ..models import PreflightResult

logger = logging.getLogger(__name__)


def run_preflight(cfg: Settings) -> PreflightResult:
    """Check required configuration before anything touches the outside world.

    Returns a :class:`PreflightResult` whose ``.ok`` attribute indicates pass/fail.
    """
    results: list[dict] = []

    def record(level: int, name: str, ok: bool, detail: str = "") -> None:
        results.append({"LEVEL": level, "NAME": name, "OK": ok, "DETAIL": detail})

    # LEVEL 0: required settings
    record(
        0, "Database location", bool(cfg.DATABASE_URL),
        "DATABASE_URL environment variable is required.",
    )
    record(
        0, "Automation credentials",
        bool(cfg.BROWSERSTACK_USERNAME) and bool(cfg.BROWSERSTACK_ACCESS_KEY),
        "BROWSERSTACK_USERNAME and BROWSERSTACK_ACCESS_KEY environment variables are required.",
    )

    # LEVEL 1: advisory only
    if cfg.CAPTURE_ARTIFACTS_ON_ERROR and not cfg.ARTIFACT_DIR:
        record(1, "Artifact capture", True, "ARTIFACT_DIR unset; screenshots disabled.")

    ok = all(r["OK"] for r in results if r["LEVEL"] == 0)

    for r in results:
        if not r["OK"]:
            logger.error("Preflight [FAIL] %s: %s", r["NAME"], r["DETAIL"])
    if ok:
        logger.debug("Preflight passed.")

    return PreflightResult(ok=ok, results=results)
