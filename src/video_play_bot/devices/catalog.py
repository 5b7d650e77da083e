from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Sequence

from ..models import DeviceProfile

_logger = logging.getLogger(__name__)

FALLBACK_DEVICES: tuple[DeviceProfile, ...] = (
    DeviceProfile("Samsung Galaxy S21", "android", "12.0", True, "chrome"),
    DeviceProfile("Samsung Galaxy S22", "android", "12.0", True, "chrome"),
    DeviceProfile("Google Pixel 6", "android", "12.0", True, "chrome"),
)


def load_mobile_devices(path: str | Path) -> list[DeviceProfile]:
    """Load real mobile devices from a local ``browsers.json`` catalog.

    Keeps entries flagged ``real_mobile: true`` and drops repeats of the same
    ``(device, os_version)`` pair, first one wins. Any read or parse failure
    yields :data:`FALLBACK_DEVICES` instead of an exception.
    """
    p = Path(path)
    try:
        entries = json.loads(p.read_text(encoding="utf-8"))
        if not isinstance(entries, list):
            raise ValueError(f"expected a JSON list, got {type(entries).__name__}")
        devices = _unique_real_devices(entries)
    except (OSError, ValueError, TypeError, KeyError) as exc:
        _logger.warning("Failed to load %s: %s; using fallback devices", p, exc)
        return list(FALLBACK_DEVICES)

    if not devices:
        _logger.warning("No real mobile devices in %s; using fallback devices", p)
        return list(FALLBACK_DEVICES)

    _logger.info("Loaded %d unique mobile devices from %s", len(devices), p)
    return devices


def _unique_real_devices(entries: list) -> list[DeviceProfile]:
    seen: set[tuple[str, str]] = set()
    devices: list[DeviceProfile] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise TypeError(f"device entry must be an object, got {entry!r}")
        if entry.get("real_mobile") is not True:
            continue
        profile = DeviceProfile(
            device=str(entry["device"]),
            os=str(entry["os"]),
            os_version=str(entry["os_version"]),
            real_mobile=True,
            browser=entry.get("browser"),
        )
        if profile.key in seen:
            continue
        seen.add(profile.key)
        devices.append(profile)
    return devices


def get_random_device(
    devices: Sequence[DeviceProfile], rng: random.Random | None = None,
) -> DeviceProfile:
    if not devices:
        raise ValueError("Cannot pick a device from an empty catalog")
    return (rng or random).choice(devices)
