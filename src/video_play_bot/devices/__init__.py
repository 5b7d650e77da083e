from __future__ import annotations

from .catalog import FALLBACK_DEVICES, get_random_device, load_mobile_devices

__all__ = ["FALLBACK_DEVICES", "get_random_device", "load_mobile_devices"]
