from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Iterator
from urllib.parse import quote

from ..config import Settings
from ..exceptions import ConfigError, SessionError
from ..models import DeviceProfile

_logger = logging.getLogger(__name__)

IOS_BROWSER = "playwright-webkit"
DEFAULT_BROWSER = "chrome"


def browser_for(device: DeviceProfile) -> str:
    return IOS_BROWSER if device.os.lower() == "ios" else DEFAULT_BROWSER


def build_capabilities(
    device: DeviceProfile,
    username: str | None,
    access_key: str | None,
    *,
    project_name: str = "Video Test",
    build_prefix: str = "Video Play Test",
    today: date | None = None,
) -> dict[str, Any]:
    """Remote grid capabilities for one real mobile *device*."""
    if not username or not access_key:
        raise ConfigError(
            "BROWSERSTACK_USERNAME and BROWSERSTACK_ACCESS_KEY are required"
        )
    run_date = (today or date.today()).isoformat()
    return {
        "browser": browser_for(device),
        "deviceName": device.device,
        "osVersion": device.os_version,
        "realMobile": "true",
        "project": project_name,
        "build": f"{build_prefix} - {run_date}",
        "name": f"{device.device} Session",
        "browserstack.username": username,
        "browserstack.accessKey": access_key,
        "browserstack.debug": "true",
        "browserstack.networkLogs": "true",
        "browserstack.console": "info",
    }


def build_ws_endpoint(hub_url: str, capabilities: dict[str, Any]) -> str:
    return f"{hub_url}?caps={quote(json.dumps(capabilities))}"


@contextmanager
def open_remote_session(cfg: Settings, device: DeviceProfile) -> Iterator[Any]:
    """Open one remote browser session for *device* and yield its page.

    Raises SessionError if the hub refuses the connection. The browser is
    closed exactly once when the block exits, however it exits.
    """
    from playwright.sync_api import sync_playwright

    caps = build_capabilities(
        device,
        cfg.BROWSERSTACK_USERNAME,
        cfg.BROWSERSTACK_ACCESS_KEY,
        project_name=cfg.PROJECT_NAME,
        build_prefix=cfg.BUILD_NAME_PREFIX,
    )
    endpoint = build_ws_endpoint(cfg.BROWSERSTACK_HUB_URL, caps)

    # Targets the grid's Playwright CDP endpoint; the device is chosen from
    # the deviceName/osVersion/realMobile caps. The Python client has no
    # Android connect API, so chromium.connect is the only entry point.
    pw = sync_playwright().start()
    try:
        browser = pw.chromium.connect(endpoint, timeout=cfg.SESSION_CONNECT_TIMEOUT_MS)
    except Exception as exc:
        pw.stop()
        raise SessionError(f"Failed to connect to remote browser: {exc}") from exc

    _logger.info("Connected to remote session on %s (%s %s)",
                 device.device, device.os, device.os_version)
    try:
        page = browser.new_page()
        yield page
    finally:
        _logger.info("Closing remote session")
        try:
            browser.close()
        except Exception as exc:
            _logger.warning("Error while closing remote session: %s", exc)
        pw.stop()
