from __future__ import annotations

import json
from datetime import date
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from video_play_bot.config import Settings
from video_play_bot.exceptions import ConfigError, SessionError
from video_play_bot.models import DeviceProfile
from video_play_bot.session.remote import (
    build_capabilities,
    build_ws_endpoint,
    open_remote_session,
)

ANDROID = DeviceProfile("Google Pixel 6", "android", "12.0")
IPHONE = DeviceProfile("iPhone 14", "ios", "16")


def _make_cfg(**overrides) -> Settings:
    base = dict(
        BROWSERSTACK_USERNAME="alice",
        BROWSERSTACK_ACCESS_KEY="s3cret",
        BROWSERSTACK_HUB_URL="wss://hub.example.com/playwright",
        SESSION_CONNECT_TIMEOUT_MS=1_000,
    )
    base.update(overrides)
    return Settings(**base)


# ---------------------------------------------------------------------------
# build_capabilities
# ---------------------------------------------------------------------------

class TestBuildCapabilities:
    def test_android_uses_chrome(self):
        caps = build_capabilities(ANDROID, "alice", "s3cret")
        assert caps["browser"] == "chrome"

    def test_ios_uses_webkit(self):
        caps = build_capabilities(IPHONE, "alice", "s3cret")
        assert caps["browser"] == "playwright-webkit"

    def test_ios_case_insensitive(self):
        caps = build_capabilities(DeviceProfile("iPad", "iOS", "17"), "a", "b")
        assert caps["browser"] == "playwright-webkit"

    def test_labels_and_flags(self):
        caps = build_capabilities(ANDROID, "alice", "s3cret", today=date(2025, 3, 9))
        assert caps["deviceName"] == "Google Pixel 6"
        assert caps["osVersion"] == "12.0"
        assert caps["project"] == "Video Test"
        assert caps["build"] == "Video Play Test - 2025-03-09"
        assert caps["name"] == "Google Pixel 6 Session"
        assert caps["browserstack.username"] == "alice"
        assert caps["browserstack.accessKey"] == "s3cret"
        assert caps["browserstack.debug"] == "true"
        assert caps["browserstack.networkLogs"] == "true"
        assert caps["browserstack.console"] == "info"

    @pytest.mark.parametrize("user,key", [(None, "k"), ("u", None), ("", "k"), ("u", "")])
    def test_missing_credentials(self, user, key):
        with pytest.raises(ConfigError):
            build_capabilities(ANDROID, user, key)


class TestBuildWsEndpoint:
    def test_caps_round_trip_in_query(self):
        caps = build_capabilities(ANDROID, "alice", "s3cret")
        endpoint = build_ws_endpoint("wss://hub.example.com/playwright", caps)
        parsed = urlparse(endpoint)
        assert parsed.netloc == "hub.example.com"
        assert json.loads(parse_qs(parsed.query)["caps"][0]) == caps


# ---------------------------------------------------------------------------
# open_remote_session
# ---------------------------------------------------------------------------

def _mock_playwright():
    pw = MagicMock(name="playwright")
    browser = pw.chromium.connect.return_value
    starter = MagicMock()
    starter.return_value.start.return_value = pw
    return starter, pw, browser


class TestOpenRemoteSession:
    def test_yields_page_and_closes_once(self):
        starter, pw, browser = _mock_playwright()
        with patch("playwright.sync_api.sync_playwright", starter):
            with open_remote_session(_make_cfg(), ANDROID) as page:
                assert page is browser.new_page.return_value
        browser.close.assert_called_once()
        pw.stop.assert_called_once()
        endpoint = pw.chromium.connect.call_args.args[0]
        assert endpoint.startswith("wss://hub.example.com/playwright?caps=")
        assert pw.chromium.connect.call_args.kwargs["timeout"] == 1_000

    def test_closes_once_on_error(self):
        starter, pw, browser = _mock_playwright()
        with patch("playwright.sync_api.sync_playwright", starter):
            with pytest.raises(RuntimeError):
                with open_remote_session(_make_cfg(), ANDROID):
                    raise RuntimeError("boom")
        browser.close.assert_called_once()
        pw.stop.assert_called_once()

    def test_close_failure_does_not_mask_error(self):
        starter, pw, browser = _mock_playwright()
        browser.close.side_effect = RuntimeError("already gone")
        with patch("playwright.sync_api.sync_playwright", starter):
            with pytest.raises(ValueError):
                with open_remote_session(_make_cfg(), ANDROID):
                    raise ValueError("loop failure")
        pw.stop.assert_called_once()

    def test_connect_failure_raises_session_error(self):
        starter, pw, browser = _mock_playwright()
        pw.chromium.connect.side_effect = RuntimeError("401 Unauthorized")
        body = MagicMock()
        with patch("playwright.sync_api.sync_playwright", starter):
            with pytest.raises(SessionError, match="401 Unauthorized"):
                with open_remote_session(_make_cfg(), ANDROID):
                    body()
        body.assert_not_called()
        pw.stop.assert_called_once()
        browser.close.assert_not_called()

    def test_missing_credentials_before_connect(self):
        starter, pw, _ = _mock_playwright()
        with patch("playwright.sync_api.sync_playwright", starter):
            with pytest.raises(ConfigError):
                with open_remote_session(_make_cfg(BROWSERSTACK_ACCESS_KEY=""), ANDROID):
                    pass
        starter.assert_not_called()
