from __future__ import annotations

from .remote import build_capabilities, build_ws_endpoint, open_remote_session

__all__ = ["build_capabilities", "build_ws_endpoint", "open_remote_session"]
