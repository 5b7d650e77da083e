from __future__ import annotations


class VideoBotError(Exception):
    """Base exception for video-play-bot."""


class ConfigError(VideoBotError):
    """Missing or invalid configuration."""


class PreflightError(VideoBotError):
    """Preflight checks failed."""

    def __init__(self, results: list[dict]) -> None:
        self.results = results
        failed = [r for r in results if not r.get("OK")]
        names = ", ".join(r.get("NAME", "?") for r in failed) or "unknown"
        super().__init__(f"Preflight failed: {names}")


class SessionError(VideoBotError):
    """The remote browser session could not be opened."""


class PersistenceError(VideoBotError):
    """A queue store write failed and was rolled back."""
