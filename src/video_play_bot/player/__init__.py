from __future__ import annotations

from .video_play import (
    PLAY_BUTTON_NOT_FOUND,
    PLAY_CONTROL_STRATEGIES,
    LookupStrategy,
    find_play_control,
    play_video,
)

__all__ = [
    "PLAY_BUTTON_NOT_FOUND",
    "PLAY_CONTROL_STRATEGIES",
    "LookupStrategy",
    "find_play_control",
    "play_video",
]
