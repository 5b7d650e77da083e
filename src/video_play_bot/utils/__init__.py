from __future__ import annotations

from .io import append_results, read_url_records

__all__ = ["append_results", "read_url_records"]
