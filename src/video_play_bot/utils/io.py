from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from ..models import NewVideoUrl, TestResult


_logger = logging.getLogger(__name__)


def read_url_records(path: Path) -> list[NewVideoUrl]:
    """Read queue entries from a JSONL file, one object per line.

    Accepts ``user_name``/``post_id`` as well as ``userName``/``postId``.
    Lines that are not JSON objects, or carry no ``url``, are skipped with a
    warning so one bad line does not block an import.
    """
    records: list[NewVideoUrl] = []
    with path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError:
                _logger.warning("Skipping bad JSON at %s:%d", path, line_no)
                continue
            url = str(row.get("url") or "").strip() if isinstance(row, dict) else ""
            if not url:
                _logger.warning("Skipping %s:%d, no url", path, line_no)
                continue
            records.append(
                NewVideoUrl(
                    url=url,
                    user_name=row.get("user_name", row.get("userName")),
                    post_id=_optional_str(row.get("post_id", row.get("postId"))),
                    caption=row.get("caption"),
                )
            )
    return records


def append_results(path: Path, results: Iterable[TestResult]) -> None:
    """Append one JSON line per played video to the batch report at *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        for r in results:
            f.write(json.dumps(r.to_dict(), ensure_ascii=False) + "\n")


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)
