"""Run-log formatting and the JSONL import/report helpers."""
from __future__ import annotations

import json
import logging
import sys

import pytest

from video_play_bot.models import NewVideoUrl, TestResult
from video_play_bot.utils.io import append_results, read_url_records
from video_play_bot.utils.logger import LOGGER_NAME, RunLogFormatter, enable_file_logging


def _record(msg: str = "Testing %s", *args, exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "video_play_bot.player.video_play", logging.INFO, __file__, 1,
        msg, args or ("https://example.com/v/7",), exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ---------------------------------------------------------------------------
# RunLogFormatter
# ---------------------------------------------------------------------------

class TestRunLogFormatter:
    def test_context_lifted_to_top_level(self):
        line = RunLogFormatter().format(_record(video_id=7, device="Google Pixel 6"))
        obj = json.loads(line)
        assert obj["message"] == "Testing https://example.com/v/7"
        assert obj["level"] == "INFO"
        assert obj["logger"] == "video_play_bot.player.video_play"
        assert obj["video_id"] == 7
        assert obj["device"] == "Google Pixel 6"
        assert "batch_size" not in obj

    def test_plain_record_has_no_context_keys(self):
        obj = json.loads(RunLogFormatter().format(_record()))
        assert not {"video_id", "device", "batch_size", "error"} & obj.keys()

    def test_exception_text_under_error(self):
        try:
            raise RuntimeError("db down")
        except RuntimeError:
            exc_info = sys.exc_info()
        obj = json.loads(RunLogFormatter().format(_record(exc_info=exc_info, video_id=3)))
        assert "RuntimeError: db down" in obj["error"]
        assert obj["video_id"] == 3


# ---------------------------------------------------------------------------
# enable_file_logging
# ---------------------------------------------------------------------------

@pytest.fixture
def bot_logger():
    logger = logging.getLogger(LOGGER_NAME)
    before = list(logger.handlers)
    yield logger
    for h in list(logger.handlers):
        if h not in before:
            logger.removeHandler(h)
            h.close()


class TestEnableFileLogging:
    def test_second_call_adds_no_handler(self, tmp_path, bot_logger):
        first = enable_file_logging(tmp_path / "logs")
        second = enable_file_logging(tmp_path / "logs")
        assert first == second == (tmp_path / "logs" / "run.log").absolute()
        files = [h for h in bot_logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(files) == 1

    def test_child_logger_lines_carry_extra(self, tmp_path, bot_logger):
        path = enable_file_logging(tmp_path)
        logging.getLogger(f"{LOGGER_NAME}.run").info(
            "Selected device: %s", "Samsung Galaxy S22", extra={"device": "Samsung Galaxy S22"},
        )
        for h in bot_logger.handlers:
            h.flush()
        rows = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
        assert rows[-1]["device"] == "Samsung Galaxy S22"
        assert rows[-1]["logger"] == "video_play_bot.run"


# ---------------------------------------------------------------------------
# read_url_records / append_results
# ---------------------------------------------------------------------------

class TestReadUrlRecords:
    def test_skips_bad_rows(self, tmp_path, caplog):
        p = tmp_path / "urls.jsonl"
        p.write_text(
            "\n".join([
                json.dumps({"url": "https://example.com/1", "userName": "ann", "postId": 11}),
                "{not json",
                "",
                json.dumps(["https://example.com/list"]),
                json.dumps({"caption": "no url"}),
                json.dumps({"url": "  https://example.com/2  ", "user_name": "bo",
                            "post_id": "p2", "caption": "hi"}),
            ]) + "\n",
            encoding="utf-8",
        )
        with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
            records = read_url_records(p)

        assert records == [
            NewVideoUrl(url="https://example.com/1", user_name="ann", post_id="11"),
            NewVideoUrl(url="https://example.com/2", user_name="bo", post_id="p2", caption="hi"),
        ]
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 3

    def test_empty_file(self, tmp_path):
        p = tmp_path / "urls.jsonl"
        p.write_text("", encoding="utf-8")
        assert read_url_records(p) == []


class TestAppendResults:
    def test_appends_across_calls(self, tmp_path):
        p = tmp_path / "reports" / "batch.jsonl"
        append_results(p, [TestResult(id=1, url="https://example.com/1", success=True)])
        append_results(p, [TestResult(id=2, url="https://example.com/2",
                                      error="Play button not found")])
        rows = [json.loads(line) for line in p.read_text(encoding="utf-8").splitlines()]
        assert [r["id"] for r in rows] == [1, 2]
        assert rows[1]["error"] == "Play button not found"
        assert rows[0]["success"] is True
