import io
import sys
from datetime import datetime

import pytest

from aether.logger import CoreLogger, TeeStream, current_timestamp


def test_current_timestamp_format():
    stamp = current_timestamp()
    parsed = datetime.strptime(stamp, "%Y-%m-%d %H:%M:%S")
    assert parsed.strftime("%Y-%m-%d %H:%M:%S") == stamp


def test_tee_prefixes_each_line_in_every_stream():
    first, second = io.StringIO(), io.StringIO()
    tee = TeeStream(first, second, clock=lambda: "T")
    assert tee.write("a\nb") == 3
    tee.write("c\n")
    assert first.getvalue() == "T | a\nT | bc\n"
    assert second.getvalue() == first.getvalue()


def test_tee_empty_write_outputs_nothing():
    out = io.StringIO()
    tee = TeeStream(out, clock=lambda: "T")
    assert tee.write("") == 0
    assert out.getvalue() == ""


def test_tee_flush_flushes_streams():
    class Flushing(io.StringIO):
        flushed = 0

        def flush(self):
            self.flushed += 1

    out = Flushing()
    TeeStream(out).flush()
    assert out.flushed == 1


def test_log_writes_timestamped_line(tmp_path):
    path = tmp_path / "aether_log"
    logger = CoreLogger(redirect_std=False, clock=lambda: "2024-01-01 00:00:00")
    logger.initialize(path)
    logger.log("hello")
    logger.shutdown()
    assert path.read_text() == "2024-01-01 00:00:00 hello\n"
    assert logger.is_open is False


def test_log_appends_to_existing_file(tmp_path):
    path = tmp_path / "aether_log"
    path.write_text("old\n")
    with CoreLogger(redirect_std=False, clock=lambda: "S") as logger:
        logger.initialize(path)
        logger.log("new")
    assert path.read_text().splitlines() == ["old", "S new"]


def test_log_without_file_is_ignored(tmp_path):
    logger = CoreLogger(redirect_std=False)
    logger.log("lost")
    assert logger.is_open is False
    assert list(tmp_path.iterdir()) == []


def test_initialize_unwritable_path_raises(tmp_path):
    logger = CoreLogger(redirect_std=False)
    with pytest.raises(OSError):
        logger.initialize(tmp_path / "missing" / "aether_log")
    assert logger.is_open is False


def test_initialize_tees_standard_streams(tmp_path, monkeypatch):
    fake_out, fake_err = io.StringIO(), io.StringIO()
    monkeypatch.setattr(sys, "stdout", fake_out)
    monkeypatch.setattr(sys, "stderr", fake_err)
    path = tmp_path / "aether_log"
    logger = CoreLogger(clock=lambda: "C")
    logger.initialize(path)
    print("hello")
    print("oops", file=sys.stderr)
    logger.shutdown()
    assert sys.stdout is fake_out
    assert sys.stderr is fake_err
    assert fake_out.getvalue() == "C | hello\n"
    assert fake_err.getvalue() == "C | oops\n"
    assert path.read_text() == "C | hello\nC | oops\n"