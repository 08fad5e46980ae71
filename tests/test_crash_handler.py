import asyncio
import sys

import pytest

from badminton_shop.utils.logging import install_crash_handler, install_loop_crash_handler


@pytest.fixture
def crash_file(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    return tmp_path / "logs" / "crash.log"


def test_uncaught_exception_is_logged_and_exits(crash_file):
    install_crash_handler(str(crash_file))

    with pytest.raises(SystemExit) as exit_info:
        sys.excepthook(RuntimeError, RuntimeError("db connection lost"), None)

    assert exit_info.value.code == 1
    lines = crash_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert lines[0].endswith("RuntimeError: db connection lost")


def test_keyboard_interrupt_does_not_write_a_crash_line(crash_file, monkeypatch):
    seen = []
    monkeypatch.setattr(sys, "__excepthook__", lambda *args: seen.append(args[0]))
    install_crash_handler(str(crash_file))

    sys.excepthook(KeyboardInterrupt, KeyboardInterrupt(), None)

    assert seen == [KeyboardInterrupt]
    assert not crash_file.exists()


def test_event_loop_error_is_logged_and_exits(crash_file):
    loop = asyncio.new_event_loop()
    try:
        install_loop_crash_handler(loop, str(crash_file))
        with pytest.raises(SystemExit) as exit_info:
            loop.call_exception_handler(
                {"message": "Task exception was never retrieved", "exception": ValueError("lost reply")}
            )
    finally:
        loop.close()

    assert exit_info.value.code == 1
    assert crash_file.read_text(encoding="utf-8").strip().endswith("ValueError: lost reply")
