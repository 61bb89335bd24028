import io
import os
import socket
import tempfile
import threading
import time

import pytest

from aether.cli import (
    CliApp,
    help_text,
    main,
    split_args,
    tail_lines,
    welcome_message,
)


@pytest.fixture
def short_dir():
    with tempfile.TemporaryDirectory() as path:
        yield path


@pytest.fixture
def fake_daemon(short_dir):
    path = os.path.join(short_dir, "d.sock")
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(path)
    server.listen(1)
    received = []

    def serve():
        client, _ = server.accept()
        with client:
            received.append(client.recv(511).decode())
            client.sendall(b"ACK")

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield path, received, thread
    server.close()


def _app(stdin="", **kwargs):
    out, err = io.StringIO(), io.StringIO()
    app = CliApp(stdin=io.StringIO(stdin), stdout=out, stderr=err, **kwargs)
    return app, out, err


def _log_file(directory, count):
    path = os.path.join(directory, "log")
    with open(path, "w", encoding="utf-8") as handle:
        for number in range(count):
            handle.write(f"line {number}\n")
    return path


def test_split_args_collapses_whitespace():
    assert split_args("  core   stop\t\n") == ["core", "stop"]
    assert split_args("") == []


def test_welcome_message_clears_and_names_interface():
    message = welcome_message()
    assert message.startswith("\033[2J\033[H")
    assert "AETHER Command Line Interface" in message


def test_help_text_lists_commands():
    text = help_text()
    assert "core <start|stop|status>" in text
    assert "logs <size>" in text


def test_tail_lines_keeps_last(short_dir):
    path = _log_file(short_dir, 15)
    assert tail_lines(path, 10) == [f"line {n}" for n in range(5, 15)]
    assert tail_lines(path, 100) == [f"line {n}" for n in range(15)]


def test_tail_lines_missing_file(short_dir):
    with pytest.raises(FileNotFoundError):
        tail_lines(os.path.join(short_dir, "missing"), 10)


def test_tail_lines_negative_count(short_dir):
    path = _log_file(short_dir, 3)
    with pytest.raises(ValueError):
        tail_lines(path, -1)


def test_run_with_arguments_refuses():
    app, out, _ = _app()
    assert app.run(["core"]) == 0
    assert "Incorrect command" in out.getvalue()
    assert "Running shell" not in out.getvalue()


def test_main_with_arguments_returns_zero(capsys):
    assert main(["version"]) == 0
    assert "Incorrect command" in capsys.readouterr().out


def test_shell_help_then_exit():
    app, out, _ = _app("help\nexit\nhelp\n")
    assert app.run([]) == 0
    text = out.getvalue()
    assert text.count(help_text()) == 1
    assert "Finishing shell..." in text
    assert "Unknown command" not in text


def test_shell_unknown_command_and_eof():
    app, out, _ = _app("frobnicate\n\n   \n")
    assert app.run_shell() == 0
    text = out.getvalue()
    assert text.count("Unknown command") == 1
    assert "Finishing shell" not in text


def test_shell_clear_command():
    app, out, _ = _app("c\nquit\n")
    app.run_shell()
    text = out.getvalue()
    assert text.count("\033[2J\033[H") == 2


def test_core_command_usage():
    app, out, _ = _app()
    assert app.handle_core_command(["core"]) is None
    assert app.handle_core_command(["core", "status"]) is None
    assert out.getvalue().count("Usage: core <start|stop|status>") == 2


def test_send_command_without_daemon(short_dir):
    app, _, err = _app(socket_path=os.path.join(short_dir, "none.sock"))
    assert app.send_command("core.stop") == "ERROR"
    assert "connect" in err.getvalue()


def test_send_command_round_trip(fake_daemon):
    path, received, thread = fake_daemon
    app, _, _ = _app(socket_path=path)
    assert app.send_command("core.start") == "ACK"
    thread.join(5)
    assert received == ["core.start"]


def test_core_stop_sends_command(fake_daemon):
    path, received, thread = fake_daemon
    app, _, _ = _app(socket_path=path)
    assert app.handle_core_command(["core", "stop"]) == "ACK"
    thread.join(5)
    assert received == ["core.stop"]


@pytest.mark.parametrize(
    "args, expected",
    [
        (["logs"], 10),
        (["logs", "5"], 10),
        (["logs", "abc"], 10),
        (["logs", "15"], 15),
        (["logs", "12xyz"], 12),
    ],
)
def test_logs_line_count(short_dir, args, expected):
    path = _log_file(short_dir, 20)
    app, out, _ = _app(log_path=path, follow=False)
    app.handle_logs_command(args)
    assert out.getvalue().splitlines() == [f"line {n}" for n in range(20 - expected, 20)]


def test_logs_missing_file(short_dir):
    app, out, err = _app(log_path=os.path.join(short_dir, "missing"), follow=False)
    app.handle_logs_command(["logs"])
    assert out.getvalue() == ""
    assert "Could not open the log file" in err.getvalue()


def test_logs_follow_prints_new_lines(short_dir):
    path = _log_file(short_dir, 2)
    app, out, _ = _app(log_path=path, follow=True, poll_interval=0.01)
    thread = threading.Thread(target=app.handle_logs_command, args=(["logs"],))
    thread.start()
    try:
        deadline = time.monotonic() + 5
        while "line 1" not in out.getvalue() and time.monotonic() < deadline:
            time.sleep(0.01)
        time.sleep(0.05)
        with open(path, "a", encoding="utf-8") as handle:
            handle.write("fresh entry\n")
        while "fresh entry" not in out.getvalue() and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        app.stop_following.set()
        thread.join(5)
    assert out.getvalue().splitlines() == ["line 0", "line 1", "fresh entry"]
    assert not thread.is_alive()