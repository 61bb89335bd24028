"""Interactive command-line shell that talks to the daemon over its local socket."""

from __future__ import annotations

import re
import socket
import sys
import threading
from collections import deque
from typing import IO, Sequence

SOCKET_PATH = "/tmp/aetherd.socket"
LOG_PATH = "/var/log/aether/aether_log"
DEFAULT_LOG_LINES = 10
RESPONSE_SIZE = 512
ERROR_REPLY = "ERROR"

PROMPT = "\033[94mAether> \033[0m"
CLEAR_SCREEN = "\033[2J\033[H"
CORE_USAGE = "Usage: core <start|stop|status>"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_BANNER = (
    "\n\n"
    "\033[96m"
    "     .oo .oPYo. ooooo  o    o .oPYo.  .oPYo. \n"
    "    .P 8 8.       8    8    8 8.      8   `8 \n"
    "   .P  8 `boo     8   o8oooo8 `boo   o8YooP' \n"
    "  oPooo8 .P       8    8    8 .P      8   `b \n"
    " .P    8 8        8    8    8 8       8    8 \n"
    ".P     8 `YooP'   8    8    8 `YooP'  8    8 \n"
    "..:::::..:.....:::..:::..:::..:.....::..:::..\n"
    ":::::::::::::::::::::::::::::::::::::::::::::\n"
    "\033[96m::::: \033[94m~ AETHER Command Line Interface ~ \033[96m:::::\033[0m\n\n\n"
)

_HELP = (
    "\033[37mCommands:\n"
    "  help     -  Shows essential CLI and Aether help and the list of available commands.\n"
    "  aether   -  Starts the shell\n"
    "  version  -  Shows the current Aether version.\n"
    "  alive    -  Checks whether the daemon is responding.\n"
    "\n"
    "  core <start|stop|status>     -  Starts, stops or checks the status of all modules.\n"
    "  logs <size>                  -  Shows the daemon logs\n"
    "\n\n\n"
)


def split_args(line: str) -> list[str]:
    """Split a shell line into whitespace-separated arguments."""
    return line.split()


def welcome_message() -> str:
    """Return the screen-clearing welcome banner."""
    return CLEAR_SCREEN + _BANNER


def help_text() -> str:
    """Return the list of available commands."""
    return _HELP


def tail_lines(path, count: int) -> list[str]:
    """Return the last ``count`` lines of the file at ``path``, without newlines.

    Raises ``OSError`` if the file cannot be read.
    """
    if count < 0:
        raise ValueError("line count must not be negative")
    with open(path, encoding="utf-8", errors="replace") as handle:
        return list(deque((line.rstrip("\n") for line in handle), maxlen=count))


def _leading_int(text: str) -> int | None:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


class CliApp:
    """The command-line front end: runs the shell and sends commands to the daemon."""

    def __init__(
        self,
        *,
        socket_path: str = SOCKET_PATH,
        log_path: str = LOG_PATH,
        stdin: IO[str] | None = None,
        stdout: IO[str] | None = None,
        stderr: IO[str] | None = None,
        follow: bool = True,
        poll_interval: float = 0.2,
    ) -> None:
        self.socket_path = socket_path
        self.log_path = log_path
        self._stdin = stdin
        self._stdout = stdout
        self._stderr = stderr
        self.follow = follow
        self.poll_interval = poll_interval
        self.stop_following = threading.Event()

    @property
    def _in(self) -> IO[str]:
        return self._stdin if self._stdin is not None else sys.stdin

    @property
    def _out(self) -> IO[str]:
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def _err(self) -> IO[str]:
        return self._stderr if self._stderr is not None else sys.stderr

    def _print(self, text: str = "", end: str = "\n") -> None:
        print(text, end=end, file=self._out, flush=True)

    def run(self, argv: Sequence[str] | None = None) -> int:
        """Start the shell when no arguments are given; otherwise refuse."""
        args = list(sys.argv[1:] if argv is None else argv)
        if not args:
            return self.run_shell()
        self._print("Incorrect command, run just 'aether' to start the shell!")
        return 0

    def run_shell(self) -> int:
        """Read and carry out commands until ``exit``, ``quit`` or end of input."""
        self._print(welcome_message(), end="")
        self._print("Running shell")
        while True:
            self._print(PROMPT, end="")
            line = self._in.readline()
            if not line:
                break
            args = split_args(line)
            if not args:
                continue
            command = args[0]

            if command in ("exit", "quit"):
                self._print("Finishing shell...")
                break
            if command in ("clear", "c"):
                self._print(CLEAR_SCREEN, end="")
                continue
            if command == "help":
                self._print(welcome_message(), end="")
                self._print(help_text(), end="")
                continue

            if command == "core":
                self.handle_core_command(args)
            elif command == "logs":
                self.handle_logs_command(args)
            else:
                self._print("Unknown command")
        return 0

    def handle_core_command(self, args: Sequence[str]) -> str | None:
        """Send ``core start`` or ``core stop`` to the daemon; returns its reply."""
        if len(args) < 2:
            self._print(CORE_USAGE)
            return None
        action = args[1]
        if action == "start":
            return self.send_command("core.start")
        if action == "stop":
            return self.send_command("core.stop")
        self._print(CORE_USAGE)
        return None

    def handle_logs_command(self, args: Sequence[str]) -> None:
        """Print the last log lines, then keep printing new ones while following.

        The line count comes from ``args[1]`` when it is larger than the
        default of ten. Following ends when :attr:`stop_following` is set.
        """
        lines = DEFAULT_LOG_LINES
        if len(args) > 1:
            requested = _leading_int(args[1])
            if requested is not None and requested > lines:
                lines = requested

        try:
            recent = tail_lines(self.log_path, lines)
        except OSError:
            print(
                f"Could not open the log file at {self.log_path}",
                file=self._err,
                flush=True,
            )
            return
        for line in recent:
            self._print(line)

        if not self.follow:
            return
        try:
            handle = open(self.log_path, encoding="utf-8", errors="replace")
        except OSError:
            print(
                f"Could not open the log file at {self.log_path}",
                file=self._err,
                flush=True,
            )
            return
        with handle:
            handle.seek(0, 2)
            while not self.stop_following.is_set():
                position = handle.tell()
                line = handle.readline()
                if line.endswith("\n"):
                    self._print(line.rstrip("\n"))
                    continue
                handle.seek(position)
                self.stop_following.wait(self.poll_interval)

    def send_command(self, command: str) -> str:
        """Send ``command`` to the daemon and return its reply, or ``"ERROR"``."""
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.connect(self.socket_path)
                sock.sendall(command.encode("utf-8"))
                data = sock.recv(RESPONSE_SIZE - 1)
        except OSError as exc:
            print(f"connect: {exc}", file=self._err, flush=True)
            return ERROR_REPLY
        if not data:
            return ERROR_REPLY
        return data.decode("utf-8", errors="replace")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command-line application."""
    CliApp().run(argv)
    return 0


if __name__ == "__main__":
    sys.exit(main())