# aether

Building blocks for a small modular service and its command-line shell.

The package provides:

- `aether.packet`: the binary wire format (magic `0xAA55`, version `1`,
  command type, module id, big-endian 32-bit payload length and payload),
  the `CommandType` codes, the `Packet` dataclass, `build_packet` and
  `encode`;
- `aether.parser`: a streaming `Parser` whose `feed(buffer, channel)`
  removes every complete packet from a `bytearray`, skips bytes that do not
  start with the magic one at a time, leaves an incomplete packet in place,
  passes each packet to a `ProtocolHandler` and returns the list of packets;
  `ResponseChannel` is the interface for answering a peer;
- `aether.events`: `Event`, the standard `EventType` values, the `Module`
  interface and an `EventBus` that delivers each event to the matching
  subscribers (all of them when the target is empty), each on its own
  thread; `EventBus.instance()` returns a shared bus;
- `aether.module_test`: `ModuleTest`, a sample module that ticks in the
  background, stops on `core.stop` and then publishes `MODULE_STOPPED`;
- `aether.connection`: `TcpConnection`, which reads a socket on a background
  thread and hands received bytes to a callback, and `TcpResponseChannel`,
  which encodes packets and sends them over a connection;
- `aether.server`: a threaded `TcpServer` that accepts clients, feeds their
  bytes to the parser and lets a protocol handler answer through a
  `TcpResponseChannel`; it can be used as a context manager;
- `aether.logger`: `CoreLogger`, which appends timestamped messages to a log
  file and, while open, copies standard output and standard error into it
  through a `TeeStream` that prefixes every line with `YYYY-MM-DD HH:MM:SS | `;
- `aether.cli`: the interactive shell.

## Installing

```
pip install .
```

## Building and parsing packets

```python
from aether.packet import CommandType, build_packet, encode
from aether.parser import Parser

wire = encode(build_packet(CommandType.PING, 1, b"hi"))

buffer = bytearray(wire)
packets = Parser().feed(buffer)
assert packets[0].payload == b"hi" and not buffer
```

## Serving the protocol over TCP

```python
from aether.packet import CommandType, build_packet
from aether.parser import ProtocolHandler
from aether.server import TcpServer


class Pong(ProtocolHandler):
    def on_packet(self, packet, channel):
        if packet.command == CommandType.PING and channel is not None:
            channel.send_response(build_packet(CommandType.PONG, packet.module))


with TcpServer(9000) as server:
    server.set_protocol_handler(Pong())
    ...
```

## Using the shell

```
aether
```

Run with no arguments, `aether` opens an interactive prompt:

| Command          | Effect                                                          |
|------------------|-----------------------------------------------------------------|
| `help`           | Show the banner and the list of commands                        |
| `core start`     | Send `core.start` over the Unix socket `/tmp/aetherd.socket`    |
| `core stop`      | Send `core.stop` over the same socket                           |
| `logs [n]`       | Print the last lines of `/var/log/aether/aether_log` (at least 10), then follow it |
| `clear`, `c`     | Clear the screen                                                |
| `exit`, `quit`   | Leave the shell                                                 |

Any other `core` action prints the usage line. When the socket cannot be
reached, `CliApp.send_command` reports the error and returns `"ERROR"`.

## What this package does not do

The package contains no daemon: nothing here listens on
`/tmp/aetherd.socket`, starts the modules, or answers the shell's
`core start` and `core stop` commands, so those commands only work against a
separate service that speaks that socket. There is also no database
connection pool and no routine that waits for every module to report
`MODULE_STOPPED`.

## Tests

```
pip install .[test]
pytest
```