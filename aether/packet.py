"""Packet model, command codes and wire encoding for the Aether protocol.

Wire layout (all integers big-endian)::

    [magic:2][version:1][type:2][module:2][length:4][payload:length]
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

MAGIC = 0xAA55
MAGIC_1 = 0xAA
MAGIC_2 = 0x55
VERSION = 1

HEADER = struct.Struct(">HBHHI")
HEADER_SIZE = HEADER.size

_MAX_U32 = 0xFFFFFFFF


class CommandType(IntEnum):
    """Command codes carried in the packet type field.

    Ranges:
      0x0001-0x00FF core, connection control and handshake;
      0x0100-0x01FF generic bidirectional data messages;
      0x1000-0xFFFF reserved for specific modules.
    """

    PING = 0x0001
    PONG = 0x0002
    ERROR_GENERIC = 0x0003
    HELLO = 0x0004
    HELLO_ACK = 0x0005
    HEARTBEAT = 0x0006
    ACK = 0x0007

    DATA_REQUEST = 0x0100
    DATA_RESPONSE = 0x0101
    DATA_PUSH = 0x0102


@dataclass(frozen=True)
class Packet:
    """A structured Aether protocol packet."""

    magic: int
    version: int
    command: int
    module: int
    length: int
    payload: bytes = b""


def build_packet(command: int, module: int, payload: bytes = b"") -> Packet:
    """Build a packet with the protocol magic and version and the given payload."""
    data = bytes(payload)
    if len(data) > _MAX_U32:
        raise ValueError("payload too large for a 32-bit length field")
    return Packet(
        magic=MAGIC,
        version=VERSION,
        command=int(command),
        module=int(module),
        length=len(data),
        payload=data,
    )


def encode(packet: Packet) -> bytes:
    """Serialise a packet into bytes ready to be sent over the network."""
    try:
        header = HEADER.pack(
            packet.magic,
            packet.version,
            packet.command,
            packet.module,
            packet.length,
        )
    except struct.error as exc:
        raise ValueError(f"packet field out of range: {exc}") from exc
    return header + bytes(packet.payload)