"""Stream parser that extracts Aether packets from received bytes."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .packet import HEADER, HEADER_SIZE, MAGIC, Packet

log = logging.getLogger(__name__)


class ResponseChannel(ABC):
    """A channel through which response packets are sent back to a peer."""

    @abstractmethod
    def send_response(self, packet: Packet) -> None:
        """Send a response packet through this channel."""

    @abstractmethod
    def channel_id(self) -> int:
        """Return the 16-bit identifier of this channel."""


class ProtocolHandler(ABC):
    """Receives each complete packet the parser extracts."""

    @abstractmethod
    def on_packet(self, packet: Packet, channel: ResponseChannel | None) -> None:
        """Handle a received packet, answering through ``channel`` if needed."""


class Parser:
    """Extracts complete packets from a byte buffer and dispatches them."""

    def __init__(self, handler: ProtocolHandler | None = None) -> None:
        self.handler = handler

    def feed(
        self, buffer: bytearray, channel: ResponseChannel | None = None
    ) -> list[Packet]:
        """Consume every complete packet at the front of ``buffer``.

        Parsed bytes are removed from ``buffer`` in place; an incomplete
        trailing packet is left for a later call. Bytes that do not start
        with the protocol magic are discarded one at a time. Each packet is
        passed to the handler, if one is set, and all are returned.
        """
        if not isinstance(buffer, bytearray):
            raise TypeError("buffer must be a bytearray")
        log.debug("feed() buffer size=%d", len(buffer))
        packets: list[Packet] = []
        while len(buffer) >= HEADER_SIZE:
            magic, version, command, module, length = HEADER.unpack_from(buffer)
            if magic != MAGIC:
                log.warning("invalid magic, discarding 1 byte")
                del buffer[0]
                continue
            end = HEADER_SIZE + length
            if len(buffer) < end:
                break
            packet = Packet(
                magic=magic,
                version=version,
                command=command,
                module=module,
                length=length,
                payload=bytes(buffer[HEADER_SIZE:end]),
            )
            del buffer[:end]
            log.debug("packet complete, payload=%d", length)
            packets.append(packet)
            if self.handler is not None:
                self.handler.on_packet(packet, channel)
            else:
                log.debug("no protocol handler set")
        return packets