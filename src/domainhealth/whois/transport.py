"""RFC 3912 WHOIS transport: one query line over TCP, response until EOF."""

from __future__ import annotations

import logging
import socket

from .servers import split_host_port

logger = logging.getLogger(__name__)

_RECV_SIZE = 65535


def decode_response(payload: bytes) -> str:
    """Decode as UTF-8, falling back to ISO-8859-1 when bytes do not fit."""

    text = payload.decode("utf-8", errors="replace")
    if "�" in text:
        return payload.decode("iso-8859-1")
    return text


def whois_query(server: str, query: str, timeout: float = 30.0) -> str:
    """Brief: Send a WHOIS query and return the decoded response.

    Inputs:
      - server: "host" or "host:port" (port 43 by default).
      - query: Domain or IP address.
      - timeout: Socket timeout in seconds (connect and each read).

    Outputs:
      - str: Response text. Socket errors propagate as OSError.
    """

    host, port = split_host_port(server)
    logger.debug("WHOIS %s -> %s:%d", query, host, port)
    chunks = []
    with socket.create_connection((host, port), timeout=timeout) as sock:
        sock.sendall(query.encode("utf-8") + b"\r\n")
        while True:
            data = sock.recv(_RECV_SIZE)
            if not data:
                break
            chunks.append(data)
    return decode_response(b"".join(chunks))
