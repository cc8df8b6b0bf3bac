from __future__ import annotations

import json
import socket
from typing import Optional, Union

from boundcmd.core.limits import ParserLimits
from boundcmd.core.protocol import CommandResult, line_too_long

E_TIMEOUT = "E_TIMEOUT"
E_BAD_RESP = "E_BAD_RESP"
E_CLIENT = "E_CLIENT"

Line = Union[str, bytes, bytearray]


class LineClient:
    """Remote stand-in for ``CommandParser.process`` over one LineServer connection.

    Framing follows the server's bounds: a line longer than
    ``limits.max_line_size`` is refused locally, and a reply line may not
    exceed what a ``max_response_size`` response can encode to.
    """

    def __init__(self, host: str, port: int, *, timeout_s: float = 2.0, limits: Optional[ParserLimits] = None) -> None:
        self.host = host
        self.port = port
        self.timeout_s = timeout_s
        self.limits = limits or ParserLimits()
        self._sock: Optional[socket.socket] = None
        self._pending = b""

    @property
    def max_reply_size(self) -> int:
        # \uXXXX escapes cost 6 bytes per response byte; the rest is JSON keys and the name
        return 6 * (self.limits.max_response_size + self.limits.max_command_name_length) + 128

    def _connection(self) -> socket.socket:
        if self._sock is None:
            self._sock = socket.create_connection((self.host, self.port), timeout=self.timeout_s)
            self._pending = b""
        return self._sock

    def connect(self) -> "LineClient":
        self._connection()
        return self

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None
        self._pending = b""

    def __enter__(self) -> "LineClient":
        return self.connect()

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _read_reply(self, sock: socket.socket) -> bytes:
        cap = self.max_reply_size
        while b"\n" not in self._pending:
            if len(self._pending) > cap:
                raise ValueError(f"reply longer than {cap} bytes")
            chunk = sock.recv(4096)
            if not chunk:
                raise ConnectionError("server closed the connection")
            self._pending += chunk
        reply, self._pending = self._pending.split(b"\n", 1)
        return reply

    def process(self, line: Line) -> CommandResult:
        data = line.encode("utf-8") if isinstance(line, str) else bytes(line)
        data = data.rstrip(b"\r\n")
        if b"\n" in data:
            return CommandResult(ok=False, error_code=E_CLIENT, response="line contains a newline")
        cap = self.limits.max_line_size
        if len(data) > cap:
            return line_too_long(cap, self.limits.max_response_size)

        try:
            sock = self._connection()
            sock.sendall(data + b"\n")
            raw = json.loads(self._read_reply(sock))
            if not isinstance(raw, dict):
                raise ValueError("reply is not a JSON object")
        except socket.timeout:
            self.close()
            return CommandResult(ok=False, error_code=E_TIMEOUT, response="client timeout")
        except ValueError as e:
            # bad JSON, undecodable or oversized reply
            self.close()
            return CommandResult(ok=False, error_code=E_BAD_RESP, response=str(e))
        except OSError as e:
            self.close()
            return CommandResult(ok=False, error_code=E_CLIENT, response=str(e))

        return CommandResult(
            ok=bool(raw.get("ok")),
            error_code=raw.get("error_code"),
            response=str(raw.get("response", "")),
            command=(raw.get("meta") or {}).get("cmd"),
        )

    def call(self, name: str, *args: str) -> CommandResult:
        return self.process(" ".join([name, *args]).strip())
