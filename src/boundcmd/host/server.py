from __future__ import annotations

import json
import logging
import socket
import threading
import time
from typing import Dict, Optional, Tuple

from boundcmd.common.ids import make_session_id
from boundcmd.core.parser import CommandParser
from boundcmd.core.protocol import line_too_long
from boundcmd.reporting.transcript import CommandEvent, TranscriptLogger

_LOGGER = logging.getLogger(__name__)


class LineServer:
    """Multi-client TCP front end for one CommandParser (thread-per-connection).

    Requests are newline-framed command lines; each reply is one JSON line.
    The parser reuses its argument and response storage, so every call is
    serialized through ``_lock``. Lines longer than ``limits.max_line_size``
    are answered with E_LINE_TOO_LONG and never buffered in full.
    """

    def __init__(
        self,
        parser: CommandParser,
        host: str,
        port: int,
        *,
        transcript: Optional[TranscriptLogger] = None,
    ) -> None:
        self.parser = parser
        self.host = host
        self.port = port
        self.transcript = transcript
        self.bound_port: Optional[int] = None
        self.ready = threading.Event()
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._sock: Optional[socket.socket] = None

    def stop(self) -> None:
        self._stop.set()
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass

    def _handle(self, conn: socket.socket, addr: Tuple[str, int]) -> None:
        session_id = make_session_id()
        source = f"tcp:{addr[0]}:{addr[1]}"
        cap = self.parser.limits.max_line_size
        _LOGGER.debug("session %s opened from %s", session_id, source)
        with conn:
            buf = b""
            # set once an unterminated line passes the cap; bytes are dropped up to the next newline
            discarding = False
            while not self._stop.is_set():
                try:
                    chunk = conn.recv(4096)
                except OSError:
                    return
                if not chunk:
                    return
                buf += chunk
                while True:
                    nl = buf.find(b"\n")
                    if nl < 0:
                        if len(buf) > cap:
                            discarding = True
                            buf = b""
                        break
                    line, buf = buf[:nl], buf[nl + 1:]
                    if discarding or len(line) > cap:
                        discarding = False
                        _LOGGER.debug("session %s: dropped line over %d bytes", session_id, cap)
                        resp = line_too_long(cap, self.parser.limits.max_response_size).to_dict()
                    else:
                        line = line.rstrip(b"\r")
                        if not line.strip():
                            continue
                        resp = self.dispatch(line, session_id=session_id, source=source)
                    try:
                        conn.sendall((json.dumps(resp) + "\n").encode("utf-8"))
                    except OSError:
                        return

    def dispatch(self, line: bytes, *, session_id: str = "-", source: str = "-") -> Dict:
        # one lock covers the parser and the transcript row for this line
        with self._lock:
            t0 = time.perf_counter()
            result = self.parser.process(line)
            dt_ms = (time.perf_counter() - t0) * 1000.0

            if self.transcript is not None:
                self.transcript.log(
                    CommandEvent.make(
                        session_id=session_id,
                        source=source,
                        command=result.command or "",
                        line=line.decode("utf-8", errors="replace"),
                        ok=result.ok,
                        error_code=result.error_code,
                        response=result.response,
                        duration_ms=dt_ms,
                    )
                )
        return result.to_dict()

    def serve_forever(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            self._sock = s
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((self.host, self.port))
            s.listen()
            s.settimeout(0.5)
            self.bound_port = s.getsockname()[1]
            print(f"[boundcmd] listening on {self.host}:{self.bound_port}")
            self.ready.set()

            while not self._stop.is_set():
                try:
                    conn, addr = s.accept()
                except socket.timeout:
                    continue
                except OSError:
                    break
                threading.Thread(target=self._handle, args=(conn, addr), daemon=True).start()

            print("[boundcmd] shutdown complete")
