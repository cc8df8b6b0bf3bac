import csv
import json
import socket
import threading
from pathlib import Path

from boundcmd.core.limits import ParserLimits
from boundcmd.core.protocol import E_LINE_TOO_LONG, E_UNKNOWN_CMD
from boundcmd.host.client import LineClient
from boundcmd.host.rover import make_rover_parser
from boundcmd.host.server import LineServer
from boundcmd.reporting.transcript import TranscriptLogger, read_transcript


def _start(server: LineServer) -> threading.Thread:
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    assert server.ready.wait(5.0)
    return t


def _read_json_line(f) -> dict:
    return json.loads(f.readline().decode("utf-8"))


def test_dispatch_without_socket():
    parser, rover = make_rover_parser()
    server = LineServer(parser, "127.0.0.1", 0)
    assert server.dispatch(b"jump") == {"ok": True, "error_code": None, "response": "jumps 1", "meta": {"cmd": "jump"}}
    assert rover.state.jumps == 1


def test_round_trip_over_tcp(tmp_path: Path):
    parser, _rover = make_rover_parser()
    transcript = TranscriptLogger(tmp_path)
    server = LineServer(parser, "127.0.0.1", 0, transcript=transcript)
    t = _start(server)
    try:
        with LineClient("127.0.0.1", server.bound_port, timeout_s=2.0) as client:
            r = client.call("move", "3", "4")
            assert r.ok
            assert r.response == "pos 3 4"
            assert r.command == "move"

            r = client.process("nope")
            assert not r.ok
            assert r.error_code == E_UNKNOWN_CMD
            assert r.response == "parse error: unknown command name nope"

            r = client.process('say "tab\\there"\r\n')
            assert r.ok
            assert r.response == "tab\there"
    finally:
        server.stop()
        t.join(timeout=5.0)

    rows = read_transcript(tmp_path / "events.jsonl")
    assert [row["ok"] for row in rows] == [True, False, True]
    assert rows[0]["source"].startswith("tcp:127.0.0.1:")


def test_client_refuses_overlong_line_locally():
    limits = ParserLimits()
    client = LineClient("127.0.0.1", 1, limits=limits)
    r = client.process("say " + "a" * (limits.max_line_size + 1))
    assert not r.ok
    assert r.error_code == E_LINE_TOO_LONG
    assert r.response == f"parse error: line too long (max {limits.max_line_size} bytes)"


def test_server_drops_overlong_line_and_keeps_serving():
    parser, rover = make_rover_parser()
    cap = parser.limits.max_line_size
    server = LineServer(parser, "127.0.0.1", 0)
    t = _start(server)
    try:
        with socket.create_connection(("127.0.0.1", server.bound_port), timeout=5.0) as sock:
            f = sock.makefile("rb")
            # far past the cap, sent in pieces with no newline yet
            for _ in range(64):
                sock.sendall(b"x" * 4096)
            sock.sendall(b"\njump\n")
            first = _read_json_line(f)
            assert first["ok"] is False
            assert first["error_code"] == E_LINE_TOO_LONG
            assert first["response"] == f"parse error: line too long (max {cap} bytes)"
            assert _read_json_line(f)["response"] == "jumps 1"

            # over the cap inside a single chunk, newline included
            sock.sendall(b"say " + b"a" * (cap + 1) + b"\nstatus\n")
            assert _read_json_line(f)["error_code"] == E_LINE_TOO_LONG
            assert _read_json_line(f)["ok"] is True
    finally:
        server.stop()
        t.join(timeout=5.0)
    assert rover.state.jumps == 1


def test_concurrent_clients_keep_transcript_files_in_step(tmp_path: Path):
    parser, _rover = make_rover_parser()
    server = LineServer(parser, "127.0.0.1", 0, transcript=TranscriptLogger(tmp_path))
    t = _start(server)

    def _worker(n: int) -> None:
        with LineClient("127.0.0.1", server.bound_port, timeout_s=5.0) as client:
            for i in range(25):
                assert client.call("move", str(n), str(i)).ok

    try:
        workers = [threading.Thread(target=_worker, args=(n,)) for n in range(4)]
        for w in workers:
            w.start()
        for w in workers:
            w.join(timeout=30.0)
    finally:
        server.stop()
        t.join(timeout=5.0)

    jsonl_lines = [r["line"] for r in read_transcript(tmp_path / "events.jsonl")]
    with (tmp_path / "events.csv").open(newline="", encoding="utf-8") as f:
        csv_lines = [r["line"] for r in csv.DictReader(f)]
    assert len(jsonl_lines) == 100
    assert jsonl_lines == csv_lines
