import csv
from pathlib import Path

from boundcmd.reporting.transcript import (
    CSV_COLUMNS,
    TRANSCRIPT_SCHEMA_VERSION,
    CommandEvent,
    TranscriptLogger,
    read_transcript,
)


def _event(line: str, ok: bool) -> CommandEvent:
    return CommandEvent.make(
        session_id="S1",
        source="stdin",
        command=line.split(" ")[0],
        line=line,
        ok=ok,
        error_code=None if ok else "E_UNKNOWN_CMD",
        response="" if ok else "parse error: unknown command name nope",
        duration_ms=0.1234,
    )


def test_jsonl_and_csv_are_mirrored(tmp_path: Path):
    log = TranscriptLogger(tmp_path / "run")
    log.log(_event("jump", True))
    log.log(_event("nope", False))

    rows = read_transcript(log.jsonl_path)
    assert [r["line"] for r in rows] == ["jump", "nope"]
    assert rows[0]["schema_version"] == TRANSCRIPT_SCHEMA_VERSION
    assert rows[1]["error_code"] == "E_UNKNOWN_CMD"
    assert rows[0]["duration_ms"] == 0.123

    with log.csv_path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        assert reader.fieldnames == CSV_COLUMNS
        csv_rows = list(reader)
    assert [r["command"] for r in csv_rows] == ["jump", "nope"]


def test_header_written_once(tmp_path: Path):
    TranscriptLogger(tmp_path).log(_event("jump", True))
    TranscriptLogger(tmp_path).log(_event("jump", True))
    lines = (tmp_path / "events.csv").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert lines[0].split(",") == CSV_COLUMNS


def test_missing_transcript_reads_empty(tmp_path: Path):
    assert read_transcript(tmp_path / "nothing.jsonl") == []
