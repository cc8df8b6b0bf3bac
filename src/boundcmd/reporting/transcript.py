from __future__ import annotations

import csv
import json
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from boundcmd.common.time import utc_now_iso

TRANSCRIPT_SCHEMA_VERSION = 1

# Stable CSV column order (append-only evolution: only add new columns at the end)
CSV_COLUMNS: List[str] = [
    "schema_version",
    "timestamp",
    "session_id",
    "source",
    "command",
    "line",
    "ok",
    "error_code",
    "response",
    "duration_ms",
]


@dataclass(frozen=True)
class CommandEvent:
    schema_version: int
    timestamp: str
    session_id: str
    source: str  # "tcp:<host>:<port>" | "stdin" | "script:<path>"

    command: str
    line: str

    ok: bool
    error_code: Optional[str]
    response: str
    duration_ms: float

    @staticmethod
    def make(
        *,
        session_id: str,
        source: str,
        command: str,
        line: str,
        ok: bool,
        error_code: Optional[str],
        response: str,
        duration_ms: float,
    ) -> "CommandEvent":
        return CommandEvent(
            schema_version=TRANSCRIPT_SCHEMA_VERSION,
            timestamp=utc_now_iso(),
            session_id=session_id,
            source=source,
            command=command,
            line=line,
            ok=bool(ok),
            error_code=error_code,
            response=response,
            duration_ms=round(float(duration_ms), 3),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class TranscriptLogger:
    """Append-only transcript: one JSONL row per processed line + mirrored CSV row."""

    def __init__(self, run_dir: Path) -> None:
        self.run_dir = run_dir
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.jsonl_path = self.run_dir / "events.jsonl"
        self.csv_path = self.run_dir / "events.csv"
        self._lock = threading.Lock()

        # Initialize CSV header once
        if not self.csv_path.exists():
            with self.csv_path.open("w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
                writer.writeheader()

    def log(self, ev: CommandEvent) -> None:
        row = ev.to_dict()
        # both files take the row under one lock so they agree on order
        with self._lock:
            with self.jsonl_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(row, ensure_ascii=False) + "\n")

            with self.csv_path.open("a", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
                writer.writerow({k: row.get(k, "") for k in CSV_COLUMNS})


def read_transcript(path: Path) -> List[Dict[str, Any]]:
    """Read a transcript events.jsonl into a list of dicts (replay)."""
    rows: List[Dict[str, Any]] = []
    if not path.exists():
        return rows
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            rows.append(json.loads(line))
    return rows
