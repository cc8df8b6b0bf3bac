from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, Optional, TextIO

from boundcmd.common.ids import make_session_id
from boundcmd.config import load_settings
from boundcmd.core.limits import load_limits
from boundcmd.core.parser import CommandParser
from boundcmd.host.rover import make_rover_parser
from boundcmd.reporting.transcript import CommandEvent, TranscriptLogger


def run_lines(
    parser: CommandParser,
    lines: Iterable[str],
    out: TextIO,
    *,
    transcript: Optional[TranscriptLogger] = None,
    source: str = "stdin",
) -> int:
    """Process each non-blank line, echoing responses. Returns the failure count."""
    session_id = make_session_id()
    failures = 0
    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue
        t0 = time.perf_counter()
        res = parser.process(line)
        dt_ms = (time.perf_counter() - t0) * 1000.0
        if not res.ok:
            failures += 1
        if res.response:
            out.write(res.response + "\n")
        if transcript is not None:
            transcript.log(
                CommandEvent.make(
                    session_id=session_id,
                    source=source,
                    command=res.command or "",
                    line=line,
                    ok=res.ok,
                    error_code=res.error_code,
                    response=res.response,
                    duration_ms=dt_ms,
                )
            )
    return failures


def main(argv: list[str] | None = None) -> None:
    s = load_settings()
    p = argparse.ArgumentParser(description="boundcmd line shell (rover command set).")
    p.add_argument("--script", default="", help="File with one command per line")
    p.add_argument("--limits", default="")
    p.add_argument("--unquoted", action="store_true")
    p.add_argument("--transcript-dir", default="")
    args = p.parse_args(argv)

    logging.basicConfig(level=s.log_level, format="%(levelname)s %(name)s: %(message)s")

    limits = load_limits(Path(args.limits) if args.limits else s.limits_path)
    parser, _rover = make_rover_parser(limits, allow_unquoted_strings=args.unquoted or s.unquoted_strings)

    transcript_dir = Path(args.transcript_dir) if args.transcript_dir else s.transcript_dir
    transcript = TranscriptLogger(transcript_dir) if transcript_dir is not None else None

    if args.script:
        script = Path(args.script)
        with script.open("r", encoding="utf-8") as f:
            failures = run_lines(parser, f, sys.stdout, transcript=transcript, source=f"script:{script}")
        raise SystemExit(0 if failures == 0 else 1)

    try:
        run_lines(parser, sys.stdin, sys.stdout, transcript=transcript)
    except KeyboardInterrupt:
        print("[boundcmd] KeyboardInterrupt -> stopping")


if __name__ == "__main__":
    main()
