from __future__ import annotations

import argparse
import logging
from pathlib import Path

from boundcmd.config import load_settings
from boundcmd.core.limits import load_limits
from boundcmd.host.rover import make_rover_parser
from boundcmd.host.server import LineServer
from boundcmd.reporting.transcript import TranscriptLogger


def main(argv: list[str] | None = None) -> None:
    s = load_settings()
    p = argparse.ArgumentParser(description="boundcmd TCP line server (rover command set).")
    p.add_argument("--host", default=s.host)
    p.add_argument("--port", type=int, default=s.port)
    p.add_argument("--limits", default="")
    p.add_argument("--unquoted", action="store_true")
    p.add_argument("--transcript-dir", default="")
    args = p.parse_args(argv)

    logging.basicConfig(level=s.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    limits = load_limits(Path(args.limits) if args.limits else s.limits_path)
    parser, _rover = make_rover_parser(limits, allow_unquoted_strings=args.unquoted or s.unquoted_strings)

    transcript_dir = Path(args.transcript_dir) if args.transcript_dir else s.transcript_dir
    transcript = TranscriptLogger(transcript_dir) if transcript_dir is not None else None

    server = LineServer(parser, args.host, args.port, transcript=transcript)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("[boundcmd] KeyboardInterrupt -> stopping")
        server.stop()


if __name__ == "__main__":
    main()
