from __future__ import annotations

import argparse
from typing import List


def _common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--limits", default="", help="Path to limits YAML")
    p.add_argument("--unquoted", action="store_true", help="Also accept bare-word string arguments")
    p.add_argument("--transcript-dir", default="", help="Optional directory for events.jsonl/events.csv")


def main() -> None:
    p = argparse.ArgumentParser(prog="boundcmd", description="Bounded command-line parser and dispatcher")
    sub = p.add_subparsers(dest="cmd", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Serve the rover command set over TCP")
    p_serve.add_argument("--host", default="")
    p_serve.add_argument("--port", type=int, default=-1)
    _common(p_serve)
    p_serve.set_defaults(_entry="boundcmd.cli.run_server")

    # shell
    p_shell = sub.add_parser("shell", help="Process rover commands from stdin or a script")
    p_shell.add_argument("--script", default="", help="File with one command per line")
    _common(p_shell)
    p_shell.set_defaults(_entry="boundcmd.cli.run_shell")

    args = p.parse_args()

    argv: List[str] = []
    if args.limits:
        argv += ["--limits", args.limits]
    if args.unquoted:
        argv += ["--unquoted"]
    if args.transcript_dir:
        argv += ["--transcript-dir", args.transcript_dir]

    if args._entry == "boundcmd.cli.run_server":
        from boundcmd.cli.run_server import main as _m

        if args.host:
            argv += ["--host", args.host]
        if args.port >= 0:
            argv += ["--port", str(args.port)]
        _m(argv)
        return

    if args._entry == "boundcmd.cli.run_shell":
        from boundcmd.cli.run_shell import main as _m

        if args.script:
            argv += ["--script", args.script]
        _m(argv)
        return

    raise SystemExit(2)
