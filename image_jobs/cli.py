from __future__ import annotations

import argparse
import re
import sys
from collections.abc import Sequence
from typing import Any

import yaml

from jobkit import DEFAULT_STEP_REGISTRY, Job, JobError

_INT_RE = re.compile(r"^-?\d+$")


class _DetachedContext:
    """Context for commands that only build or inspect step lists."""

    def __repr__(self) -> str:
        return "<DetachedContext>"


def parse_step(text: str) -> list[Any]:
    """Parse `code:arg1,arg2` into a step tuple (integers are converted)."""

    code, sep, raw_args = text.partition(":")
    if not code.strip():
        raise argparse.ArgumentTypeError(f"Invalid step {text!r}: expected code:arg1,arg2")
    args: list[Any] = []
    if sep and raw_args:
        for raw in raw_args.split(","):
            args.append(int(raw) if _INT_RE.match(raw) else raw)
    return [code.strip(), *args]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="image_jobs", add_help=True)
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list-steps", help="List registered step kinds and their codes")

    encode = sub.add_parser("encode", help="Serialize a step list, e.g. f:a.png p:thumb,40x40 e:png")
    encode.add_argument("steps", nargs="+", type=parse_step)

    decode = sub.add_parser("decode", help="Print the step list of a serialized job")
    decode.add_argument("serialized")

    run = sub.add_parser("run", help="Apply a serialized job and write the result")
    run.add_argument("serialized")
    run.add_argument("--out", required=True, help="Output file path")
    run.add_argument("--config", default=None, help="Config file (defaults to IMAGE_JOBS_CONFIG)")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    try:
        if args.command == "list-steps":
            for row in DEFAULT_STEP_REGISTRY.describe():
                print(f"{row['code']}\t{row['step']}\t{row['doc'] or ''}")
            return 0

        if args.command == "encode":
            print(Job.from_array(args.steps, _DetachedContext()).serialize())
            return 0

        if args.command == "decode":
            job = Job.deserialize(args.serialized, _DetachedContext())
            print(yaml.safe_dump(job.to_array(), default_flow_style=None, sort_keys=False), end="")
            return 0

        if args.command == "run":
            from .app.run_job import run_job

            return run_job(args.serialized, out_path=args.out, config_path=args.config)
    except JobError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
