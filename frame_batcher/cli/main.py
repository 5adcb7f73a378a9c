"""CLI entrypoint for workload validation and simulation."""

from __future__ import annotations

import argparse
import csv
import json
from pathlib import Path
from typing import Any

from frame_batcher.io import ConfigError, ConfigLoader
from frame_batcher.sim import WorkloadRunner


EVENT_CSV_FIELDS = [
    "event_id",
    "seq",
    "correlation_id",
    "time",
    "type",
    "frame_id",
    "owner_id",
    "payload",
]


def _write_jsonl(path: str, rows: list[dict[str, Any]]) -> None:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False) + "\n")


def _write_json(path: str, payload: dict[str, Any]) -> None:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def _write_events_csv(path: str, rows: list[dict[str, Any]]) -> None:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=EVENT_CSV_FIELDS)
        writer.writeheader()
        for row in rows:
            record = {name: row.get(name) for name in EVENT_CSV_FIELDS}
            record["payload"] = json.dumps(row.get("payload", {}), ensure_ascii=False)
            writer.writerow(record)


def _write_events(path: str, rows: list[dict[str, Any]]) -> None:
    if Path(path).suffix.lower() == ".csv":
        _write_events_csv(path, rows)
    else:
        _write_jsonl(path, rows)


def cmd_validate(args: argparse.Namespace) -> int:
    issues = ConfigLoader().validate(args.config)
    if issues:
        for issue in issues:
            print(f"[ERROR] {args.config}: {issue}")
        return 1
    print("[OK] config validation passed")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    loader = ConfigLoader()
    try:
        spec = loader.load(args.config)
    except ConfigError as exc:
        print(f"[ERROR] {exc}")
        return 1
    if spec.sim is None:
        print(f"[ERROR] {args.config}: simulate requires a sim section")
        return 1
    if args.until is not None and args.until <= 0:
        print("[ERROR] --until must be > 0")
        return 1

    try:
        result = WorkloadRunner(spec).run(until=args.until)
    except ValueError as exc:
        print(f"[ERROR] {exc}")
        return 1

    events = [event.model_dump(mode="json") for event in result.events]
    summary = result.summary()

    events_out = args.events_out or "artifacts/events.jsonl"
    metrics_out = args.metrics_out or "artifacts/metrics.json"
    _write_events(events_out, events)
    _write_json(metrics_out, summary)

    for line in result.errors:
        print(f"[WARN] {line}")
    print(
        f"[OK] simulation completed, events={len(events)}, frames={summary['frames']}, "
        f"backlog={result.backlog}, metrics={metrics_out}"
    )
    if args.strict and (result.errors or result.backlog):
        print("[ERROR] simulation ended with failures or backlog in strict mode")
        return 2
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="frame-batcher", description="Frame budget batching CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="validate config file")
    validate_parser.add_argument("-c", "--config", required=True, help="path to config YAML/JSON")
    validate_parser.set_defaults(func=cmd_validate)

    sim_parser = subparsers.add_parser("simulate", help="replay a workload on a simulated display loop")
    sim_parser.add_argument("-c", "--config", required=True, help="path to config YAML/JSON")
    sim_parser.add_argument("--until", type=float, default=None, help="override sim.duration_ms")
    sim_parser.add_argument("--events-out", default=None, help="path to write events (.jsonl or .csv)")
    sim_parser.add_argument("--metrics-out", default=None, help="path to write metric JSON")
    sim_parser.add_argument(
        "--strict",
        action="store_true",
        help="exit with code 2 when a wake-up or submission failed or backlog remains",
    )
    sim_parser.set_defaults(func=cmd_simulate)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
