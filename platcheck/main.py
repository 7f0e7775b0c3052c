"""
platcheck -- command-line entry point.

Runs the round-trip property against the configured codec and prints a
report. No flags are required; the defaults come from config/default.yaml
or the built-in constants.

Usage:
    platcheck [--config PATH] [--seed N] [--codec module:attr]
              [--max-examples N] [--json]

Exit codes:
    0  every trial passed
    1  a round-trip defect was found, or the harness could not start
    2  the generator was exhausted by discards before the quota was met
"""

from __future__ import annotations

import argparse
import sys

import orjson
from pydantic import ValidationError

from platcheck.codec import load_codec
from platcheck.config import HarnessSettings, RunnerConfig, load_config
from platcheck.errors import ConfigError
from platcheck.runner import PropertyRunner
from platcheck.telemetry.logging import setup_logging
from platcheck.types import FailureDetail, RunReport, RunStatus

EXIT_CODES: dict[RunStatus, int] = {
    RunStatus.PASSED: 0,
    RunStatus.FAILED: 1,
    RunStatus.EXHAUSTED: 2,
}


def render_report(report: RunReport) -> str:
    sep = "=" * 60
    lines = [sep]

    if report.status == RunStatus.PASSED:
        lines.append(
            f"[OK] {report.passes} trials passed "
            f"({report.discards} discarded, {report.trials_attempted} attempted)"
        )
        lines.append(f"Seed      : {report.seed}")
        lines.append(f"Duration  : {report.duration_ms}ms")
        lines.append(sep)
        return "\n".join(lines)

    if report.status == RunStatus.EXHAUSTED:
        lines.append("[EXHAUSTED] generator produced too many expected rejections")
        lines.append(f"Reason    : {report.exhaustion_reason}")
        lines.append(f"Passes    : {report.passes} of {report.quota}")
        lines.append(f"Discards  : {report.discards}")
        lines.append(f"Seed      : {report.seed}")
        lines.append(sep)
        return "\n".join(lines)

    lines.append(f"[FAILED] after {report.trials_attempted} trials (seed {report.seed})")
    lines.append(f"Original  : {report.original_candidate!r}")
    lines.append(f"Shrunk    : {report.shrunk_candidate!r}")
    lines.append(f"Minimal   : {report.minimal_candidate!r}")
    if report.failure is not None:
        lines.append("─" * 60)
        lines.extend(_render_detail(report.failure))
    if report.original_failure is not None and report.original_failure != report.failure:
        lines.append("─" * 60)
        lines.append("Originally failed with:")
        lines.extend(_render_detail(report.original_failure))
    lines.append(sep)
    return "\n".join(lines)


def _render_detail(detail: FailureDetail) -> list[str]:
    lines = [
        f"[{detail.kind.value.upper()}] at {detail.stage.value}",
        f"From      : {detail.candidate!r}",
    ]
    if detail.first_repr is not None:
        lines.append(f"Expected  : {detail.first_repr}")
        lines.append(f"            {detail.first_str}")
        lines.append(f"Got       : {detail.second_repr}")
        lines.append(f"            {detail.second_str}")
        lines.append(f"Formatted : {detail.formatted!r}")
    else:
        lines.append(f"Error     : {detail.error_type}: {detail.message}")
        if detail.elapsed_ms is not None:
            lines.append(f"Elapsed   : {detail.elapsed_ms:.1f}ms (deadline {detail.deadline_ms}ms)")
        if detail.formatted is not None:
            lines.append(f"Formatted : {detail.formatted!r}")
    return lines


def _apply_overrides(config: HarnessSettings, args: argparse.Namespace) -> HarnessSettings:
    runner_update: dict[str, int] = {}
    if args.seed is not None:
        runner_update["seed"] = args.seed
    if args.max_examples is not None:
        runner_update["max_examples"] = args.max_examples

    update: dict[str, object] = {}
    if runner_update:
        try:
            update["runner"] = RunnerConfig(**{**config.runner.model_dump(), **runner_update})
        except ValidationError as exc:
            raise ConfigError(f"Invalid command-line override: {exc}") from exc
    if args.codec:
        update["oracle"] = config.oracle.model_copy(update={"codec": args.codec})
    return config.model_copy(update=update) if update else config


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        config = _apply_overrides(load_config(args.config), args)
        setup_logging(config.logging)
        codec = load_codec(config.oracle.codec)
    except ConfigError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    runner = PropertyRunner(
        codec,
        config.runner,
        generator=config.generator,
        oracle=config.oracle,
    )
    report = runner.run()

    if args.json:
        print(orjson.dumps(report.model_dump(mode="json"), option=orjson.OPT_INDENT_2).decode())
    else:
        print(render_report(report))
    return EXIT_CODES[report.status]


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="platcheck",
        description="Round-trip property check for platform identifier strings",
    )
    parser.add_argument("--config", default=None, help="YAML configuration file")
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible run")
    parser.add_argument(
        "--codec",
        default=None,
        help="Codec under test as module:attr (default: the reference codec)",
    )
    parser.add_argument(
        "--max-examples",
        type=int,
        default=None,
        help="Passing trials required for the run to pass",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    return parser.parse_args(argv)


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
