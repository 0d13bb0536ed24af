from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

import yaml

from .config import Settings, TargetSpec, load_settings
from .steps import collect, scan

LOGGER_NAME = "promptgather"


@dataclass(frozen=True)
class Step:
    """Executable unit within the pipeline."""

    name: str
    runner: Callable[[Settings], Any]
    description: str


ORDERED_STEPS: tuple[Step, ...] = (
    Step("scan", scan.main, "List matching instruction files and their source names"),
    Step("collect", collect.main, "Copy matches into <output>/<source_name>/<filename>"),
)

STEP_REGISTRY = {step.name: step for step in ORDERED_STEPS}
DEFAULT_STEPS: tuple[str, ...] = ("collect",)


def configure_logging(verbose: bool) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    if not logger.handlers:
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    return logger


def apply_overrides(cfg: Settings, args: argparse.Namespace) -> Settings:
    """Layer command-line flags over the loaded settings."""
    changes: dict[str, Any] = {}
    if args.roots:
        changes["search_roots"] = [str(r) for r in args.roots]
    if args.output:
        changes["output_root"] = str(args.output)
    if args.targets:
        changes["targets"] = tuple(TargetSpec.for_filename(name) for name in args.targets)
    if args.report_json:
        changes["report_json"] = str(args.report_json)
    if args.dry_run:
        changes["dry_run"] = True
    return replace(cfg, **changes) if changes else cfg


def run_steps(step_names: Iterable[str], cfg: Settings) -> None:
    for name in step_names:
        step = STEP_REGISTRY[name]
        step.runner(cfg)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gather AI-assistant instruction files from sibling repositories")
    parser.add_argument("--config", default=str(Path("config") / "config.yaml"), help="Path to gather configuration YAML")
    parser.add_argument(
        "--root",
        dest="roots",
        action="append",
        type=Path,
        metavar="DIR",
        help="Search root to scan (repeatable). Replaces the configured roots.",
    )
    parser.add_argument("--output", type=Path, default=None, help="Output root (default: config output_root, 'from')")
    parser.add_argument(
        "--target",
        dest="targets",
        action="append",
        metavar="FILENAME",
        help="Target filename to collect (repeatable). Replaces the configured targets.",
    )
    parser.add_argument("--report-json", type=Path, default=None, help="Write the collection report as JSON")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be copied without writing anything")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging (DEBUG level)")
    parser.add_argument(
        "steps",
        nargs="*",
        metavar="STEP",
        help="Subset of steps to run. Use 'list' to display available steps.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logger = configure_logging(args.verbose)

    if args.steps == ["list"]:
        for step in ORDERED_STEPS:
            print(f"{step.name:>10}  - {step.description}")
        return 0

    if not args.steps:
        names: list[str] = list(DEFAULT_STEPS)
    elif args.steps == ["all"]:
        names = [step.name for step in ORDERED_STEPS]
    else:
        unknown = [name for name in args.steps if name not in STEP_REGISTRY]
        if unknown:
            logger.error("Unknown step(s): %s", ", ".join(unknown))
            return 1
        names = list(args.steps)

    try:
        cfg = apply_overrides(load_settings(args.config), args)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    try:
        run_steps(names, cfg)
    except collect.OutputRootError as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("Write failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
