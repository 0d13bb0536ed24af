from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Sequence

from ..config import Settings, TargetSpec, get_output_root, get_search_roots
from ..utils.atomic_copy import DestinationWriteError, SourceReadError, atomic_copy
from ..utils.discovery import Match, discover_matches
from ..utils.report import COPIED, FAILED, PLANNED, CollectionReport, CopyOutcome
from ..utils.source_names import SourceNameError, derive_source_name

log = logging.getLogger("promptgather.collect")


class OutputRootError(RuntimeError):
    """The output root could not be created, so nothing can be collected."""


def ensure_output_root(output_root: Path) -> Path:
    try:
        output_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputRootError(f"Cannot create output root {output_root}: {exc}") from exc
    if not output_root.is_dir():
        raise OutputRootError(f"Output root is not a directory: {output_root}")
    return output_root


def _failure(match: Match, stage: str, exc: Exception, source_name: str | None = None) -> CopyOutcome:
    print(f"[GATHER] Failed {match.path} ({stage}): {exc}")
    return CopyOutcome(
        source_path=str(match.path),
        status=FAILED,
        source_name=source_name,
        stage=stage,
        error=str(exc),
    )


def collect_match(match: Match, output_root: Path, *, dry_run: bool = False) -> CopyOutcome:
    """Name, stage and copy a single match. Failures are returned, not raised."""
    try:
        source_name = derive_source_name(match.path, match.target.source_levels)
    except SourceNameError as exc:
        return _failure(match, "name", exc)

    dest = output_root / source_name / match.target.filename
    if dry_run:
        print(f"[GATHER] DRY-RUN: {match.path} -> {dest}")
        return CopyOutcome(str(match.path), PLANNED, source_name, str(dest))

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return _failure(match, "write", exc, source_name)
    try:
        atomic_copy(match.path, dest)
    except SourceReadError as exc:
        return _failure(match, "read", exc, source_name)
    except DestinationWriteError as exc:
        return _failure(match, "write", exc, source_name)

    print(f"[GATHER] Copied {match.path} -> {dest}")
    return CopyOutcome(str(match.path), COPIED, source_name, str(dest))


def collect(
    search_roots: Sequence[Path],
    targets: Sequence[TargetSpec],
    output_root: Path,
    *,
    dry_run: bool = False,
) -> CollectionReport:
    """
    Discover target files under ``search_roots`` and copy each one to
    ``output_root/<source_name>/<filename>``.

    Missing roots and per-file failures are recorded in the returned report;
    only an output root that cannot be created raises (``OutputRootError``).
    The output root itself is never scanned, so earlier copies are not
    picked up again when it sits under a search root.
    Two matches landing on the same destination are written in discovery
    order, so the later one wins; the destination is listed in
    ``report.conflicts``.
    """
    output_root = Path(output_root).expanduser().resolve()
    if not dry_run:
        ensure_output_root(output_root)

    report = CollectionReport(output_root=str(output_root), dry_run=dry_run)
    discovery = discover_matches(search_roots, targets, exclude=[output_root])
    report.warnings.extend(discovery.warnings)

    claimed: Dict[str, str] = {}
    for match in discovery.matches:
        outcome = collect_match(match, output_root, dry_run=dry_run)
        report.outcomes.append(outcome)
        if not outcome.ok or outcome.destination_path is None:
            continue
        previous = claimed.get(outcome.destination_path)
        if previous is not None:
            log.warning(
                "%s overwrote %s collected earlier from %s",
                outcome.source_path, outcome.destination_path, previous,
            )
            if outcome.destination_path not in report.conflicts:
                report.conflicts.append(outcome.destination_path)
        claimed[outcome.destination_path] = outcome.source_path
    return report


def main(cfg: Settings) -> CollectionReport:
    output_root = get_output_root(cfg)
    print(f"[GATHER] Collecting into {output_root}{' (dry run)' if cfg.dry_run else ''}")
    report = collect(get_search_roots(cfg), cfg.targets, output_root, dry_run=cfg.dry_run)

    for warning in report.warnings:
        print(f"[GATHER] Skipped root: {warning}")
    print(f"[GATHER] {report.summary()}")

    if cfg.report_json:
        path = report.write_json(Path(cfg.report_json).expanduser())
        print(f"[GATHER] Report written to {path}")
    return report
