"""Helpers for locating instruction files beneath the search roots."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from ..config import TargetSpec

log = logging.getLogger("promptgather.discovery")


@dataclass(frozen=True)
class Match:
    path: Path
    target: TargetSpec
    root: Path
    # resolved form of path, used only to detect the same file reached twice
    canonical: Path


@dataclass
class DiscoveryResult:
    matches: List[Match] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _log_walk_error(exc: OSError) -> None:
    log.warning("Cannot read %s: %s", exc.filename, exc.strerror or exc)


def _is_within(path: Path, dirs: Iterable[Path]) -> bool:
    return any(path == d or d in path.parents for d in dirs)


def iter_target_files(
    root: Path, target: TargetSpec, *, exclude: Sequence[Path] = ()
) -> Iterator[Path]:
    """Yield files named ``target.filename`` under ``root`` that pass its filter.

    Hidden directories are walked like any other; symlinked directories are
    not followed. Directories listed in ``exclude`` (absolute, resolved) are
    pruned, which keeps the output tree out of its own scan.
    """

    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        if exclude:
            here = Path(dirpath)
            dirnames[:] = [d for d in dirnames if (here / d) not in exclude]
        if target.filename not in filenames:
            continue
        path = Path(dirpath) / target.filename
        if not path.is_file():
            continue
        if not target.accepts(path):
            log.debug("Ignoring %s: no '%s' path segment.", path, target.path_segment)
            continue
        yield path


def check_root(root: Path) -> str | None:
    """Return a warning message when ``root`` cannot be scanned, else ``None``."""

    if not root.exists():
        return f"Search root does not exist: {root}"
    if not root.is_dir():
        return f"Search root is not a directory: {root}"
    if not os.access(root, os.R_OK | os.X_OK):
        return f"Search root is not readable: {root}"
    return None


def discover_matches(
    roots: Sequence[Path],
    targets: Sequence[TargetSpec],
    exclude: Optional[Sequence[Path]] = None,
) -> DiscoveryResult:
    """Scan every root for every target, deduplicating by canonical path.

    Files under any ``exclude`` directory, such as the output root, are never
    matched.
    """

    excluded = [Path(p).expanduser().resolve() for p in exclude or ()]
    result = DiscoveryResult()
    seen: Dict[Path, Match] = {}
    for root in roots:
        root = Path(root).expanduser().resolve()
        problem = check_root(root)
        if problem:
            log.warning(problem)
            result.warnings.append(problem)
            continue

        print(f"[GATHER] Searching {root} for {', '.join(t.filename for t in targets)}")
        for target in targets:
            for path in iter_target_files(root, target, exclude=excluded):
                resolved = path.resolve()
                if _is_within(resolved, excluded):
                    log.debug("Skipping %s inside an excluded directory.", resolved)
                    continue
                if resolved in seen:
                    log.debug("Already found %s; skipping duplicate reference.", resolved)
                    continue
                match = Match(path, target, root, resolved)
                seen[resolved] = match
                result.matches.append(match)
                print(f"[GATHER] Found {path}")
    return result
