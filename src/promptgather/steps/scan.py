from __future__ import annotations

from ..config import Settings, get_output_root, get_search_roots
from ..utils.discovery import DiscoveryResult, discover_matches
from ..utils.source_names import SourceNameError, derive_source_name


def main(cfg: Settings) -> DiscoveryResult:
    roots = get_search_roots(cfg)
    result = discover_matches(roots, cfg.targets, exclude=[get_output_root(cfg)])
    for match in result.matches:
        try:
            name = derive_source_name(match.path, match.target.source_levels)
        except SourceNameError as exc:
            print(f"[SCAN] {match.path}: {exc}")
            continue
        print(f"[SCAN] {name:>24}  {match.target.filename:<26} {match.path}")
    for warning in result.warnings:
        print(f"[SCAN] Skipped root: {warning}")
    scanned = len(roots) - len(result.warnings)
    print(f"[SCAN] {len(result.matches)} match(es) across {scanned} root(s)")
    return result
