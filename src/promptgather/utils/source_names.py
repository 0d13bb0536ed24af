"""Derive the owning repository name for a matched instruction file."""

from __future__ import annotations

from pathlib import Path


class SourceNameError(ValueError):
    """Raised when a match path has no usable ancestor to name its source."""


def derive_source_name(path: Path, levels: int = 1) -> str:
    """Return the final component of the ``levels``-th ancestor of ``path``.

    ``levels=1`` names the immediate parent directory
    (``/a/b/otherrepo/AGENTS.md`` -> ``otherrepo``); ``levels=2`` skips one
    more directory (``/a/b/myrepo/.github/copilot-instructions.md`` ->
    ``myrepo``).
    """

    if levels < 1:
        raise SourceNameError(f"levels must be >= 1, got {levels}")
    parents = Path(path).parents
    if levels > len(parents):
        raise SourceNameError(f"{path} is too shallow to strip {levels} level(s)")
    name = parents[levels - 1].name
    if not name or name in {".", ".."}:
        raise SourceNameError(f"No source name above {path} at depth {levels}")
    return name
