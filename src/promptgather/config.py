from __future__ import annotations
import os, yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple
from dotenv import load_dotenv

COPILOT_INSTRUCTIONS = "copilot-instructions.md"
GITHUB_SEGMENT = ".github"

DEFAULT_SEARCH_ROOTS: Tuple[str, ...] = ("~/git", "~/projects", "~/src")
DEFAULT_OUTPUT_ROOT = "from"


def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def default_source_levels(filename: str) -> int:
    """Directory levels between a matched file and the repository owning it.

    ``<repo>/.github/copilot-instructions.md`` sits two levels below the
    repository; every other target lives directly at ``<repo>/<filename>``.
    """
    return 2 if filename == COPILOT_INSTRUCTIONS else 1


@dataclass(frozen=True)
class TargetSpec:
    """A filename to look for, with an optional required path segment."""

    filename: str
    path_segment: Optional[str] = None
    source_levels: int = 1

    @classmethod
    def for_filename(cls, filename: str) -> "TargetSpec":
        segment = GITHUB_SEGMENT if filename == COPILOT_INSTRUCTIONS else None
        return cls(filename, segment, default_source_levels(filename))

    def accepts(self, path: Path) -> bool:
        if self.path_segment is None:
            return True
        return self.path_segment in path.parent.parts


DEFAULT_TARGETS: Tuple[TargetSpec, ...] = (
    TargetSpec.for_filename(COPILOT_INSTRUCTIONS),
    TargetSpec.for_filename("GEMINI.md"),
    TargetSpec.for_filename("AGENTS.md"),
)


@dataclass
class Settings:
    search_roots: list[str] = field(default_factory=lambda: list(DEFAULT_SEARCH_ROOTS))
    output_root: str = DEFAULT_OUTPUT_ROOT
    targets: Tuple[TargetSpec, ...] = DEFAULT_TARGETS
    report_json: str = ""
    dry_run: bool = False


def get_search_roots(cfg: Settings) -> list[Path]:
    """
    Normalize search roots to absolute Path objects, keeping their order.

    Duplicate entries (after ``~`` expansion and resolution) are dropped.
    """
    roots: list[Path] = []
    for entry in cfg.search_roots:
        path = Path(entry).expanduser().resolve()
        if path not in roots:
            roots.append(path)
    return roots


def get_output_root(cfg: Settings) -> Path:
    return Path(cfg.output_root).expanduser().resolve()


def _target_from_config(entry: Any) -> TargetSpec:
    if isinstance(entry, str):
        return TargetSpec.for_filename(entry)
    if not isinstance(entry, dict) or not entry.get("filename"):
        raise ValueError(f"Invalid target entry (expected a filename or mapping with 'filename'): {entry!r}")
    filename = str(entry["filename"])
    if "path_segment" in entry:
        segment = entry["path_segment"] or None
    else:
        segment = TargetSpec.for_filename(filename).path_segment
    levels = int(entry.get("source_levels", default_source_levels(filename)))
    if levels < 1:
        raise ValueError(f"source_levels must be >= 1 for target {filename!r}")
    return TargetSpec(filename, None if segment is None else str(segment), levels)


def parse_targets(entries: Iterable[Any]) -> Tuple[TargetSpec, ...]:
    targets = tuple(_target_from_config(entry) for entry in entries)
    if not targets:
        raise ValueError("At least one target filename is required.")
    return targets


def _split_env_list(value: str, sep: str) -> list[str]:
    return [item.strip() for item in value.split(sep) if item.strip()]


def load_raw_config(config_path: str | Path | None) -> Dict[str, Any]:
    if not config_path:
        return {}
    p = Path(config_path).expanduser()
    if not p.exists():
        return {}
    with open(p, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {p}")
    return data


def load_settings(config_path: str | Path | None) -> Settings:
    load_dotenv(dotenv_path=Path(".env"))  # optional
    data = load_raw_config(config_path)

    roots_cfg = data.get("search_roots", list(DEFAULT_SEARCH_ROOTS))
    if isinstance(roots_cfg, str):
        roots_cfg = [roots_cfg]
    search_roots = [str(r) for r in roots_cfg or []]
    roots_env = os.getenv("GATHER_SEARCH_ROOTS")
    if roots_env:
        search_roots = _split_env_list(roots_env, os.pathsep)

    targets_cfg = data.get("targets")
    targets = parse_targets(targets_cfg) if targets_cfg else DEFAULT_TARGETS
    targets_env = os.getenv("GATHER_TARGETS")
    if targets_env:
        targets = parse_targets(_split_env_list(targets_env, ","))

    return Settings(
        search_roots=search_roots,
        output_root=str(os.getenv("GATHER_OUTPUT_ROOT", data.get("output_root") or DEFAULT_OUTPUT_ROOT)),
        targets=targets,
        report_json=str(os.getenv("GATHER_REPORT_JSON", data.get("report_json", "") or "")),
        dry_run=_as_bool(os.getenv("GATHER_DRY_RUN", data.get("dry_run")), False),
    )
