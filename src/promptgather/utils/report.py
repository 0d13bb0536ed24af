"""Per-run record of what was found, copied and what failed."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .atomic_copy import atomic_write_json

COPIED = "copied"
PLANNED = "planned"
FAILED = "failed"


@dataclass
class CopyOutcome:
    source_path: str
    status: str
    source_name: Optional[str] = None
    destination_path: Optional[str] = None
    stage: Optional[str] = None  # "name", "read" or "write" for failures
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != FAILED


@dataclass
class CollectionReport:
    output_root: str
    dry_run: bool = False
    outcomes: List[CopyOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    @property
    def succeeded(self) -> List[CopyOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[CopyOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def source_names(self) -> List[str]:
        names: List[str] = []
        for outcome in self.succeeded:
            if outcome.source_name and outcome.source_name not in names:
                names.append(outcome.source_name)
        return names

    def summary(self) -> str:
        if not self.outcomes:
            return "Nothing found."
        verb = "Would copy" if self.dry_run else "Copied"
        text = f"{verb} {len(self.succeeded)} file(s) from {len(self.source_names)} source(s)"
        if self.failed:
            text += f", {len(self.failed)} failed"
        return text + "."

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["summary"] = self.summary()
        return data

    def write_json(self, path: Path | str) -> Path:
        return atomic_write_json(path, self.to_dict())
