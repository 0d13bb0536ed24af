#!/usr/bin/env python3
"""
Copy copilot-instructions.md, GEMINI.md and AGENTS.md files from sibling
repositories into ./from/<repo>/ for reference.

Usage:
    python scripts/gather.py
    python scripts/gather.py --dry-run
    python scripts/gather.py --root ~/work --output from scan
"""
from __future__ import annotations
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from promptgather.pipeline import main

if __name__ == "__main__":
    raise SystemExit(main())
