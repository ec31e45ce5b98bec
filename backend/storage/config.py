from __future__ import annotations

import os
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def store_path() -> Path:
    # Kept under the repo by default so a dev session survives restarts.
    return Path(
        os.getenv("PITCHMAP_STORE_PATH")
        or (_repo_root() / "data" / "store" / "pitchmap.duckdb")
    )


def store_durable() -> bool:
    v = (os.getenv("PITCHMAP_STORE") or "1").strip().lower()
    return v not in {"0", "false", "no", "off"}
