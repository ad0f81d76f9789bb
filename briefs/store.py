from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Iterable

from briefs.models import Brief
from briefs.models import brief_from_record
from briefs.models import brief_to_record


def read_all_sync(path: str | Path) -> list[Brief]:
    """Load every brief record from the JSON store.

    Raises FileNotFoundError when the store does not exist yet and ValueError
    when the file is not a JSON list of brief records; callers decide whether
    that is fatal.
    """
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Brief store must contain a JSON list: {p}")
    out: list[Brief] = []
    for idx, record in enumerate(raw):
        if not isinstance(record, dict):
            raise ValueError(f"Brief record #{idx} is not an object")
        try:
            out.append(brief_from_record(record))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Brief record #{idx} is invalid: {exc}") from exc
    return out


def write_all_sync(path: str | Path, briefs: Iterable[Brief]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = [brief_to_record(b) for b in briefs]
    fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False, indent=2)
        os.replace(tmp_name, p)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
