# recon/io/save.py
# WO-05: Minimal JSON writer for receipts

from __future__ import annotations
import json
import os
from typing import Any


def write_jsonl(path: str, records: list[Any]) -> None:
    """
    Write list of objects as JSONL (one JSON object per line).

    Args:
        path: output file path
        records: list of JSON-serializable objects
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w") as f:
        for record in records:
            f.write(json.dumps(record, separators=(",", ":")) + "\n")
