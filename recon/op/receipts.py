# recon/op/receipts.py
# WO-00: Receipts kernel and environment fingerprinting
# Receipts are the only artefact a run leaves behind

from __future__ import annotations
import platform
import sys
import json
from dataclasses import dataclass, asdict
from importlib.metadata import version
from typing import Any, Dict
from .hash import hash_bytes


@dataclass
class EnvRc:
    """
    Environment fingerprint.

    Two runs are only comparable hash-for-hash when their EnvRc match;
    a mismatch is reported as NONDETERMINISTIC_ENV, not as a failure.
    """
    platform: str
    endian: str
    py_version: str
    blake3_version: str
    numpy_version: str
    build_flags_hash: str


def env_fingerprint() -> EnvRc:
    """
    Capture environment fingerprint for determinism checking.

    Returns:
        EnvRc: environment receipt
    """
    build_info = {
        "py_version": sys.version,
        "implementation": platform.python_implementation(),
        "version_info": list(sys.version_info),
    }
    flags = hash_bytes(json.dumps(build_info, sort_keys=True).encode())

    return EnvRc(
        platform=platform.system(),
        endian=sys.byteorder,
        py_version=platform.python_version(),
        blake3_version=version("blake3"),
        numpy_version=version("numpy"),
        build_flags_hash=flags,
    )


@dataclass
class RunRc:
    """
    Full run receipt for one case.

    sections: per-section receipts ({"combine": {...}, "dedup": {...}})
    hashes: BLAKE3 of each section's canonical JSON
    table_hash: BLAKE3(concat(sorted(section_key + ':' + hash)))
    final: {"status": "accepted" | "rejected", "error_code", "error", ...}

    No timestamps (frozen serialization).
    """
    case_id: str
    env: Dict[str, Any]
    sections: Dict[str, Any]
    hashes: Dict[str, str]
    table_hash: str
    final: Dict[str, Any]


def to_plain(x: Any) -> Any:
    """Recursively convert dataclasses (and tuples) to JSON-ready values."""
    if hasattr(x, "__dataclass_fields__"):
        return {k: to_plain(v) for k, v in asdict(x).items()}
    if isinstance(x, dict):
        return {k: to_plain(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [to_plain(v) for v in x]
    return x


def section_hash(section: Any) -> str:
    """BLAKE3 over a section's canonical (sorted-key, compact) JSON."""
    payload = json.dumps(to_plain(section), sort_keys=True, separators=(",", ":"))
    return hash_bytes(payload.encode())


def table_hash(hashes: Dict[str, str]) -> str:
    """BLAKE3 over sorted "key:hash" lines."""
    lines = [f"{k}:{hashes[k]}" for k in sorted(hashes)]
    return hash_bytes("\n".join(lines).encode())


def aggregate(run: RunRc | dict) -> dict:
    """
    Convert nested receipts (dataclasses or dicts) to a JSON-serializable dict.

    Args:
        run: RunRc or dict containing receipts

    Returns:
        dict: plain representation, one JSONL record per run
    """
    return to_plain(run)
