#!/usr/bin/env python3
# recon/runner.py
# WO-06: Case runner + determinism harness
# Runs the combiner and the dedup verifier on one case with receipts

"""
Contract (WO-06):
A case carries a "combine" section, a "dedup" section, or both.

Frozen order (no reordering):
decode → [combine: witness sort → combiner] → [dedup: (hint build) → verifier] → receipts

A ReconError in any section rejects the whole case: the receipt records
final.status = "rejected" with the error code and message, and no outputs
are reported. Any other exception is a calling-convention or I/O error and
propagates.

J1 Determinism: run twice, compare section hashes + table_hash + output_hash.
"""

from __future__ import annotations
from dataclasses import asdict
from typing import Any, Dict, List, Tuple

from recon.io.load_data import decode_counter_values, decode_data_writes, decode_run_lengths
from recon.op.dedup import verify_deduped_array
from recon.op.errors import ReconError
from recon.op.order_hints import combine_order_hints
from recon.op.receipts import RunRc, aggregate, env_fingerprint, to_plain, section_hash, table_hash
from recon.op.sort_hint import build_dedup_hints


def _run_combine(payload: Dict[str, Any], capacity: int) -> Tuple[List[List[int]], Dict[str, Any]]:
    lt = decode_counter_values(payload.get("lt", []), capacity, "combine.lt")
    gte = decode_counter_values(payload.get("gte", []), capacity, "combine.gte")
    hints, hints_rc = combine_order_hints(lt, gte)
    return [[h.counter, h.original_index] for h in hints], to_plain(hints_rc)


def _run_dedup(payload: Dict[str, Any], capacity: int) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Verify a dedup witness.

    If the case omits "deduped", "sorted" is treated as unsorted input and
    the witness is built out-of-band first; it is still fully re-verified.
    """
    arr = decode_data_writes(payload.get("sorted", []), capacity, "dedup.sorted")
    section: Dict[str, Any] = {}

    if "deduped" in payload:
        sorted_array = arr
        deduped = decode_data_writes(payload["deduped"], capacity, "dedup.deduped")
        run_lengths = decode_run_lengths(payload.get("run_lengths", []), capacity)
        section["witness"] = "supplied"
    else:
        hints = build_dedup_hints(arr)
        sorted_array = hints.sorted_array
        deduped = hints.deduped
        run_lengths = [int(v) for v in hints.run_lengths]
        section["witness"] = "built"
        section["sorted_indexes"] = hints.sorted_indexes

    dedup_rc = verify_deduped_array(sorted_array, deduped, run_lengths)
    section["receipt"] = to_plain(dedup_rc)

    out = {
        "deduped": [list(x.to_fields()) for x in deduped[:dedup_rc.deduped_len]],
        "run_lengths": run_lengths,
    }
    return out, section


def run_case(case: Dict[str, Any]) -> Tuple[Dict[str, Any], RunRc]:
    """
    Run one reconciliation case.

    Args:
        case: parsed case dict (see recon.io.load_data.load_case)

    Returns:
        (outputs, run_rc): outputs is {} when the case is rejected

    Raises:
        ValueError/TypeError: malformed case (not a reconciliation failure)
    """
    case_id = str(case.get("case_id", "unknown"))
    if "capacity" not in case:
        raise ValueError(f"Case {case_id}: missing capacity")
    capacity = int(case["capacity"])
    if capacity < 0:
        raise ValueError(f"Case {case_id}: capacity must be >= 0, got {capacity}")

    env = asdict(env_fingerprint())
    sections: Dict[str, Any] = {}
    outputs: Dict[str, Any] = {}
    final: Dict[str, Any] = {"status": "accepted", "error_code": None, "error": None}

    try:
        if "combine" in case:
            hints, sections["combine"] = _run_combine(case["combine"], capacity)
            outputs["hints"] = hints
        if "dedup" in case:
            dedup_out, sections["dedup"] = _run_dedup(case["dedup"], capacity)
            outputs.update(dedup_out)
    except ReconError as e:
        final = {"status": "rejected", "error_code": e.code, "error": str(e)}
        outputs = {}

    final["output_hash"] = section_hash(outputs)

    hashes = {k: section_hash(v) for k, v in sections.items()}
    hashes["final"] = section_hash(final)

    run_rc = RunRc(
        case_id=case_id,
        env=env,
        sections=sections,
        hashes=hashes,
        table_hash=table_hash(hashes),
        final=final,
    )
    return outputs, run_rc


def check_expectation(case: Dict[str, Any], outputs: Dict[str, Any], run_rc: RunRc) -> List[str]:
    """
    Compare a run against the case's "expect" block.

    Returns:
        list of mismatch descriptions (empty if the run matches or no
        expectation is given)
    """
    expect = case.get("expect")
    if not expect:
        return []

    problems = []
    status = run_rc.final["status"]
    if "status" in expect and expect["status"] != status:
        problems.append(f"status: expected {expect['status']}, got {status}")
    if "error_code" in expect and expect["error_code"] != run_rc.final["error_code"]:
        problems.append(f"error_code: expected {expect['error_code']}, got {run_rc.final['error_code']}")
    if "hints" in expect:
        got = outputs.get("hints", [])
        want = expect["hints"]
        if got[:len(want)] != want:
            problems.append(f"hints: expected prefix {want}, got {got[:len(want)]}")
    if "deduped" in expect and outputs.get("deduped") != expect["deduped"]:
        problems.append(f"deduped: expected {expect['deduped']}, got {outputs.get('deduped')}")
    return problems


def run_with_determinism(case: Dict[str, Any]) -> Dict[str, Any]:
    """
    Run a case twice and check J1 determinism plus its expectation.

    Returns:
        {
            "case_id": str,
            "result": "PASS" | "FAIL" | "NONDETERMINISTIC_EXECUTION" | "NONDETERMINISTIC_ENV",
            "status": "accepted" | "rejected",
            "error_code": str | None,
            "table_hash_run1": str,
            "table_hash_run2": str,
            "receipt": dict,
            "error": str | None
        }
    """
    out1, rc1 = run_case(case)
    out2, rc2 = run_case(case)

    summary = {
        "case_id": rc1.case_id,
        "result": "PASS",
        "status": rc1.final["status"],
        "error_code": rc1.final["error_code"],
        "table_hash_run1": rc1.table_hash,
        "table_hash_run2": rc2.table_hash,
        "receipt": aggregate(rc1),
        "error": None,
    }

    if rc1.env != rc2.env:
        summary["result"] = "NONDETERMINISTIC_ENV"
        summary["error"] = "Environment fingerprints differ between runs"
        return summary

    if rc1.hashes != rc2.hashes:
        diff_sections = [k for k in rc1.hashes if rc1.hashes.get(k) != rc2.hashes.get(k)]
        summary["result"] = "NONDETERMINISTIC_EXECUTION"
        summary["error"] = f"Section hashes differ between runs: {diff_sections}"
        return summary

    if rc1.table_hash != rc2.table_hash or out1 != out2:
        summary["result"] = "NONDETERMINISTIC_EXECUTION"
        summary["error"] = "Table hashes or outputs differ between runs"
        return summary

    problems = check_expectation(case, out1, rc1)
    if problems:
        summary["result"] = "FAIL"
        summary["error"] = "; ".join(problems)

    return summary
