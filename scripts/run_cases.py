#!/usr/bin/env python3
# scripts/run_cases.py
# WO-06: Batch case runner with J1 determinism harness

"""
Contract (WO-06):
Run run_case() on every case file in a directory with J1 determinism checks.

J1 Determinism:
- Run each case twice
- Compare all section hashes + table_hash + outputs
- Fail if NONDETERMINISTIC_EXECUTION (hashes differ within same env)
- Warn if NONDETERMINISTIC_ENV (env fingerprints differ)

Output:
- Per-case summaries (with receipts) to out/receipts/run_cases.jsonl
- Summary: accepted/rejected counts, error codes, pass/fail
"""

from __future__ import annotations
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add project root to path
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))

from recon.io.load_data import load_case
from recon.io.save import write_jsonl
from recon.runner import run_with_determinism


def run_batch(case_paths: List[Path], output_path: Path, fail_fast: bool = False) -> Dict[str, Any]:
    """
    Run a batch of cases with J1 determinism checks.

    Args:
        case_paths: case JSON files
        output_path: JSONL output path
        fail_fast: stop on first non-PASS result

    Returns:
        Summary dict with counts and results
    """
    results = []
    result_counts: Dict[str, int] = {}
    error_code_counts: Dict[str, int] = {}

    for i, path in enumerate(case_paths):
        print(f"[{i+1}/{len(case_paths)}] Running {path.stem}...", end=" ", flush=True)

        try:
            case = load_case(str(path))
            case.setdefault("case_id", path.stem)
            result = run_with_determinism(case)
        except (ValueError, TypeError, KeyError, OSError) as e:
            result = {"case_id": path.stem, "result": "ERROR", "error": str(e)}

        status = result["result"]
        result_counts[status] = result_counts.get(status, 0) + 1
        if result.get("error_code"):
            code = result["error_code"]
            error_code_counts[code] = error_code_counts.get(code, 0) + 1

        if status == "PASS":
            detail = result["status"]
            if result.get("error_code"):
                detail += f": {result['error_code']}"
            print(f"PASS ({detail})")
        else:
            print(f"{status}: {result.get('error', 'unknown')}")

        results.append(result)

        if fail_fast and status != "PASS":
            print(f"\nFail-fast: Stopping on first {status}")
            break

    write_jsonl(str(output_path), results)

    return {
        "total": len(results),
        "result_counts": result_counts,
        "error_code_counts": error_code_counts,
        "results": results,
    }


def main():
    """
    Main entry point for the batch runner.

    Usage:
        python scripts/run_cases.py [--cases <dir>] [--output <path>] [--fail-fast]
    """
    import argparse

    parser = argparse.ArgumentParser(description="Reconciliation case runner with J1 determinism")
    parser.add_argument("--cases", type=str, default=str(repo_root / "cases"), help="Directory of case JSON files")
    parser.add_argument("--output", type=str, default="out/receipts/run_cases.jsonl", help="Output JSONL path")
    parser.add_argument("--fail-fast", action="store_true", help="Stop on first failure")

    args = parser.parse_args()

    case_dir = Path(args.cases)
    case_paths = sorted(case_dir.glob("*.json"))
    if not case_paths:
        print(f"No case files found in {case_dir}")
        sys.exit(1)

    output_path = Path(args.output)

    print(f"\nRunning {len(case_paths)} cases with J1 determinism checks")
    print(f"Cases dir: {case_dir}")
    print(f"Output: {output_path}")
    print(f"Fail-fast: {args.fail_fast}\n")

    summary = run_batch(case_paths, output_path, fail_fast=args.fail_fast)

    print("\n" + "="*60)
    print("SUMMARY")
    print("="*60)
    print(f"Total cases: {summary['total']}")
    print("\nResult counts:")
    for result, count in sorted(summary["result_counts"].items()):
        print(f"  {result}: {count}")

    if summary["error_code_counts"]:
        print("\nRejection codes:")
        for code, count in sorted(summary["error_code_counts"].items()):
            print(f"  {code}: {count}")

    print(f"\nReceipts written to: {output_path}")

    counts = summary["result_counts"]
    if counts.get("NONDETERMINISTIC_EXECUTION", 0) > 0:
        print("\n❌ NONDETERMINISTIC_EXECUTION detected!")
        sys.exit(1)
    elif counts.get("ERROR", 0) > 0 or counts.get("FAIL", 0) > 0:
        print("\n❌ Errors or expectation failures detected!")
        sys.exit(1)
    else:
        print("\n✓ All cases passed with J1 determinism")
        sys.exit(0)


if __name__ == "__main__":
    main()
