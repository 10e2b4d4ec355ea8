# recon/op/errors.py
# WO-00: Fail-closed error taxonomy for reconciliation checks

from __future__ import annotations


class ReconError(ValueError):
    """
    Base class for every reconciliation assertion failure.

    A raised ReconError means the supplied witness data is malformed or
    adversarial. There is no recovery path: the caller must refuse to
    produce a result for this run.

    Attributes:
        code: stable taxonomy name (used in receipts)
        msg: fixed human-readable message
        detail: optional context (slot index, offending values)
    """
    code = "RECON_ERROR"
    msg = "reconciliation check failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail
        text = self.msg if detail is None else f"{self.msg} ({detail})"
        super().__init__(text)


class RunPositionOrderViolation(ReconError):
    code = "RunPositionOrderViolation"
    msg = "run boundaries must strictly increase by position"


class RunLengthExhausted(ReconError):
    code = "RunLengthExhausted"
    msg = "run length table must not claim a zero-length run while still inside data"


class RunPositionMismatch(ReconError):
    code = "RunPositionMismatch"
    msg = "every item in a run must share the run's position"


class DedupValueMismatch(ReconError):
    code = "DedupValueMismatch"
    msg = "closing item of a run must equal the claimed deduped value"


class RunCounterOrderViolation(ReconError):
    code = "RunCounterOrderViolation"
    msg = "counters within a run must strictly increase"


class DedupLengthMismatch(ReconError):
    code = "DedupLengthMismatch"
    msg = "number of runs closed must equal the deduped array length"


class PaddingInvalid(ReconError):
    code = "PaddingInvalid"
    msg = "empty items must form a contiguous suffix"


ERROR_CODES = {
    cls.code: cls
    for cls in (
        RunPositionOrderViolation,
        RunLengthExhausted,
        RunPositionMismatch,
        DedupValueMismatch,
        RunCounterOrderViolation,
        DedupLengthMismatch,
        PaddingInvalid,
    )
}
