from __future__ import annotations


class SplitBillError(Exception):
    pass


class BillValidationError(SplitBillError, ValueError):
    """Malformed input for a bill mutation (blank name, bad price, bad rate...)."""


class OwnerRemovalError(SplitBillError, PermissionError):
    pass


class InvariantViolation(SplitBillError, AssertionError):
    """The bill aggregate is internally inconsistent. Always a bug, never user input."""
