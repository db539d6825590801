"""
Exception hierarchy for the Creator Digest core.

The core never raises for well-typed but empty input. Errors are reserved
for caller contract violations:
- ContractViolation: negative limits/budgets or malformed configuration
- InvalidRecord: a content record that fails boundary validation
"""

from __future__ import annotations


class DigestError(Exception):
    """Base class for all errors raised by this package."""


class ContractViolation(DigestError, ValueError):
    """Raised when a caller passes input that breaks a documented contract."""


class InvalidRecord(ContractViolation):
    """A content record rejected at input validation.

    Attributes:
        record_id: The offending record's id, or None when the id itself is missing
        reason: Human-readable reason for the rejection
    """

    def __init__(self, record_id: str | None, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Invalid record {record_id or '<missing id>'}: {reason}")
