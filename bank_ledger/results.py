"""
Operation results returned by the ledger.

Every failure reason is a distinct status so callers can tell "account not
found" from "wrong PIN" from "insufficient funds" without exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class OperationStatus(Enum):
    """Outcome of a ledger operation"""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    DESTINATION_NOT_FOUND = "destination_not_found"
    SAME_ACCOUNT = "same_account"
    PIN_MISMATCH = "pin_mismatch"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    DUPLICATE_IDENTITY = "duplicate_identity"
    NO_LOGS = "no_logs"


@dataclass(frozen=True)
class OperationResult:
    """Status plus an optional payload (new balance, account number, entries...)"""
    status: OperationStatus
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(OperationStatus.SUCCESS, value)

    @classmethod
    def failure(cls, status: OperationStatus) -> "OperationResult":
        if status is OperationStatus.SUCCESS:
            raise ValueError("failure() requires a non-success status")
        return cls(status)
