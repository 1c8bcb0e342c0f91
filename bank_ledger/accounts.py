"""
Account Module

One bank account: identity, credentials, balance and its owned log chain.
Accounts are plain mutable records; the ledger enforces the invariants
that span accounts (unique identity numbers, never-reused numbers).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .audit_log import Clock, LogChain, LogEntry, stamp


class Gender(Enum):
    """Account holder gender, persisted as a single byte"""
    MALE = "M"
    FEMALE = "F"

    @property
    def label(self) -> str:
        return "Male" if self is Gender.MALE else "Female"

    @classmethod
    def from_code(cls, code: str) -> "Gender":
        """'M' is male; any other code reads as female"""
        return cls.MALE if code.upper() == "M" else cls.FEMALE


class AccountType(Enum):
    """Banking product types"""
    CURRENT = "Current"
    SAVINGS = "Savings"

    @classmethod
    def from_code(cls, code: str) -> "AccountType":
        """Map the menu letter C/S to a type"""
        letter = code.strip().upper()
        if letter == "C":
            return cls.CURRENT
        if letter == "S":
            return cls.SAVINGS
        raise ValueError(f"Unknown account type code: {code!r}")


def format_account_number(account_number: int) -> str:
    """Zero-pad to 4 digits"""
    return f"{account_number:04d}"


def format_pin(pin: int) -> str:
    """Zero-pad to 4 digits"""
    return f"{pin:04d}"


@dataclass
class Account:
    """
    Bank account with an append-only event log.

    ``log_chain`` is None only after the chain has been handed over to the
    deleted-account registry.
    """
    account_number: int
    full_name: str
    identity_number: str
    gender: Gender
    account_type: AccountType
    pin: int
    balance: int
    log_chain: Optional[LogChain] = field(default_factory=LogChain, repr=False, compare=False)
    # Type label read from a file that is not a known AccountType; written back as is
    stored_type_label: Optional[str] = None

    @property
    def type_label(self) -> str:
        if self.stored_type_label is not None:
            return self.stored_type_label
        return self.account_type.value

    def record_event(self, message: str, clock: Clock) -> LogEntry:
        """Stamp ``message`` with the current time and append it"""
        if self.log_chain is None:
            raise ValueError(
                f"Account {format_account_number(self.account_number)} no longer owns a log chain"
            )
        return self.log_chain.append(stamp(message, clock))

    def detach_log_chain(self) -> LogChain:
        """Hand over the log chain; the account keeps no reference to it"""
        chain = self.log_chain
        if chain is None:
            raise ValueError(
                f"Account {format_account_number(self.account_number)} log chain already detached"
            )
        self.log_chain = None
        return chain

    def pin_matches(self, pin: int) -> bool:
        return self.pin == pin

    def details(self, currency: str = "RM") -> str:
        """Full one-line description including credentials"""
        return (
            f"Account No: {format_account_number(self.account_number)}"
            f"; Name: {self.full_name}"
            f"; Passport No: {self.identity_number}"
            f"; Gender: {self.gender.label}"
            f"; Type: {self.type_label}"
            f"; PIN: {format_pin(self.pin)}"
            f"; Balance: {currency} {self.balance}"
        )
