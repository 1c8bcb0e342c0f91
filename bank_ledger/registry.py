"""
Deleted-Account Registry

Keeps the log chains of deleted accounts, keyed by their former account
number, so audit history survives deletion. Entries are write-once.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .audit_log import LogChain


@dataclass(frozen=True)
class DeletedAccountRecord:
    """Retained history of one deleted account"""
    account_number: int
    log_chain: LogChain


class DeletedAccountRegistry:
    """Registry of retained log chains, in retention order"""

    def __init__(self):
        self._records: Dict[int, DeletedAccountRecord] = {}

    def retain(self, account_number: int, log_chain: LogChain) -> DeletedAccountRecord:
        """
        Take ownership of ``log_chain`` for ``account_number``.

        A later record for the same number replaces the earlier one; this
        only happens when a log file carries duplicate blocks.
        """
        record = DeletedAccountRecord(account_number=account_number, log_chain=log_chain)
        self._records[account_number] = record
        return record

    def find(self, account_number: int) -> Optional[DeletedAccountRecord]:
        return self._records.get(account_number)

    def account_numbers(self) -> List[int]:
        return sorted(self._records)

    def max_account_number(self) -> int:
        return max(self._records, default=0)

    def __contains__(self, account_number: object) -> bool:
        return account_number in self._records

    def __iter__(self) -> Iterator[DeletedAccountRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)
