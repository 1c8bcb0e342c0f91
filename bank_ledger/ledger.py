"""
Ledger Module

The authoritative collection of live accounts plus the deleted-account
registry. Every operation validates its inputs against the current state,
returns an OperationResult instead of raising, appends to the affected log
chains on success and then rewrites both persistence files in full.
"""

from typing import Dict, Iterator, List, Optional

from .accounts import Account, AccountType, Gender, format_account_number
from .audit_log import Clock, SystemClock
from .logging_config import get_logger, log_action
from .registry import DeletedAccountRegistry
from .results import OperationResult, OperationStatus
from .storage import LedgerStorage, LogBlock


logger = get_logger(__name__)

# Largest balance the account record can store (int64)
MAX_BALANCE = 2 ** 63 - 1


class AccountLedger:
    """
    Manages account lifecycle, balances and retained history.

    Accounts are kept in a dict keyed by account number. ``storage`` may be
    None for a purely in-memory ledger.
    """

    def __init__(self, storage: Optional[LedgerStorage] = None,
                 clock: Optional[Clock] = None):
        self.storage = storage
        self.clock = clock or SystemClock()
        self._accounts: Dict[int, Account] = {}
        self.deleted = DeletedAccountRegistry()

    @classmethod
    def open(cls, storage: LedgerStorage, clock: Optional[Clock] = None) -> "AccountLedger":
        """
        Rebuild a ledger from storage.

        Account records are loaded as stored. Each log block is attached to
        the live account with the same number; blocks with no live owner
        become deleted-account registry entries.
        """
        ledger = cls(storage=storage, clock=clock)
        for account in storage.load_accounts():
            ledger._accounts[account.account_number] = account
        for account_number, chain in storage.load_logs():
            account = ledger._accounts.get(account_number)
            if account is not None:
                account.log_chain = chain
            else:
                ledger.deleted.retain(account_number, chain)
        logger.info("Loaded %d accounts and %d deleted-account logs",
                    len(ledger._accounts), len(ledger.deleted))
        return ledger

    # ------------------------------------------------------------------
    # Queries

    def generate_account_number(self) -> int:
        """Next number: one more than any live or deleted number, starting at 1"""
        highest_live = max(self._accounts, default=0)
        return max(highest_live, self.deleted.max_account_number()) + 1

    def find_account(self, account_number: int) -> Optional[Account]:
        return self._accounts.get(account_number)

    def account_exists(self, account_number: int) -> bool:
        return account_number in self._accounts

    def list_accounts(self) -> List[Account]:
        """Live accounts in account-number order"""
        return [self._accounts[number] for number in sorted(self._accounts)]

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self.list_accounts())

    def check_pin(self, account_number: int, pin: int) -> OperationResult:
        account = self._accounts.get(account_number)
        if account is None:
            return OperationResult.failure(OperationStatus.NOT_FOUND)
        if not account.pin_matches(pin):
            return OperationResult.failure(OperationStatus.PIN_MISMATCH)
        return OperationResult.success()

    def get_balance(self, account_number: int, pin: int) -> OperationResult:
        checked = self.check_pin(account_number, pin)
        if not checked.ok:
            return checked
        return OperationResult.success(self._accounts[account_number].balance)

    def mini_statement(self, account_number: int, pin: int, count: int) -> OperationResult:
        """
        The last ``count`` log entries of an account, oldest first.

        Returns:
            SUCCESS with a list of LogEntry, or NOT_FOUND / PIN_MISMATCH /
            NO_LOGS
        """
        checked = self.check_pin(account_number, pin)
        if not checked.ok:
            return checked
        chain = self._accounts[account_number].log_chain
        if not chain:
            return OperationResult.failure(OperationStatus.NO_LOGS)
        return OperationResult.success(chain.last_n(count))

    def logs_for(self, account_number: int) -> OperationResult:
        """Log chain of a live account, else of a deleted one, else NOT_FOUND"""
        account = self._accounts.get(account_number)
        if account is not None:
            return OperationResult.success(account.log_chain)
        record = self.deleted.find(account_number)
        if record is not None:
            return OperationResult.success(record.log_chain)
        return OperationResult.failure(OperationStatus.NOT_FOUND)

    def has_deleted_logs(self, account_number: int) -> bool:
        return account_number in self.deleted

    def deleted_account_numbers(self) -> List[int]:
        return self.deleted.account_numbers()

    # ------------------------------------------------------------------
    # Mutations

    def create_account(
        self,
        full_name: str,
        identity_number: str,
        gender: Gender,
        account_type: AccountType,
        pin: int,
        initial_balance: int
    ) -> OperationResult:
        """
        Open a new account

        Args:
            full_name: Holder name, already validated by the caller
            identity_number: Passport/ID number, unique among live accounts
            gender: Holder gender
            account_type: Current or Savings
            pin: 4-digit PIN
            initial_balance: Opening balance, must not be negative

        Returns:
            SUCCESS with the new account number, or DUPLICATE_IDENTITY /
            INVALID_AMOUNT
        """
        if any(a.identity_number == identity_number for a in self._accounts.values()):
            log_action(logger, "info", "Rejected duplicate identity number",
                       action="account.create", extra={"status": "duplicate_identity"})
            return OperationResult.failure(OperationStatus.DUPLICATE_IDENTITY)
        if not 0 <= initial_balance <= MAX_BALANCE:
            return OperationResult.failure(OperationStatus.INVALID_AMOUNT)

        account = Account(
            account_number=self.generate_account_number(),
            full_name=full_name,
            identity_number=identity_number,
            gender=gender,
            account_type=account_type,
            pin=pin,
            balance=initial_balance,
        )
        self._accounts[account.account_number] = account
        account.record_event("Account created", self.clock)
        self.save()

        self._log_success("account.create", account.account_number)
        return OperationResult.success(account.account_number)

    def deposit(self, account_number: int, pin: int, amount: int) -> OperationResult:
        """Credit ``amount``; SUCCESS carries the new balance"""
        checked = self.check_pin(account_number, pin)
        if not checked.ok:
            return checked
        if amount <= 0:
            return OperationResult.failure(OperationStatus.INVALID_AMOUNT)

        account = self._accounts[account_number]
        if account.balance + amount > MAX_BALANCE:
            return OperationResult.failure(OperationStatus.INVALID_AMOUNT)

        before = account.balance
        account.balance += amount
        account.record_event(
            f"Deposit +RM {amount}, before=RM {before}, after=RM {account.balance}",
            self.clock
        )
        self.save()

        self._log_success("account.deposit", account_number, amount=amount)
        return OperationResult.success(account.balance)

    def withdraw(self, account_number: int, pin: int, amount: int) -> OperationResult:
        """Debit ``amount`` if the balance covers it; SUCCESS carries the new balance"""
        checked = self.check_pin(account_number, pin)
        if not checked.ok:
            return checked
        if amount <= 0:
            return OperationResult.failure(OperationStatus.INVALID_AMOUNT)

        account = self._accounts[account_number]
        if account.balance < amount:
            return OperationResult.failure(OperationStatus.INSUFFICIENT_FUNDS)

        before = account.balance
        account.balance -= amount
        account.record_event(
            f"Withdraw -RM {amount}, before=RM {before}, after=RM {account.balance}",
            self.clock
        )
        self.save()

        self._log_success("account.withdraw", account_number, amount=amount)
        return OperationResult.success(account.balance)

    def transfer(self, source_number: int, pin: int, destination_number: int,
                 amount: int) -> OperationResult:
        """
        Move ``amount`` between two live accounts.

        Nothing is mutated unless every check passes. Each side gets one log
        entry and both files are written once.

        Returns:
            SUCCESS with the new source balance, or NOT_FOUND /
            DESTINATION_NOT_FOUND / SAME_ACCOUNT / PIN_MISMATCH /
            INVALID_AMOUNT / INSUFFICIENT_FUNDS
        """
        source = self._accounts.get(source_number)
        if source is None:
            return OperationResult.failure(OperationStatus.NOT_FOUND)
        destination = self._accounts.get(destination_number)
        if destination is None:
            return OperationResult.failure(OperationStatus.DESTINATION_NOT_FOUND)
        if source is destination:
            return OperationResult.failure(OperationStatus.SAME_ACCOUNT)
        if not source.pin_matches(pin):
            return OperationResult.failure(OperationStatus.PIN_MISMATCH)
        if amount <= 0:
            return OperationResult.failure(OperationStatus.INVALID_AMOUNT)
        if source.balance < amount:
            return OperationResult.failure(OperationStatus.INSUFFICIENT_FUNDS)
        if destination.balance + amount > MAX_BALANCE:
            return OperationResult.failure(OperationStatus.INVALID_AMOUNT)

        source_before = source.balance
        destination_before = destination.balance
        source.balance -= amount
        destination.balance += amount
        source.record_event(
            f"Transfer -RM {amount} to account {format_account_number(destination_number)}"
            f", before=RM {source_before}, after=RM {source.balance}",
            self.clock
        )
        destination.record_event(
            f"Transfer +RM {amount} from account {format_account_number(source_number)}"
            f", before=RM {destination_before}, after=RM {destination.balance}",
            self.clock
        )
        self.save()

        self._log_success("account.transfer", source_number, amount=amount,
                          destination=format_account_number(destination_number))
        return OperationResult.success(source.balance)

    def change_pin(self, account_number: int, old_pin: int, new_pin: int) -> OperationResult:
        """Replace the PIN. The new PIN's format is the caller's concern."""
        checked = self.check_pin(account_number, old_pin)
        if not checked.ok:
            return checked

        account = self._accounts[account_number]
        account.pin = new_pin
        account.record_event("PIN changed", self.clock)
        self.save()

        self._log_success("account.change_pin", account_number)
        return OperationResult.success()

    def edit_info(
        self,
        account_number: int,
        full_name: str,
        identity_number: str,
        gender: Gender,
        account_type: AccountType,
        pin: int
    ) -> OperationResult:
        """
        Overwrite every mutable holder field.

        Unlike create_account, the identity number is not checked for
        uniqueness against other live accounts.
        """
        account = self._accounts.get(account_number)
        if account is None:
            return OperationResult.failure(OperationStatus.NOT_FOUND)

        account.full_name = full_name
        account.identity_number = identity_number
        account.gender = gender
        account.account_type = account_type
        account.stored_type_label = None
        account.pin = pin
        account.record_event("Info changed", self.clock)
        self.save()

        self._log_success("account.edit_info", account_number)
        return OperationResult.success()

    def delete_account(self, account_number: int) -> OperationResult:
        """
        Remove a live account, keeping its history.

        The deletion is logged on the account first; the chain then moves to
        the deleted-account registry and the account no longer references it.
        """
        account = self._accounts.get(account_number)
        if account is None:
            return OperationResult.failure(OperationStatus.NOT_FOUND)

        account.record_event("Account deleted", self.clock)
        self.deleted.retain(account_number, account.detach_log_chain())
        del self._accounts[account_number]
        self.save()

        self._log_success("account.delete", account_number)
        return OperationResult.success()

    def record_note(self, account_number: int, message: str) -> OperationResult:
        """Stamp an arbitrary message onto a live account and persist the logs"""
        account = self._accounts.get(account_number)
        if account is None:
            return OperationResult.failure(OperationStatus.NOT_FOUND)
        entry = account.record_event(message, self.clock)
        if self.storage is not None:
            self.storage.save_logs(self.log_blocks())
        return OperationResult.success(entry)

    # ------------------------------------------------------------------
    # Persistence

    def log_blocks(self) -> List[LogBlock]:
        """Live accounts with logs first, then every retained chain"""
        blocks: List[LogBlock] = [
            (account.account_number, account.log_chain)
            for account in self.list_accounts()
            if account.log_chain
        ]
        blocks.extend((record.account_number, record.log_chain) for record in self.deleted)
        return blocks

    def save(self) -> bool:
        """Rewrite both files in full; a no-op for an in-memory ledger"""
        if self.storage is None:
            return True
        return self.storage.save(self.list_accounts(), self.log_blocks())

    def _log_success(self, action: str, account_number: int, **details) -> None:
        log_action(logger, "info", f"{action} succeeded",
                   action=action,
                   resource=f"account:{format_account_number(account_number)}",
                   extra=details or None)
