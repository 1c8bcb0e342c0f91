"""
Test suite for the account ledger

Tests every ledger operation and its failure statuses, number generation,
deletion with history retention, and the consistency between balances and
the before/after amounts recorded in each account's log.
"""

import re

import pytest

from bank_ledger.accounts import AccountType, Gender
from bank_ledger.ledger import MAX_BALANCE, AccountLedger
from bank_ledger.results import OperationResult, OperationStatus
from bank_ledger.storage import InMemoryLedgerStorage

from conftest import STAMP


BALANCE_PATTERN = re.compile(r"before=RM (\d+), after=RM (\d+)")


class TestAccountCreation:
    """Test account creation and number generation"""

    def test_numbers_start_at_one(self, ledger):
        assert ledger.generate_account_number() == 1

    def test_create_returns_new_number_and_logs(self, ledger):
        result = ledger.create_account(
            "Alice Tan", "A1234567", Gender.FEMALE, AccountType.SAVINGS, 1234, 500
        )

        assert result.ok
        assert result.value == 1
        account = ledger.find_account(1)
        assert account.full_name == "Alice Tan"
        assert account.identity_number == "A1234567"
        assert account.gender is Gender.FEMALE
        assert account.account_type is AccountType.SAVINGS
        assert account.pin == 1234
        assert account.balance == 500
        assert account.log_chain.texts() == [f"Account created at {STAMP}"]

    def test_duplicate_identity_rejected(self, ledger, make_account):
        make_account(identity_number="P9876543")

        result = ledger.create_account(
            "Bob Lee", "P9876543", Gender.MALE, AccountType.CURRENT, 1111, 800
        )

        assert result.status is OperationStatus.DUPLICATE_IDENTITY
        assert len(ledger) == 1

    def test_identity_of_deleted_account_can_be_reused(self, ledger, make_account):
        number = make_account(identity_number="P9876543")
        ledger.delete_account(number)

        result = ledger.create_account(
            "Bob Lee", "P9876543", Gender.MALE, AccountType.CURRENT, 1111, 800
        )

        assert result.ok
        assert result.value == number + 1

    def test_negative_opening_balance_rejected(self, ledger):
        result = ledger.create_account(
            "Alice Tan", "A1234567", Gender.FEMALE, AccountType.SAVINGS, 1234, -1
        )

        assert result.status is OperationStatus.INVALID_AMOUNT
        assert len(ledger) == 0

    def test_numbers_never_reused_after_deletion(self, ledger, make_account):
        assert [make_account(), make_account(), make_account()] == [1, 2, 3]

        ledger.delete_account(2)

        assert make_account() == 4

    def test_deleting_highest_number_still_advances(self, ledger, make_account):
        make_account()
        make_account()
        ledger.delete_account(2)

        assert ledger.generate_account_number() == 3

    def test_numbers_strictly_increase(self, ledger, make_account):
        seen = []
        for round_number in range(5):
            seen.append(make_account())
            if round_number % 2:
                ledger.delete_account(seen[-1])

        assert seen == sorted(set(seen))

    def test_find_and_exists(self, ledger, make_account):
        number = make_account()

        assert ledger.account_exists(number)
        assert ledger.find_account(number) is not None
        assert not ledger.account_exists(999)
        assert ledger.find_account(999) is None

    def test_list_accounts_in_number_order(self, ledger, make_account):
        for _ in range(3):
            make_account()

        assert [a.account_number for a in ledger.list_accounts()] == [1, 2, 3]
        assert [a.account_number for a in ledger] == [1, 2, 3]


class TestPinCheck:
    """Test the three-way PIN check"""

    def test_check_pin_branches(self, ledger, make_account):
        make_account(pin=1234)

        assert ledger.check_pin(1, 1234).status is OperationStatus.SUCCESS
        assert ledger.check_pin(1, 9999).status is OperationStatus.PIN_MISMATCH
        assert ledger.check_pin(999, 1234).status is OperationStatus.NOT_FOUND

    def test_leading_zero_pin(self, ledger, make_account):
        make_account(pin=7)

        assert ledger.check_pin(1, 7).ok
        assert not ledger.check_pin(1, 7000).ok


class TestDepositWithdraw:
    """Test deposits and withdrawals"""

    def test_deposit_updates_balance_and_logs(self, ledger, make_account):
        number = make_account(balance=500)

        result = ledger.deposit(number, 1234, 200)

        assert result == OperationResult.success(700)
        assert ledger.find_account(number).log_chain.texts()[-1] == (
            f"Deposit +RM 200, before=RM 500, after=RM 700 at {STAMP}"
        )

    @pytest.mark.parametrize("amount", [0, -5])
    def test_deposit_rejects_non_positive(self, ledger, make_account, amount):
        number = make_account(balance=500)

        assert ledger.deposit(number, 1234, amount).status is OperationStatus.INVALID_AMOUNT
        assert ledger.find_account(number).balance == 500
        assert len(ledger.find_account(number).log_chain) == 1

    def test_deposit_failure_statuses(self, ledger, make_account):
        number = make_account()

        assert ledger.deposit(999, 1234, 10).status is OperationStatus.NOT_FOUND
        assert ledger.deposit(number, 4321, 10).status is OperationStatus.PIN_MISMATCH

    def test_pin_checked_before_amount(self, ledger, make_account):
        number = make_account()

        assert ledger.deposit(number, 4321, 0).status is OperationStatus.PIN_MISMATCH
        assert ledger.withdraw(number, 4321, 0).status is OperationStatus.PIN_MISMATCH

    def test_withdraw_updates_balance_and_logs(self, ledger, make_account):
        number = make_account(balance=500)

        result = ledger.withdraw(number, 1234, 120)

        assert result.ok
        assert result.value == 380
        assert ledger.find_account(number).log_chain.texts()[-1] == (
            f"Withdraw -RM 120, before=RM 500, after=RM 380 at {STAMP}"
        )

    def test_withdraw_entire_balance(self, ledger, make_account):
        number = make_account(balance=500)

        assert ledger.withdraw(number, 1234, 500).value == 0

    @pytest.mark.parametrize("amount", [501, 1000, 10 ** 9])
    def test_withdraw_never_goes_negative(self, ledger, make_account, amount):
        number = make_account(balance=500)

        result = ledger.withdraw(number, 1234, amount)

        assert result.status is OperationStatus.INSUFFICIENT_FUNDS
        assert ledger.find_account(number).balance == 500
        assert len(ledger.find_account(number).log_chain) == 1

    def test_withdraw_failure_statuses(self, ledger, make_account):
        number = make_account()

        assert ledger.withdraw(999, 1234, 10).status is OperationStatus.NOT_FOUND
        assert ledger.withdraw(number, 1, 10).status is OperationStatus.PIN_MISMATCH
        assert ledger.withdraw(number, 1234, 0).status is OperationStatus.INVALID_AMOUNT

    def test_log_replay_matches_balance(self, ledger, make_account):
        number = make_account(balance=500)
        other = make_account(balance=50)
        operations = [
            ("deposit", 250), ("withdraw", 100), ("withdraw", 10000),
            ("deposit", 0), ("withdraw", 650), ("deposit", 75),
        ]
        for name, amount in operations:
            getattr(ledger, name)(number, 1234, amount)
        ledger.transfer(number, 1234, other, 25)
        ledger.transfer(other, 1234, number, 30)

        balance = 500
        for text in ledger.find_account(number).log_chain.texts()[1:]:
            before, after = map(int, BALANCE_PATTERN.search(text).groups())
            assert before == balance
            balance = after
        assert balance == ledger.find_account(number).balance


class TestTransfer:
    """Test transfers between accounts"""

    def test_transfer_moves_funds_and_logs_both_sides(self, ledger, make_account):
        source = make_account(balance=700)
        destination = make_account(balance=100)

        result = ledger.transfer(source, 1234, destination, 300)

        assert result.ok
        assert result.value == 400
        assert ledger.find_account(source).balance == 400
        assert ledger.find_account(destination).balance == 400
        assert ledger.find_account(source).log_chain.texts()[-1] == (
            f"Transfer -RM 300 to account 0002, before=RM 700, after=RM 400 at {STAMP}"
        )
        assert ledger.find_account(destination).log_chain.texts()[-1] == (
            f"Transfer +RM 300 from account 0001, before=RM 100, after=RM 400 at {STAMP}"
        )

    def test_transfer_failure_statuses(self, ledger, make_account):
        source = make_account(balance=100)
        destination = make_account(balance=100)

        assert ledger.transfer(999, 1234, destination, 10).status is OperationStatus.NOT_FOUND
        assert ledger.transfer(source, 1234, 999, 10).status is OperationStatus.DESTINATION_NOT_FOUND
        assert ledger.transfer(source, 9, destination, 10).status is OperationStatus.PIN_MISMATCH
        assert ledger.transfer(source, 1234, destination, 0).status is OperationStatus.INVALID_AMOUNT
        assert ledger.transfer(source, 1234, destination, 101).status is OperationStatus.INSUFFICIENT_FUNDS

    def test_failed_transfer_touches_neither_side(self, ledger, make_account):
        source = make_account(balance=100)
        destination = make_account(balance=100)

        ledger.transfer(source, 1234, destination, 500)
        ledger.transfer(source, 1, destination, 50)

        for number in (source, destination):
            account = ledger.find_account(number)
            assert account.balance == 100
            assert len(account.log_chain) == 1

    @pytest.mark.parametrize("amount", [1, 100, 5000])
    def test_self_transfer_creates_no_money(self, ledger, make_account, amount):
        number = make_account(balance=100)

        result = ledger.transfer(number, 1234, number, amount)

        assert result.status is OperationStatus.SAME_ACCOUNT
        assert ledger.find_account(number).balance == 100
        assert len(ledger.find_account(number).log_chain) == 1

    def test_transfer_persists_once(self, clock, make_account):
        writes = []

        class CountingStorage(InMemoryLedgerStorage):
            def write(self, kind, data):
                writes.append(kind)
                return super().write(kind, data)

        counted = AccountLedger(storage=CountingStorage(), clock=clock)
        source = make_account(balance=100, target=counted)
        destination = make_account(balance=100, target=counted)
        writes.clear()

        counted.transfer(source, 1234, destination, 10)

        assert writes == ["accounts", "logs"]


class TestBalanceLimits:
    """Test that balances stay within what the account record can store"""

    def test_create_rejects_balance_beyond_record(self, ledger):
        result = ledger.create_account("Alice Tan", "A1234567", Gender.FEMALE,
                                       AccountType.SAVINGS, 1234, MAX_BALANCE + 1)

        assert result.status is OperationStatus.INVALID_AMOUNT
        assert len(ledger) == 0

    def test_create_at_largest_balance(self, ledger, storage, clock):
        result = ledger.create_account("Alice Tan", "A1234567", Gender.FEMALE,
                                       AccountType.SAVINGS, 1234, MAX_BALANCE)

        assert result.ok
        assert AccountLedger.open(storage, clock).find_account(1).balance == MAX_BALANCE

    def test_deposit_past_limit_changes_nothing(self, ledger, storage, clock, make_account):
        number = make_account(balance=500)

        result = ledger.deposit(number, 1234, 2 ** 63)

        assert result.status is OperationStatus.INVALID_AMOUNT
        account = ledger.find_account(number)
        assert account.balance == 500
        assert len(account.log_chain) == 1
        assert ledger.save()
        assert AccountLedger.open(storage, clock).find_account(number).balance == 500

    def test_deposit_up_to_limit(self, ledger, make_account):
        number = make_account(balance=500)

        assert ledger.deposit(number, 1234, MAX_BALANCE - 500).value == MAX_BALANCE

    def test_transfer_past_destination_limit_changes_nothing(self, ledger, make_account):
        source = make_account(balance=500)
        destination = make_account(balance=MAX_BALANCE - 10)

        result = ledger.transfer(source, 1234, destination, 11)

        assert result.status is OperationStatus.INVALID_AMOUNT
        assert ledger.find_account(source).balance == 500
        assert ledger.find_account(destination).balance == MAX_BALANCE - 10
        assert len(ledger.find_account(source).log_chain) == 1
        assert len(ledger.find_account(destination).log_chain) == 1


class TestCredentialsAndInfo:
    """Test PIN changes and info edits"""

    def test_change_pin(self, ledger, make_account):
        number = make_account(pin=1234)

        assert ledger.change_pin(number, 1234, 5678).ok
        assert ledger.check_pin(number, 5678).ok
        assert ledger.check_pin(number, 1234).status is OperationStatus.PIN_MISMATCH
        assert ledger.find_account(number).log_chain.texts()[-1] == f"PIN changed at {STAMP}"

    def test_change_pin_failures(self, ledger, make_account):
        number = make_account(pin=1234)

        assert ledger.change_pin(999, 1234, 1).status is OperationStatus.NOT_FOUND
        assert ledger.change_pin(number, 1111, 1).status is OperationStatus.PIN_MISMATCH
        assert ledger.find_account(number).pin == 1234

    def test_change_pin_does_not_validate_new_format(self, ledger, make_account):
        number = make_account(pin=1234)

        assert ledger.change_pin(number, 1234, 123456).ok
        assert ledger.find_account(number).pin == 123456

    def test_edit_info_overwrites_fields(self, ledger, make_account):
        number = make_account(balance=900)

        result = ledger.edit_info(number, "Carol Ng", "Z7654321", Gender.FEMALE,
                                  AccountType.CURRENT, 2468)

        assert result.ok
        account = ledger.find_account(number)
        assert (account.full_name, account.identity_number, account.pin) == ("Carol Ng", "Z7654321", 2468)
        assert account.account_type is AccountType.CURRENT
        assert account.balance == 900
        assert account.log_chain.texts()[-1] == f"Info changed at {STAMP}"

    def test_edit_info_skips_identity_uniqueness(self, ledger, make_account):
        make_account(identity_number="SHARED01")
        second = make_account(identity_number="OTHER001")

        result = ledger.edit_info(second, "Dan Ho", "SHARED01", Gender.MALE,
                                  AccountType.SAVINGS, 1234)

        assert result.ok
        assert ledger.find_account(second).identity_number == "SHARED01"

    def test_edit_info_unknown_account(self, ledger):
        result = ledger.edit_info(5, "Dan Ho", "A1234567", Gender.MALE, AccountType.SAVINGS, 1234)

        assert result.status is OperationStatus.NOT_FOUND

    def test_edit_info_replaces_stored_type_label(self, ledger, make_account):
        number = make_account()
        ledger.find_account(number).stored_type_label = "Business"

        ledger.edit_info(number, "Dan Ho", "D1234567", Gender.MALE, AccountType.SAVINGS, 1234)

        assert ledger.find_account(number).type_label == "Savings"


class TestQueries:
    """Test balance and mini statement queries"""

    def test_get_balance(self, ledger, make_account):
        number = make_account(balance=640)

        assert ledger.get_balance(number, 1234) == OperationResult.success(640)
        assert ledger.get_balance(number, 1).status is OperationStatus.PIN_MISMATCH
        assert ledger.get_balance(999, 1234).status is OperationStatus.NOT_FOUND

    def test_mini_statement_returns_last_entries(self, ledger, make_account):
        number = make_account(balance=500)
        for amount in range(1, 8):
            ledger.deposit(number, 1234, amount)

        result = ledger.mini_statement(number, 1234, 5)

        assert result.ok
        assert len(result.value) == 5
        assert result.value[0].text.startswith("Deposit +RM 3,")
        assert result.value[-1].text.startswith("Deposit +RM 7,")

    def test_mini_statement_short_history(self, ledger, make_account):
        number = make_account()

        result = ledger.mini_statement(number, 1234, 5)

        assert [e.text for e in result.value] == [f"Account created at {STAMP}"]

    def test_mini_statement_failures(self, ledger, make_account):
        number = make_account()

        assert ledger.mini_statement(999, 1234, 5).status is OperationStatus.NOT_FOUND
        assert ledger.mini_statement(number, 4, 5).status is OperationStatus.PIN_MISMATCH

    def test_mini_statement_without_logs(self, storage, clock, make_account):
        number = make_account()
        storage.write("logs", b"")

        reloaded = AccountLedger.open(storage, clock)

        assert reloaded.mini_statement(number, 1234, 5).status is OperationStatus.NO_LOGS
        assert reloaded.log_blocks() == []


class TestDeletion:
    """Test deletion and log retention"""

    def test_delete_moves_log_chain_to_registry(self, ledger, make_account):
        number = make_account()
        ledger.deposit(number, 1234, 10)
        account = ledger.find_account(number)
        chain = account.log_chain
        texts_before = chain.texts()

        assert ledger.delete_account(number).ok

        assert not ledger.account_exists(number)
        assert account.log_chain is None
        retained = ledger.logs_for(number)
        assert retained.ok
        assert retained.value is chain
        assert retained.value.texts() == texts_before + [f"Account deleted at {STAMP}"]
        assert ledger.has_deleted_logs(number)
        assert ledger.deleted_account_numbers() == [number]

    def test_delete_unknown_account(self, ledger):
        assert ledger.delete_account(3).status is OperationStatus.NOT_FOUND
        assert len(ledger.deleted) == 0

    def test_deleted_account_rejects_operations(self, ledger, make_account):
        number = make_account()
        ledger.delete_account(number)

        assert ledger.deposit(number, 1234, 10).status is OperationStatus.NOT_FOUND
        assert ledger.check_pin(number, 1234).status is OperationStatus.NOT_FOUND
        assert ledger.delete_account(number).status is OperationStatus.NOT_FOUND

    def test_logs_for_live_and_missing(self, ledger, make_account):
        number = make_account()

        assert ledger.logs_for(number).value is ledger.find_account(number).log_chain
        assert ledger.logs_for(42).status is OperationStatus.NOT_FOUND
        assert not ledger.has_deleted_logs(number)


class TestRecordNote:
    """Test stamping free-form notes"""

    def test_record_note_appends_and_saves_logs(self, ledger, storage, clock, make_account):
        number = make_account()

        result = ledger.record_note(number, "Card replaced")

        assert result.ok
        assert result.value.text == f"Card replaced at {STAMP}"
        reloaded = AccountLedger.open(storage, clock)
        assert reloaded.find_account(number).log_chain.texts()[-1] == f"Card replaced at {STAMP}"

    def test_record_note_unknown_account(self, ledger):
        assert ledger.record_note(8, "x").status is OperationStatus.NOT_FOUND


def test_example_scenario(ledger, make_account):
    """Create, deposit, failed withdraw, transfer, delete, then read history"""
    source = make_account(balance=500)
    assert ledger.deposit(source, 1234, 200).value == 700
    assert ledger.withdraw(source, 1234, 1000).status is OperationStatus.INSUFFICIENT_FUNDS
    assert ledger.find_account(source).balance == 700

    destination = make_account(balance=100)
    assert ledger.transfer(source, 1234, destination, 300).ok
    assert ledger.find_account(source).balance == 400
    assert ledger.find_account(destination).balance == 400

    assert ledger.delete_account(source).ok
    texts = ledger.logs_for(source).value.texts()

    assert texts == [
        f"Account created at {STAMP}",
        f"Deposit +RM 200, before=RM 500, after=RM 700 at {STAMP}",
        f"Transfer -RM 300 to account 0002, before=RM 700, after=RM 400 at {STAMP}",
        f"Account deleted at {STAMP}",
    ]


def test_in_memory_ledger_without_storage(clock):
    ledger = AccountLedger(clock=clock)

    result = ledger.create_account("Eve Lim", "E1234567", Gender.FEMALE,
                                   AccountType.SAVINGS, 1234, 500)

    assert result.ok
    assert ledger.save()
