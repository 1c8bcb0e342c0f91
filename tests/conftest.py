"""Shared fixtures for the bank ledger test suite"""

import logging

import pytest

from bank_ledger.accounts import AccountType, Gender
from bank_ledger.audit_log import FixedClock
from bank_ledger.config import BankLedgerConfig
from bank_ledger.ledger import AccountLedger
from bank_ledger.storage import InMemoryLedgerStorage, LedgerFileStorage


STAMP = "Sat Oct 18 10:00:00 2026"


@pytest.fixture
def clock():
    """Clock with a fixed display time so log texts are predictable"""
    return FixedClock(STAMP)


@pytest.fixture
def storage():
    """In-memory storage using the real binary codec"""
    return InMemoryLedgerStorage()


@pytest.fixture
def file_storage(tmp_path):
    """File storage inside the test's temporary directory"""
    return LedgerFileStorage(tmp_path / "accounts.dat", tmp_path / "logs.dat")


@pytest.fixture
def ledger(storage, clock):
    return AccountLedger(storage=storage, clock=clock)


@pytest.fixture
def make_account(ledger):
    """Create an account through the ledger and return its number"""
    counter = {"n": 0}

    def _make(full_name="Alice Tan", identity_number=None, gender=Gender.FEMALE,
              account_type=AccountType.SAVINGS, pin=1234, balance=500, target=None):
        counter["n"] += 1
        identity_number = identity_number or f"ID{counter['n']:05d}"
        result = (target if target is not None else ledger).create_account(
            full_name, identity_number, gender, account_type, pin, balance
        )
        assert result.ok, result
        return result.value

    return _make


@pytest.fixture
def config(tmp_path):
    """Configuration with non-default panel credentials, isolated from env files"""
    return BankLedgerConfig(
        _env_file=None,
        admin_pin=4321,
        staff_pin=8765,
        data_file=str(tmp_path / "accounts.dat"),
        log_file=str(tmp_path / "logs.dat"),
    )


@pytest.fixture
def restore_package_logger():
    """setup_logging replaces handlers and disables propagation; undo that"""
    package_logger = logging.getLogger("bank_ledger")
    handlers = package_logger.handlers[:]
    level = package_logger.level
    propagate = package_logger.propagate
    yield package_logger
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = propagate

