"""
Storage Backend Module

Binary persistence for the ledger: a file of fixed-width account records and
a file of variable-length log blocks. Both files are rewritten in full after
every mutation. Provides an abstract storage interface with a file-backed
implementation and an in-memory one for testing.

Account record layout (little-endian, C struct alignment, 184 bytes):

    int32 account_number
    char  name[100]        NUL-terminated, at most 99 text bytes
    char  identity[50]     NUL-terminated, at most 49 text bytes
    char  gender           'M' or 'F'
    char  account_type[10] NUL-terminated, at most 9 text bytes
    (3 pad bytes)
    int32 pin
    (4 pad bytes)
    int64 balance

Log block layout, repeated until end of file:

    int32 account_number
    int32 entry_count
    entry_count x (int32 text_length, text_length raw bytes)
"""

import struct
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .accounts import Account, AccountType, Gender
from .audit_log import LogChain
from .logging_config import get_logger, log_action


logger = get_logger(__name__)

TEXT_ENCODING = "utf-8"

NAME_CAPACITY = 100
IDENTITY_CAPACITY = 50
ACCOUNT_TYPE_CAPACITY = 10

ACCOUNT_RECORD = struct.Struct(
    f"<i{NAME_CAPACITY}s{IDENTITY_CAPACITY}sc{ACCOUNT_TYPE_CAPACITY}s3xi4xq"
)
INT32 = struct.Struct("<i")

ACCOUNTS = "accounts"
LOGS = "logs"

LogBlock = Tuple[int, LogChain]


def _pack_text(value: str, capacity: int) -> bytes:
    """Encode and truncate so the NUL terminator always fits"""
    return value.encode(TEXT_ENCODING)[:capacity - 1]


def _unpack_text(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode(TEXT_ENCODING, errors="ignore")


def encode_account(account: Account) -> bytes:
    """Serialize one account into a fixed-width record"""
    return ACCOUNT_RECORD.pack(
        account.account_number,
        _pack_text(account.full_name, NAME_CAPACITY),
        _pack_text(account.identity_number, IDENTITY_CAPACITY),
        account.gender.value.encode("ascii"),
        _pack_text(account.type_label, ACCOUNT_TYPE_CAPACITY),
        account.pin,
        account.balance,
    )


def decode_account(raw: bytes) -> Account:
    """
    Deserialize one fixed-width record.

    Every field is taken as stored. An account type label this ledger does
    not know is kept on the account and treated as Current.
    """
    number, name, identity, gender, account_type, pin, balance = ACCOUNT_RECORD.unpack(raw)
    label = _unpack_text(account_type)
    try:
        known_type = AccountType(label)
        stored_label = None
    except ValueError:
        logger.warning("Account %04d has unknown type label %r; keeping it as stored",
                       number, label)
        known_type = AccountType.CURRENT
        stored_label = label
    return Account(
        account_number=number,
        full_name=_unpack_text(name),
        identity_number=_unpack_text(identity),
        gender=Gender.from_code(gender.decode("latin-1")),
        account_type=known_type,
        pin=pin,
        balance=balance,
        stored_type_label=stored_label,
    )


def encode_accounts(accounts: Iterable[Account]) -> bytes:
    return b"".join(encode_account(account) for account in accounts)


def decode_accounts(data: bytes) -> List[Account]:
    """Decode every complete record; a trailing partial record is ignored"""
    accounts = []
    size = ACCOUNT_RECORD.size
    complete = len(data) - len(data) % size
    if complete != len(data):
        logger.warning("Account file has %d trailing bytes; ignoring partial record",
                       len(data) - complete)
    for offset in range(0, complete, size):
        accounts.append(decode_account(data[offset:offset + size]))
    return accounts


def encode_log_block(account_number: int, chain: LogChain) -> bytes:
    parts = [INT32.pack(account_number), INT32.pack(len(chain))]
    for entry in chain:
        payload = entry.text.encode(TEXT_ENCODING)
        parts.append(INT32.pack(len(payload)))
        parts.append(payload)
    return b"".join(parts)


def encode_logs(blocks: Iterable[LogBlock]) -> bytes:
    return b"".join(encode_log_block(number, chain) for number, chain in blocks)


class _Reader:
    """Cursor over a byte buffer; returns None when the data runs out"""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def read_int32(self) -> Optional[int]:
        raw = self.read_bytes(INT32.size)
        if raw is None:
            return None
        return INT32.unpack(raw)[0]

    def read_bytes(self, length: int) -> Optional[bytes]:
        if length < 0 or self.offset + length > len(self.data):
            return None
        raw = self.data[self.offset:self.offset + length]
        self.offset += length
        return raw


def decode_logs(data: bytes) -> List[LogBlock]:
    """
    Decode log blocks until end of data.

    A block cut off mid-record ends decoding; blocks decoded before it are
    kept.
    """
    reader = _Reader(data)
    blocks: List[LogBlock] = []
    while True:
        number = reader.read_int32()
        if number is None:
            break
        count = reader.read_int32()
        if count is None:
            logger.warning("Log file truncated after block header for account %d", number)
            break
        texts = []
        for _ in range(count):
            length = reader.read_int32()
            payload = reader.read_bytes(length) if length is not None else None
            if payload is None:
                logger.warning("Log file truncated inside block for account %d; "
                               "keeping %d earlier blocks", number, len(blocks))
                return blocks
            texts.append(payload.decode(TEXT_ENCODING, errors="replace"))
        blocks.append((number, LogChain(texts)))
    return blocks


class LedgerStorage(ABC):
    """Abstract interface for ledger storage backends"""

    @abstractmethod
    def read(self, kind: str) -> Optional[bytes]:
        """Return the stored bytes for ``kind``, or None when nothing is stored"""
        pass

    @abstractmethod
    def write(self, kind: str, data: bytes) -> bool:
        """Replace the stored bytes for ``kind``; False when the write could not happen"""
        pass

    def save_accounts(self, accounts: Iterable[Account]) -> bool:
        return self.write(ACCOUNTS, encode_accounts(accounts))

    def save_logs(self, blocks: Iterable[LogBlock]) -> bool:
        return self.write(LOGS, encode_logs(blocks))

    def save(self, accounts: Sequence[Account], blocks: Iterable[LogBlock]) -> bool:
        """Rewrite both files; True only if both writes happened"""
        accounts_saved = self.save_accounts(accounts)
        logs_saved = self.save_logs(blocks)
        return accounts_saved and logs_saved

    def load_accounts(self) -> List[Account]:
        data = self.read(ACCOUNTS)
        return decode_accounts(data) if data else []

    def load_logs(self) -> List[LogBlock]:
        data = self.read(LOGS)
        return decode_logs(data) if data else []


class InMemoryLedgerStorage(LedgerStorage):
    """In-memory storage implementation for testing"""

    def __init__(self):
        self._data: Dict[str, bytes] = {}

    def read(self, kind: str) -> Optional[bytes]:
        return self._data.get(kind)

    def write(self, kind: str, data: bytes) -> bool:
        self._data[kind] = bytes(data)
        return True


class LedgerFileStorage(LedgerStorage):
    """File-backed storage: one account file and one log file"""

    def __init__(self, data_path: Union[str, Path] = "accounts.dat",
                 log_path: Union[str, Path] = "logs.dat"):
        self.paths = {ACCOUNTS: Path(data_path), LOGS: Path(log_path)}

    @property
    def data_path(self) -> Path:
        return self.paths[ACCOUNTS]

    @property
    def log_path(self) -> Path:
        return self.paths[LOGS]

    def read(self, kind: str) -> Optional[bytes]:
        path = self.paths[kind]
        try:
            with open(path, "rb") as handle:
                return handle.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read %s file %s: %s", kind, path, exc)
            return None

    def write(self, kind: str, data: bytes) -> bool:
        path = self.paths[kind]
        try:
            with open(path, "wb") as handle:
                handle.write(data)
        except OSError as exc:
            # In-memory state is left as is
            log_action(logger, "warning", f"Could not write {kind} file {path}: {exc}",
                       action="storage.write_failed", resource=str(path))
            return False
        return True
