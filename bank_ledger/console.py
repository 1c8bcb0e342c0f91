"""
Console rendering: centered lines, the login banner and the admin table.
"""

import shutil
import sys
from typing import Iterable, Optional, TextIO

from .accounts import Account, format_account_number, format_pin


BANNER = r"""
 ____              _       ____            _
| __ )  __ _ _ __ | | __  / ___| _   _ ___| |_ ___ _ __ ___
|  _ \ / _` | '_ \| |/ /  \___ \| | | / __| __/ _ \ '_ ` _ \
| |_) | (_| | | | |   <    ___) | |_| \__ \ ||  __/ | | | | |
|____/ \__,_|_| |_|_|\_\  |____/ \__, |___/\__\___|_| |_| |_|
                                 |___/
"""

LOGIN_LINE = "********************************"
LOGIN_OPTIONS = [
    "********** LOGIN || PANEL **********",
    LOGIN_LINE,
    "*  Press 1 For ADMIN Login     *",
    "*  Press 2 For STAFF Login     *",
    "*  Press 3 For ATM/CDM Service *",
    "*  Press 4 To Exit             *",
]

# Admin table column widths
TABLE_COLUMNS = [
    ("ACC_Number", 12),
    ("NAME", 30),
    ("PASSPORT_NO", 18),
    ("GENDER", 6),
    ("TYPE", 10),
    ("PIN", 8),
    ("BALANCE (RM)", 14),
]


def fit(text: str, width: int) -> str:
    """Cut to ``width``, ending in '...' when something was dropped"""
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[:width - 3] + "..."


def center_fit(text: str, width: int) -> str:
    return fit(text, width).center(width)


class Console:
    """Writes lines centered within a fixed width"""

    def __init__(self, width: int = 120, stream: Optional[TextIO] = None):
        self.width = width
        self.stream = stream or sys.stdout

    @classmethod
    def for_terminal(cls, fallback_width: int = 120) -> "Console":
        width = shutil.get_terminal_size((fallback_width, 24)).columns
        return cls(width=width if width > 0 else fallback_width)

    def centered(self, text: str = "") -> None:
        padding = max((self.width - len(text)) // 2, 0)
        self.stream.write(" " * padding + text + "\n")

    def centered_inline(self, text: str) -> None:
        """Centered prompt without a trailing newline"""
        if len(text) >= self.width:
            self.stream.write(text)
        else:
            self.stream.write(" " * ((self.width - len(text)) // 2) + text)
        self.stream.flush()

    def blank(self) -> None:
        self.stream.write("\n")

    def clear(self) -> None:
        if self.stream.isatty():
            self.stream.write("\033[2J\033[H")

    def lines(self, texts: Iterable[str]) -> None:
        for text in texts:
            self.centered(text)

    def login_screen(self) -> None:
        self.clear()
        self.lines(BANNER.strip("\n").splitlines())
        self.centered()
        self.centered(LOGIN_LINE)
        self.lines(LOGIN_OPTIONS)
        self.centered(LOGIN_LINE)
        self.centered()

    def account_table(self, accounts: Iterable[Account], currency: str = "RM") -> None:
        accounts = list(accounts)
        if not accounts:
            self.centered("No accounts found.")
            return

        border = "-" * (1 + sum(width + 3 for _, width in TABLE_COLUMNS))
        header = self._row(name for name, _ in TABLE_COLUMNS)
        self.centered(border)
        self.centered(header)
        self.centered(border)
        for account in accounts:
            self.centered(self._row([
                format_account_number(account.account_number),
                account.full_name,
                account.identity_number,
                account.gender.label,
                account.type_label,
                format_pin(account.pin),
                f"{currency} {account.balance}",
            ]))
        self.centered(border)
        self.centered()

    @staticmethod
    def _row(cells: Iterable[str]) -> str:
        parts = [center_fit(cell, width) for cell, (_, width) in zip(cells, TABLE_COLUMNS)]
        return "| " + " | ".join(parts) + " |"
