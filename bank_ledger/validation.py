"""
Input Validation Module

Parsing helpers for the values the menus collect (account numbers, amounts,
names, PINs, passport numbers) and a Prompter that keeps asking until the
input is valid. The ledger only ever receives values that passed these.
"""

import re
from typing import Callable, Optional

from .console import Console


PASSPORT_PATTERN = re.compile(r"^[A-Z0-9]{6,9}$")
PIN_LENGTH = 4


def is_digits(text: str) -> bool:
    """Non-empty and ASCII digits only"""
    return bool(text) and text.isascii() and text.isdigit()


def is_alpha_space(text: str) -> bool:
    """Non-empty and only ASCII letters or spaces"""
    return bool(text) and all((c.isascii() and c.isalpha()) or c == " " for c in text)


def parse_number(text: str, min_digits: int = 1) -> Optional[int]:
    if is_digits(text) and len(text) >= min_digits:
        return int(text)
    return None


def parse_pin(text: str) -> Optional[int]:
    """Exactly four digits; leading zeros allowed"""
    if is_digits(text) and len(text) == PIN_LENGTH:
        return int(text)
    return None


def parse_name(text: str, min_letters: int = 1) -> Optional[str]:
    """Trimmed name with at least ``min_letters`` letters and nothing but letters/spaces"""
    name = text.strip(" ")
    letters = sum(1 for c in name if c.isascii() and c.isalpha())
    if letters >= min_letters and is_alpha_space(name):
        return name
    return None


def clean_passport(text: str) -> str:
    """Drop all whitespace and upper-case"""
    return "".join(c.upper() for c in text if not c.isspace())


def parse_passport(text: str) -> Optional[str]:
    cleaned = clean_passport(text)
    if PASSPORT_PATTERN.match(cleaned):
        return cleaned
    return None


class Prompter:
    """Reads lines through ``read_line`` and re-prompts on invalid input"""

    def __init__(self, console: Console, read_line: Optional[Callable[[], str]] = None):
        self.console = console
        self.read_line = read_line or input

    def ask(self, prompt: str) -> str:
        self.console.centered_inline(prompt)
        return self.read_line()

    def read_number(self, prompt: str, min_digits: int = 1) -> int:
        while True:
            value = parse_number(self.ask(prompt), min_digits)
            if value is not None:
                return value
            self.console.centered("Invalid input.")

    def read_name(self, prompt: str, min_letters: int = 1) -> str:
        while True:
            value = parse_name(self.ask(prompt), min_letters)
            if value is not None:
                return value
            self.console.centered("Invalid input.")

    def read_pin(self, prompt: str) -> int:
        while True:
            value = parse_pin(self.ask(prompt))
            if value is not None:
                return value
            self.console.centered("PIN must be exactly 4 digits.")

    def read_passport(self, prompt: str) -> str:
        while True:
            raw = self.ask(prompt)
            if not clean_passport(raw):
                self.console.centered("Please enter your passport number.")
                continue
            value = parse_passport(raw)
            if value is not None:
                return value
            self.console.centered("Passport number must be 6-9 letters/digits, no spaces or symbols.")

    def read_letter(self, prompt: str) -> str:
        """First non-blank character, upper-cased; empty string for a blank line"""
        text = self.ask(prompt).strip()
        return text[:1].upper()

    def read_choice(self, prompt: str) -> Optional[int]:
        """A menu option number, or None when the line is not a number"""
        return parse_number(self.ask(prompt).strip())

    def pause(self, prompt: str = "Press Enter to continue...") -> None:
        self.ask(prompt)
