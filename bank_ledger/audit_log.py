"""
Account Log Chain Module

Append-only, insertion-ordered audit entries attached to one account, or
retained for a deleted account. Each entry's text already carries its
human-readable timestamp; there is no separate time field.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator, List


class Clock(ABC):
    """Source of the display timestamp stamped onto log entries"""

    @abstractmethod
    def now_text(self) -> str:
        """Current wall-clock time formatted for display"""


class SystemClock(Clock):
    """Local time rendered like C ctime(), e.g. 'Sat Oct 18 10:04:05 2026'"""

    def now_text(self) -> str:
        return time.ctime()


class FixedClock(Clock):
    """Clock that always reports the same text. Used in tests and replays."""

    def __init__(self, text: str = "Thu Jan  1 00:00:00 2026"):
        self.text = text

    def now_text(self) -> str:
        return self.text


def stamp(message: str, clock: Clock) -> str:
    """Build the stored entry text: '<message> at <timestamp>'"""
    return f"{message} at {clock.now_text()}"


@dataclass(frozen=True)
class LogEntry:
    """Immutable log entry"""
    text: str


class LogChain:
    """
    Append-only ordered sequence of log entries.

    Entries are never removed or edited. A chain has exactly one owner at a
    time: a live account or a deleted-account registry slot.
    """

    def __init__(self, texts: Iterable[str] = ()):
        self._entries: List[LogEntry] = [LogEntry(text) for text in texts]

    def append(self, text: str) -> LogEntry:
        """Add an entry at the tail"""
        entry = LogEntry(text)
        self._entries.append(entry)
        return entry

    def to_list(self) -> List[LogEntry]:
        """Entries oldest first"""
        return list(self._entries)

    def texts(self) -> List[str]:
        return [entry.text for entry in self._entries]

    def last_n(self, n: int) -> List[LogEntry]:
        """The final min(n, len) entries, still oldest first"""
        if n <= 0:
            return []
        return self._entries[-n:]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(list(self._entries))

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"LogChain(entries={len(self._entries)})"
