#!/usr/bin/env python3
"""
Bank Ledger Entry Point

Loads configuration, opens the ledger files and runs the console login loop.
"""

import sys

from .config import get_config
from .console import Console
from .ledger import AccountLedger
from .logging_config import setup_logging
from .menus import BankMenus
from .storage import LedgerFileStorage
from .validation import Prompter


def main() -> int:
    """Start an interactive session against the configured data files"""
    config = get_config()
    logger = setup_logging(
        level=config.app_log_level,
        fmt=config.app_log_format,
        path=config.app_log_path,
    )

    storage = LedgerFileStorage(config.data_file, config.log_file)
    ledger = AccountLedger.open(storage)
    logger.info("Ledger opened from %s and %s", storage.data_path, storage.log_path)

    console = Console.for_terminal(config.console_width)
    menus = BankMenus(ledger, config, console, Prompter(console))
    try:
        menus.run()
    except KeyboardInterrupt:
        console.blank()
        console.centered("Bye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
