"""
Menu Module

Role-gated console panels over the ledger: the login loop, the admin and
staff panels, and the ATM/CDM self-service panels. Panels collect validated
input, call one ledger operation and print the message for its result.
"""

from typing import Dict

from .accounts import AccountType, Gender, format_account_number
from .config import BankLedgerConfig
from .console import LOGIN_LINE, Console
from .ledger import AccountLedger
from .logging_config import get_logger, log_action
from .results import OperationResult, OperationStatus
from .validation import Prompter


logger = get_logger(__name__)

ACCOUNT_DIGITS = 4

STATUS_MESSAGES: Dict[OperationStatus, str] = {
    OperationStatus.NOT_FOUND: "Account not found.",
    OperationStatus.DESTINATION_NOT_FOUND: "Recipient account not found.",
    OperationStatus.SAME_ACCOUNT: "Cannot transfer to the same account.",
    OperationStatus.PIN_MISMATCH: "PIN incorrect.",
    OperationStatus.INVALID_AMOUNT: "Invalid amount.",
    OperationStatus.INSUFFICIENT_FUNDS: "Insufficient funds.",
    OperationStatus.DUPLICATE_IDENTITY: "Account with this passport number already exists!",
    OperationStatus.NO_LOGS: "No transactions.",
}


class BankMenus:
    """
    Interactive panels bound to one ledger.

    Panel credentials come from ``config`` so tests can supply their own.
    """

    def __init__(self, ledger: AccountLedger, config: BankLedgerConfig,
                 console: Console, prompter: Prompter):
        self.ledger = ledger
        self.config = config
        self.console = console
        self.prompter = prompter

    @property
    def currency(self) -> str:
        return self.config.currency_label

    def report(self, result: OperationResult, success_message: str) -> None:
        if result.ok:
            self.console.centered(success_message)
        else:
            self.console.centered(STATUS_MESSAGES[result.status])

    def read_account_number(self, prompt: str) -> int:
        return self.prompter.read_number(prompt, ACCOUNT_DIGITS)

    def show_logs(self, account_number: int) -> None:
        result = self.ledger.logs_for(account_number)
        if not result.ok:
            self.console.centered("Logs Not Found....!!!")
            return
        if self.ledger.has_deleted_logs(account_number):
            self.console.centered(
                f"Account {format_account_number(account_number)} is deleted; showing retained logs."
            )
        chain = result.value
        if not chain:
            self.console.centered("[No logs]")
            return
        self.console.lines(chain.texts())

    # ------------------------------------------------------------------
    # Login

    def run(self) -> None:
        """Login loop; returns when the user chooses Exit or input ends"""
        try:
            while True:
                self.console.login_screen()
                choice = self.prompter.read_choice("Enter Your Choice: ")
                if choice == 1:
                    self._gated("ADMIN", self.config.admin_pin, self.admin_panel)
                elif choice == 2:
                    self._gated("STAFF", self.config.staff_pin, self.staff_panel)
                elif choice == 3:
                    self.atm_panel()
                elif choice == 4:
                    self.console.centered("Bye!")
                    return
        except EOFError:
            self.console.blank()
            self.console.centered("Bye!")

    def _gated(self, role: str, expected_pin: int, panel) -> None:
        pin = self.prompter.read_pin(f"Enter {role.title()} PIN: ")
        if pin != expected_pin:
            log_action(logger, "warning", f"{role} login failed", action="login.failed",
                       resource=role.lower())
            self.console.centered("Wrong PIN.")
            return
        log_action(logger, "info", f"{role} login", action="login.success", resource=role.lower())
        panel()

    # ------------------------------------------------------------------
    # Admin

    def admin_panel(self) -> None:
        while True:
            self.console.clear()
            self.console.blank()
            self.console.lines([
                "********** ADMIN PANEL **********",
                "1. Create Account",
                "2. Delete Account",
                "3. Search Account",
                "4. Show All Accounts",
                "5. Edit Information",
                "6. Show Logs of Deleted Account",
                "7. Back to Main Menu",
            ])
            choice = self.prompter.read_choice("Enter an Option: ")
            if choice == 7:
                return
            action = {
                1: self.admin_create,
                2: self.admin_delete,
                3: self.search_account,
                4: self.admin_show_all,
                5: self.admin_edit,
                6: self.admin_show_logs,
            }.get(choice)
            if action is None:
                continue
            if action() is not False:
                self.prompter.pause("Press Enter to return to ADMIN PANEL...")

    def _read_gender(self, prompt: str):
        letter = self.prompter.read_letter(prompt)
        if letter not in ("M", "F"):
            self.console.centered("Invalid gender.")
            return None
        return Gender(letter)

    def _read_account_type(self, prompt: str):
        letter = self.prompter.read_letter(prompt)
        if letter not in ("C", "S"):
            self.console.centered("Invalid account type.")
            return None
        return AccountType.from_code(letter)

    def admin_create(self):
        full_name = self.prompter.read_name("Enter Customer's Full Name: ", 4)
        identity = self.prompter.read_passport("Enter Passport No: ")
        gender = self._read_gender("Enter Gender \"Male/Female\" (M/F): ")
        if gender is None:
            return False
        account_type = self._read_account_type("Enter Account Type \"Current/Savings\" (C/S): ")
        if account_type is None:
            return False
        pin = self.prompter.read_pin("Enter PIN: ")
        minimum = self.config.minimum_opening_balance
        while True:
            balance = self.prompter.read_number(
                f"Enter Balance (Min:{minimum}): {self.currency} "
            )
            if balance >= minimum:
                break
            self.console.centered(f"Minimum Balance is {minimum}.")

        result = self.ledger.create_account(full_name, identity, gender, account_type, pin, balance)
        if result.ok:
            self.console.centered("Account created successfully.")
            self.console.centered(f"Generated Account Number: {format_account_number(result.value)}")
        else:
            self.console.centered(STATUS_MESSAGES[result.status])
            self.console.centered("Create failed (duplicate or invalid details).")

    def admin_delete(self):
        account_number = self.read_account_number("Enter Account Number to Delete: ")
        self.report(self.ledger.delete_account(account_number), "Account deleted.")

    def search_account(self, not_found: str = "Account not found."):
        account_number = self.read_account_number("Enter Account Number to Search: ")
        account = self.ledger.find_account(account_number)
        if account is None:
            self.console.centered(not_found)
        else:
            self.console.centered(account.details(self.currency))

    def admin_show_all(self):
        self.console.account_table(self.ledger.list_accounts(), self.currency)

    def admin_edit(self):
        account_number = self.read_account_number("Enter Account Number: ")
        full_name = self.prompter.read_name("Enter New Name: ", 4)
        identity = self.prompter.read_passport("Enter New Passport No: ")
        gender = self._read_gender("Enter Gender (M/F): ")
        if gender is None:
            return False
        account_type = self._read_account_type("Enter Account Type (C/S): ")
        if account_type is None:
            return False
        pin = self.prompter.read_pin("Enter New PIN: ")
        result = self.ledger.edit_info(account_number, full_name, identity, gender, account_type, pin)
        self.report(result, "Information changed.")

    def admin_show_logs(self):
        deleted = self.ledger.deleted_account_numbers()
        if deleted:
            self.console.centered(
                "Deleted accounts: " + ", ".join(format_account_number(n) for n in deleted)
            )
        self.show_logs(self.read_account_number("Enter Account Number: "))

    # ------------------------------------------------------------------
    # Staff

    def staff_panel(self) -> None:
        while True:
            self.console.blank()
            self.console.lines([
                "********** STAFF PANEL **********",
                "1. Check Account Info",
                "2. Deposit Cash",
                "3. Withdraw Cash",
                "4. Check Logs of User",
                "5. Back to Main Menu",
            ])
            choice = self.prompter.read_choice("Enter an Option: ")
            if choice == 5:
                return
            action = {
                1: lambda: self.search_account("User not found."),
                2: self.staff_deposit,
                3: self.staff_withdraw,
                4: lambda: self.show_logs(self.read_account_number("Enter Account Number: ")),
            }.get(choice)
            if action is None:
                continue
            if action() is not False:
                self.prompter.pause("Press Enter to return to STAFF PANEL...")

    def _staff_cash(self, verb: str, operation):
        account_number = self.read_account_number("Enter Account: ")
        pin = self.prompter.read_pin("Enter Account PIN: ")
        amount = self.prompter.read_number(f"Enter Amount to {verb}: {self.currency} ")
        account = self.ledger.find_account(account_number)
        if account is None:
            self.console.centered("Account not found.")
            return False

        self.console.centered(f"Status BEFORE {verb}:")
        self.console.centered(account.details(self.currency))
        result = operation(account_number, pin, amount)
        if result.ok:
            self.console.centered(f"Status AFTER {verb}:")
            self.console.centered(account.details(self.currency))
        self.report(result, f"{verb} successful.")

    def staff_deposit(self):
        return self._staff_cash("Deposit", self.ledger.deposit)

    def staff_withdraw(self):
        return self._staff_cash("Withdraw", self.ledger.withdraw)

    # ------------------------------------------------------------------
    # ATM / CDM

    def atm_panel(self) -> None:
        while True:
            self.console.clear()
            self.console.blank()
            self.console.lines([
                "********** ATM / CDM **********",
                "1. ATM Service",
                "2. CDM Service",
                "3. Back to Main Menu",
            ])
            self.console.blank()
            choice = self.prompter.read_choice("Enter an Option: ")
            if choice == 3:
                return
            if choice not in (1, 2):
                self.console.centered("Invalid option.")
                self.prompter.pause()
                continue

            account_number = self.read_account_number("Enter Account Number: ")
            if not self.ledger.account_exists(account_number):
                self.console.centered("Account not found.")
                self.prompter.pause()
                continue
            pin = self.prompter.read_pin("Enter PIN: ")
            if not self.ledger.check_pin(account_number, pin).ok:
                self.console.centered("PIN incorrect.")
                self.prompter.pause()
                continue

            if choice == 1:
                self.atm_service(account_number, pin)
            else:
                self.cdm_service(account_number, pin)

    def show_balance(self, account_number: int, pin: int) -> None:
        result = self.ledger.get_balance(account_number, pin)
        self.report(result, f"Current Balance: {self.currency} {result.value}")

    def show_mini_statement(self, account_number: int, pin: int) -> None:
        result = self.ledger.mini_statement(account_number, pin, self.config.mini_statement_size)
        if result.ok:
            self.console.lines(entry.text for entry in result.value)
        else:
            self.console.centered(STATUS_MESSAGES[result.status])

    def _transfer(self, account_number: int, pin: int, amount_prompt: str,
                  success_message: str) -> None:
        destination = self.read_account_number("Enter Recipient Account Number: ")
        if not self.ledger.account_exists(destination):
            self.console.centered("Recipient account not found.")
            return
        amount = self.prompter.read_number(amount_prompt)
        self.report(self.ledger.transfer(account_number, pin, destination, amount), success_message)

    def atm_service(self, account_number: int, pin: int) -> None:
        size = self.config.mini_statement_size
        while True:
            self.console.clear()
            self.console.blank()
            self.console.lines([
                "********** ATM SERVICE **********",
                "1. Withdraw Cash",
                "2. Check Account Balance",
                f"3. Mini Statement (Last {size} Transactions)",
                "4. Transfer Money to Another Account",
                "5. Change PIN",
                "6. Back to ATM/CDM Menu",
                LOGIN_LINE,
            ])
            self.console.blank()
            choice = self.prompter.read_choice("Enter an option: ")
            if choice == 1:
                amount = self.prompter.read_number(f"Enter Amount to Withdraw: {self.currency} ")
                self.report(self.ledger.withdraw(account_number, pin, amount), "Withdraw successful.")
            elif choice == 2:
                self.show_balance(account_number, pin)
            elif choice == 3:
                self.show_mini_statement(account_number, pin)
            elif choice == 4:
                self._transfer(account_number, pin,
                               f"Enter Amount to Transfer: {self.currency} ", "Transfer successful.")
            elif choice == 5:
                old_pin = self.prompter.read_pin("Enter Old PIN: ")
                new_pin = self.prompter.read_pin("Enter New PIN: ")
                result = self.ledger.change_pin(account_number, old_pin, new_pin)
                if result.ok:
                    self.console.centered("PIN changed.")
                    pin = new_pin
                elif result.status is OperationStatus.PIN_MISMATCH:
                    self.console.centered("Old PIN incorrect.")
                else:
                    self.console.centered(STATUS_MESSAGES[result.status])
            elif choice == 6:
                return
            else:
                self.console.centered("Invalid option.")
            self.prompter.pause()

    def cdm_service(self, account_number: int, pin: int) -> None:
        size = self.config.mini_statement_size
        while True:
            self.console.clear()
            self.console.blank()
            self.console.lines([
                "********** CDM SERVICE **********",
                "1. Deposit Cash",
                "2. Check Account Balance",
                f"3. Mini Statement (Last {size} Transactions)",
                "4. Back to ATM/CDM Menu",
                LOGIN_LINE,
            ])
            self.console.blank()
            choice = self.prompter.read_choice("Enter an option: ")
            if choice == 1:
                self.cdm_deposit(account_number, pin)
                continue
            if choice == 2:
                self.show_balance(account_number, pin)
            elif choice == 3:
                self.show_mini_statement(account_number, pin)
            elif choice == 4:
                return
            else:
                self.console.centered("Invalid option.")
            self.prompter.pause()

    def cdm_deposit(self, account_number: int, pin: int) -> None:
        while True:
            self.console.clear()
            self.console.blank()
            self.console.lines([
                "********** Deposit Cash **********",
                "1. Deposit to My Account",
                "2. Deposit to Another Account",
                "3. Back to CDM Menu",
                LOGIN_LINE,
            ])
            self.console.blank()
            choice = self.prompter.read_choice("Enter an option: ")
            if choice == 1:
                amount = self.prompter.read_number(f"Enter Amount to Deposit: {self.currency} ")
                self.report(self.ledger.deposit(account_number, pin, amount), "Deposit successful.")
            elif choice == 2:
                # Cash for another account is taken from this account's balance
                self._transfer(account_number, pin,
                               f"Enter Amount to Deposit: {self.currency} ", "Deposit successful.")
            elif choice == 3:
                return
            else:
                self.console.centered("Invalid option.")
            self.prompter.pause()
