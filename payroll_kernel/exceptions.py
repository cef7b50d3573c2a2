"""
Typed Exception Hierarchy for the Payroll Engine.

Every error has a typed class, a machine-readable ``code`` attribute, and
structured data carried as attributes (not only in the message), so callers
catch by type and report by code:

    try:
        store.mark_paid(entry_id, actor_id)
    except PayrollEntryImmutableError as e:
        notify(code=e.code, entry=e.entry_id)

Hierarchy:

    PayrollKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidTaxCodeError
    |   +-- InvalidBankAccountError
    |   +-- InvalidPayPeriodError
    |
    +-- GenerationError
    |   +-- PayrollGenerationError
    |
    +-- EntryError
    |   +-- PayrollEntryNotFoundError
    |   +-- PayrollEntryImmutableError
    |
    +-- ConfigError
        +-- StatutoryConfigNotFoundError

Batch pre-validation does NOT raise: structural problems with employee
records are returned to the caller as a list so that every problem is
visible at once.  The ``ValidationError`` family is raised only by parsers
that are handed a malformed value directly.
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll engine errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Validation


class ValidationError(PayrollKernelError):
    """Base exception for malformed payroll input."""

    code: str = "VALIDATION_ERROR"


class InvalidTaxCodeError(ValidationError):
    """Tax code is not one of the recognised codes."""

    code: str = "INVALID_TAX_CODE"

    def __init__(self, tax_code: str):
        self.tax_code = tax_code
        super().__init__(f"Invalid tax code: {tax_code!r}")


class InvalidBankAccountError(ValidationError):
    """Bank account does not match the bank-branch-account-suffix format."""

    code: str = "INVALID_BANK_ACCOUNT"

    def __init__(self, bank_account: str):
        self.bank_account = bank_account
        super().__init__(f"Invalid bank account format: {bank_account!r}")


class InvalidPayPeriodError(ValidationError):
    """Pay period bounds or identifier are invalid."""

    code: str = "INVALID_PAY_PERIOD"

    def __init__(self, value: str, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid pay period {value!r}: {reason}")


# Generation


class GenerationError(PayrollKernelError):
    """Base exception for failures while computing or serializing entries."""

    code: str = "GENERATION_ERROR"


class PayrollGenerationError(GenerationError):
    """Building one employee's payroll entry or payslip failed."""

    code: str = "PAYROLL_GENERATION_FAILED"

    def __init__(self, employee_id: str, stage: str, reason: str):
        self.employee_id = employee_id
        self.stage = stage
        self.reason = reason
        super().__init__(
            f"Payroll generation failed for employee {employee_id} "
            f"during {stage}: {reason}"
        )


# Stored entries


class EntryError(PayrollKernelError):
    """Base exception for stored payroll entry errors."""

    code: str = "ENTRY_ERROR"


class PayrollEntryNotFoundError(EntryError):
    """Payroll entry with given ID was not found."""

    code: str = "PAYROLL_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Payroll entry not found: {entry_id}")


class PayrollEntryImmutableError(EntryError):
    """Attempted to change or delete a payroll entry that is already paid."""

    code: str = "PAYROLL_ENTRY_IMMUTABLE"

    def __init__(self, entry_id: str, operation: str):
        self.entry_id = entry_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} payroll entry {entry_id}: entry is paid"
        )


# Configuration


class ConfigError(PayrollKernelError):
    """Base exception for statutory configuration errors."""

    code: str = "CONFIG_ERROR"


class StatutoryConfigNotFoundError(ConfigError):
    """No statutory rate set is effective on the requested date."""

    code: str = "STATUTORY_CONFIG_NOT_FOUND"

    def __init__(self, as_of: str, available: list[str]):
        self.as_of = as_of
        self.available = available
        super().__init__(
            f"No statutory rate set effective on {as_of}. "
            f"Available sets: {', '.join(available) or 'none'}"
        )
