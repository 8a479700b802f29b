"""
Typed Exception Hierarchy for the Supplier Kernel.

===============================================================================
CALLER CONTRACT
===============================================================================

Callers of the order ledger distinguish three situations by type:

  - the input was wrong (show the message, do not touch storage),
  - a supplier's visit configuration is malformed (degrade, keep going),
  - storage failed (leave the UI as it was, invite a retry).

Every exception:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (picked up by the JSON log
     formatter as ``exc_<field>``)

Example:
    try:
        ledger.add_entry(company, payload)
    except ValidationError as e:
        show_message(e.field, str(e))       # never retried
    except StorageError as e:
        log.error("add failed", extra={"code": e.code})
        # add_entry is NOT idempotent: do not blindly retry

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SupplierKernelError (base)
    |
    +-- ValidationError
    |   +-- MissingCompanyError
    |   +-- InvalidAmountError
    |   +-- InvalidProviderError
    |   +-- InvalidDateKeyError
    |   +-- InvertedDateRangeError
    |
    +-- ConfigurationError
    |   +-- DeliveryLookaheadExhaustedError
    |
    +-- StorageError
        +-- TransactionConflictError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|--------------------------------------
Validation      | VALIDATION_ERROR              | Generic malformed ledger input
                | MISSING_COMPANY               | Blank company identity
                | INVALID_AMOUNT                | Amount not a finite number > 0
                | INVALID_PROVIDER              | Blank provider code or name
                | INVALID_DATE_KEY              | Key is not a local-midnight day key
                | INVERTED_DATE_RANGE           | receive date before create date
----------------|-------------------------------|--------------------------------------
Configuration   | CONFIGURATION_ERROR           | Malformed visit configuration
                | DELIVERY_LOOKAHEAD_EXHAUSTED  | No receive day within the lookahead
                |                               | window (logged by the week model
                |                               | builder, never raised to callers)
----------------|-------------------------------|--------------------------------------
Storage         | STORAGE_ERROR                 | Connection / database failure
                | OPTIMISTIC_RETRY_EXHAUSTED    | Partition kept changing between
                |                               | read and write on every attempt

===============================================================================
"""


class SupplierKernelError(Exception):
    """
    Base exception for all supplier kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "SUPPLIER_KERNEL_ERROR"


# Validation exceptions


class ValidationError(SupplierKernelError):
    """
    Malformed or out-of-range input to a ledger operation.

    Raised synchronously before any storage access.  Never retried.
    """

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(reason)


class MissingCompanyError(ValidationError):
    """The company identity is missing or blank."""

    code: str = "MISSING_COMPANY"

    def __init__(self):
        super().__init__("company", "Company could not be determined")


class InvalidAmountError(ValidationError):
    """Order amount is not a finite number greater than zero."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: object):
        self.amount = str(amount)
        super().__init__("amount", f"Invalid amount: {amount!r}")


class InvalidProviderError(ValidationError):
    """Provider code or provider name is missing."""

    code: str = "INVALID_PROVIDER"

    def __init__(self, field: str = "provider_code"):
        super().__init__(field, f"Invalid provider: {field} is required")


class InvalidDateKeyError(ValidationError):
    """A date key is not a well-formed calendar key."""

    code: str = "INVALID_DATE_KEY"

    def __init__(self, field: str, value: object):
        self.value = repr(value)
        super().__init__(field, f"Invalid date key for {field}: {value!r}")


class InvertedDateRangeError(ValidationError):
    """The receive date precedes the create date."""

    code: str = "INVERTED_DATE_RANGE"

    def __init__(self, create_date_key: int, receive_date_key: int):
        self.create_date_key = create_date_key
        self.receive_date_key = receive_date_key
        super().__init__(
            "receive_date_key",
            f"Receive date {receive_date_key} cannot be before "
            f"create date {create_date_key}",
        )


# Configuration exceptions


class ConfigurationError(SupplierKernelError):
    """A supplier visit configuration cannot be evaluated."""

    code: str = "CONFIGURATION_ERROR"


class DeliveryLookaheadExhaustedError(ConfigurationError):
    """
    No receive day found within the delivery lookahead window.

    The week model builder logs this and skips the create day; one bad
    supplier must not break the week view for the others.
    """

    code: str = "DELIVERY_LOOKAHEAD_EXHAUSTED"

    def __init__(self, provider_code: str, create_date_key: int, lookahead_days: int):
        self.provider_code = provider_code
        self.create_date_key = create_date_key
        self.lookahead_days = lookahead_days
        super().__init__(
            f"No receive day for provider {provider_code} within "
            f"{lookahead_days} days of {create_date_key}"
        )


# Storage exceptions


class StorageError(SupplierKernelError):
    """
    The persisted store failed or could not complete a transaction.

    Propagated to the caller, who owns the retry decision.
    """

    code: str = "STORAGE_ERROR"

    def __init__(self, partition_key: str, message: str):
        self.partition_key = partition_key
        super().__init__(message)


class TransactionConflictError(StorageError):
    """The optimistic transaction exhausted its retry budget."""

    code: str = "OPTIMISTIC_RETRY_EXHAUSTED"

    def __init__(self, partition_key: str, attempts: int):
        self.attempts = attempts
        super().__init__(
            partition_key,
            f"Partition {partition_key} changed concurrently on all "
            f"{attempts} attempts",
        )
