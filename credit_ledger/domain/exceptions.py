"""Domain-specific exceptions

Every ledger failure carries a stable ``code`` so API and metrics layers can
report it without string matching. The families mirror how a caller should
react: fix the input, adjust the request, retry later, or give up.
"""


class LedgerError(Exception):
    """Base exception for domain layer"""

    code = "ledger_error"


# Validation errors: rejected before any mutation


class LedgerValidationError(LedgerError):
    code = "validation_error"


class InvalidAmount(LedgerValidationError):
    """Amount is zero, negative, or otherwise unusable"""

    code = "invalid_amount"


class LimitBelowBalance(LedgerValidationError):
    """New credit limit would leave the current balance above it"""

    code = "limit_below_balance"


# Business-rule violations: request must be adjusted


class BusinessRuleViolation(LedgerError):
    code = "business_rule_violation"


class LimitExceeded(BusinessRuleViolation):
    code = "limit_exceeded"


class OverPayment(BusinessRuleViolation):
    """Payment is larger than the account balance"""

    code = "over_payment"


class ExcessPayment(BusinessRuleViolation):
    """Payment is larger than everything outstanding on the candidate obligations"""

    code = "excess_payment"


class NoOutstandingObligations(BusinessRuleViolation):
    code = "no_outstanding_obligations"


class InvalidTransition(BusinessRuleViolation):
    """Sale status change not allowed from the current state"""

    code = "invalid_transition"


class AccountInactive(BusinessRuleViolation):
    code = "account_inactive"


class AccountHasObligations(BusinessRuleViolation):
    """Account cannot be deleted while obligations reference it"""

    code = "account_has_obligations"


class AccountAlreadyExists(BusinessRuleViolation):
    code = "account_already_exists"


class DuplicatePayment(BusinessRuleViolation):
    """Idempotency key was already applied for this customer"""

    code = "duplicate_payment"


class PaymentVerificationFailed(BusinessRuleViolation):
    code = "payment_verification_failed"


# Concurrency errors: safe to retry the same request


class ConcurrencyError(LedgerError):
    code = "concurrency_error"


class LockTimeout(ConcurrencyError):
    code = "lock_timeout"


class TransactionConflict(ConcurrencyError):
    """Account row changed underneath an in-flight transaction"""

    code = "transaction_conflict"


# Not-found errors: terminal for the request


class NotFoundError(LedgerError):
    code = "not_found"


class AccountNotFound(NotFoundError):
    code = "account_not_found"


class ObligationNotFound(NotFoundError):
    code = "obligation_not_found"


# Fatal


class LedgerStorageError(LedgerError):
    """Storage failed mid-transaction; nothing was committed"""

    code = "storage_error"


class LedgerInvariantViolation(LedgerError):
    """A write would have left the ledger in an invalid state"""

    code = "invariant_violation"
