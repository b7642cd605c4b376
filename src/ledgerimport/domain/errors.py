"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


def account_not_found(token: str) -> str:
    """Return message for an account token missing from the chart."""
    return f"Account '{token}' not found"


def account_missing(side: str) -> str:
    """Return message for an entry side without any account token."""
    return f"No {side} account given"


def document_not_found(document_number: str) -> str:
    """Return message for missing document."""
    return f"Document '{document_number}' not found"


def duplicate_account_number(number: str) -> str:
    """Return message for duplicate chart account number."""
    return f"Account with number '{number}' already exists"


def unknown_format(hint: str) -> str:
    """Return message for an unrecognized import format hint."""
    return (
        f"Unknown import format '{hint}'. "
        "Must be one of: statement (mt940), delimited (csv), form (xlsx)"
    )


def import_blocked(missing: list[str]) -> str:
    """Return message when a batch is blocked by unresolved accounts."""
    count = len(missing)
    return (
        f"Import blocked: {count} account{'s' if count != 1 else ''} not found "
        f"in the chart of accounts: {', '.join(missing)}"
    )


def empty_account(side: str) -> str:
    """Return the label listed for an entry side left without an account."""
    return f"(empty {side} account)"
