"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist in the loaded scope."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class SnapshotLoadError(DomainError):
    """The ledger snapshot could not be loaded; no report can be built."""


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction group."""
    return f"Transaction group {transaction_id} not found"


def funding_source_not_found(source_id: str) -> str:
    """Return message for a funding source outside the loaded scope."""
    return f"Funding source {source_id} not found"


def duplicate_account_code(code: str) -> str:
    """Return message for an account code already in use."""
    return f"Account with code '{code}' already exists"


def duplicate_group_number(group_number: str) -> str:
    """Return message for a group number already in use."""
    return f"Transaction group with number '{group_number}' already exists"


def invalid_status_transition(group_number: str, current: str, target: str) -> str:
    """Return message for a status change the lifecycle does not allow."""
    return f"Transaction group {group_number} cannot move from {current} to {target}"


def account_delete_blocked_confirmed(confirmed_count: int) -> str:
    """Return reason when confirmed transactions reference the account."""
    return (
        f"Account is used by {confirmed_count} confirmed "
        f"transaction{'s' if confirmed_count != 1 else ''} and cannot be deleted"
    )


def account_delete_blocked_in_use(usage_count: int) -> str:
    """Return reason when only draft or cancelled transactions reference the account."""
    return (
        f"Account is used by {usage_count} "
        f"entr{'ies' if usage_count != 1 else 'y'}; "
        "consider deactivating it instead of deleting"
    )
