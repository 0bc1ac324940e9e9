"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidEnvelopeError(ValidationError):
    """A request envelope is structurally invalid (e.g. records is not a list)."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class CircularDependencyError(ConflictError):
    """Setting a category parent would make the category its own ancestor."""


class SelfParentError(ConflictError):
    """A category cannot be its own parent."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class PersistenceError(DomainError):
    """The record store rejected a write (constraint violation, I/O failure)."""


def source_not_found(source_id: int) -> str:
    """Return message for missing source."""
    return f"Source {source_id} not found"


def unit_not_found(unit_id: int) -> str:
    """Return message for missing unit."""
    return f"Unit {unit_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def rule_not_found(kind: str, rule_id: int) -> str:
    """Return message for missing classification rule."""
    return f"{kind.capitalize()} rule {rule_id} not found"


def category_self_parent(category_id: int) -> str:
    """Return message when a category is set as its own parent."""
    return f"Category {category_id} cannot be its own parent"


def category_circular_dependency(category_id: int, parent_id: int) -> str:
    """Return message when a parent change would create a cycle."""
    return (
        f"Setting category {parent_id} as parent of category {category_id} "
        "would create a circular dependency"
    )


def category_delete_blocked(category_id: int, child_count: int) -> str:
    """Return message when a category still has subcategories."""
    return (
        f"Cannot delete category {category_id}: it has {child_count} "
        f"subcategor{'ies' if child_count != 1 else 'y'}. "
        "Please move or delete them first."
    )


def source_delete_blocked(source_id: int, transaction_count: int) -> str:
    """Return message when a source still has transactions."""
    return (
        f"Cannot delete source {source_id}: it has {transaction_count} "
        f"transaction{'s' if transaction_count != 1 else ''}. "
        "Please reassign or delete them first."
    )
