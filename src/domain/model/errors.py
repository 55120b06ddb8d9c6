"""Domain-level exceptions.

Repositories raise these errors to express business rule violations before
any storage write is attempted. Callers decide how to surface them.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class EmptyIdentifierError(ValidationError):
    """A label normalized to an empty identifier."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Label {label!r} does not produce a valid identifier")
