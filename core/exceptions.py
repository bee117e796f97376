"""Custom exception types for functional evaluation."""

from __future__ import annotations


class FunctionalError(Exception):
    """Base class for domain-specific errors."""


class MissingInputError(FunctionalError):
    """Raised when a required mesh relation, field or reference is absent."""


class ElementRelationNotFoundError(MissingInputError):
    """Raised when the mesh has no vertex incidence for a requested grade."""

    def __init__(self, grade: int, message: str | None = None) -> None:
        if message is None:
            message = f"Element relation not found for grade {grade}."
        super().__init__(message)
        self.grade = grade


class MissingReferenceError(MissingInputError):
    """Raised when a functional lacks the reference data it integrates against."""


class DegenerateElementError(FunctionalError):
    """Raised when a per-element quantity is too small to normalize or invert."""

    def __init__(
        self,
        element_id: int,
        grade: int,
        quantity: str,
        message: str | None = None,
    ) -> None:
        if message is None:
            message = (
                f"Degenerate element {element_id} (grade {grade}): "
                f"{quantity} is too close to zero."
            )
        super().__init__(message)
        self.element_id = element_id
        self.grade = grade
        self.quantity = quantity


class SingularReferenceError(DegenerateElementError):
    """Raised when a reference Gram matrix cannot be inverted."""


class CallbackError(FunctionalError):
    """Raised when a user-supplied function fails or returns the wrong shape."""

    def __init__(self, message: str, *, element_id: int | None = None) -> None:
        super().__init__(message)
        self.element_id = element_id


__all__ = [
    "FunctionalError",
    "MissingInputError",
    "ElementRelationNotFoundError",
    "MissingReferenceError",
    "DegenerateElementError",
    "SingularReferenceError",
    "CallbackError",
]
