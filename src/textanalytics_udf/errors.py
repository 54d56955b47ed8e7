"""Exception hierarchy."""

from __future__ import annotations
from typing import Sequence

from .types import BatchItemError


class TextAnalyticsError(Exception):
    """Base class for all errors raised by this package."""


class PlanningInvariantError(TextAnalyticsError):
    """Internal length/offset bookkeeping is inconsistent.  Always a bug."""


class CapabilityBatchError(TextAnalyticsError):
    """A batch call reported item errors or returned the wrong number of results."""

    def __init__(
        self,
        operation: str,
        batch_index: int,
        errors: Sequence[BatchItemError] = (),
        detail: str = "",
    ) -> None:
        self.operation = operation
        self.batch_index = batch_index
        self.errors = list(errors)
        msg = f"{operation}: batch {batch_index} failed"
        if self.errors:
            msg += ": " + "; ".join(str(e) for e in self.errors)
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class CapabilityCallError(TextAnalyticsError):
    """A single call to the remote capability failed."""


class UnsupportedOperationError(CapabilityCallError):
    """The configured backend does not offer this operation."""


class UnknownOperationError(TextAnalyticsError, ValueError):
    """Operation name or argument count not recognised."""
