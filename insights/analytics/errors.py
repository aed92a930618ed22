from __future__ import annotations


class InsightsError(RuntimeError):
    """Base error for metrics and report computations."""


class FetchFailure(InsightsError):
    """Raised when a backing collection cannot be read; aborts the computation."""

    def __init__(self, collection: str, message: str | None = None) -> None:
        self.collection = collection
        super().__init__(message or f"Failed to fetch '{collection}'")


class ParameterError(InsightsError, ValueError):
    """Raised for invalid computation parameters, before any data is read."""


class ComputationTimeoutError(InsightsError):
    """Raised when a computation does not finish within its deadline."""
