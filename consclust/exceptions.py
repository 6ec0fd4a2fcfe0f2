"""
Exceptions and warnings raised by consclust.

Configuration and input errors subclass ValueError so that callers catching
ValueError (the convention used across the package) keep working.
"""


class ConsclustError(Exception):
    """Base class for all consclust errors."""


class ConfigurationError(ConsclustError, ValueError):
    """Invalid parameters: k range, sampling fractions, repetitions or names."""


class DegenerateInputError(ConsclustError, ValueError):
    """Expression matrix cannot be clustered (shape, non-finite values, too few samples)."""


class FitCancelled(ConsclustError, RuntimeError):
    """
    Raised when a fit is stopped through its stop event.

    Attributes:
    -----------
    completed_k : list of int
        Cluster counts whose results were completed before cancellation.
    """

    def __init__(self, message: str, completed_k=None):
        super().__init__(message)
        self.completed_k = list(completed_k or [])


class DegeneratePartitionWarning(UserWarning):
    """Base clustering returned fewer than k distinct labels for some repetitions."""
