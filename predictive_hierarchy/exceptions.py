"""
Exception hierarchy for the predictive hierarchy engine.

Everything raised on purpose by the package descends from ``HierarchyError``.
"""


class HierarchyError(Exception):
    """Base exception for all predictive hierarchy errors."""


class SingularMatrixError(HierarchyError, ArithmeticError):
    """Raised when a covariance cannot be inverted."""

    def __init__(self, covar):
        self.covar = covar
        super().__init__(f"Can't invert singular covariance {covar}")


class ShapeMismatchError(HierarchyError, ValueError):
    """Raised when hypoth/error/covar/learn shapes don't fit together."""


class StackError(HierarchyError, ValueError):
    """Raised for a stack that can't be advanced."""


class ConfigError(HierarchyError, ValueError):
    """Raised for invalid configuration values."""
