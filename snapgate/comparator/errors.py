"""Comparison error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from snapgate.models.comparison import ComparisonResult


class ComparisonError(Exception):
    """Hard error that aborts a single comparison."""


class InvalidImage(ComparisonError):
    """Image buffer is empty, corrupt, or has zero width/height."""


class DimensionMismatch(ComparisonError):
    def __init__(self, expected_size: tuple[int, int], actual_size: tuple[int, int]):
        self.expected_size = expected_size
        self.actual_size = actual_size
        super().__init__(
            f"Expected an image {expected_size[0]}x{expected_size[1]}, "
            f"received {actual_size[0]}x{actual_size[1]}"
        )


class BaselineMissing(ComparisonError):
    def __init__(self, test_id: str, name: str):
        self.test_id = test_id
        self.name = name
        super().__init__(f"No baseline '{name}' for test '{test_id}'")


class ThresholdExceeded(AssertionError):
    """Raised by assertion helpers when a comparison verdict is Fail."""

    def __init__(self, name: str, result: ComparisonResult):
        self.name = name
        self.result = result
        msg = f"Screenshot '{name}' mismatch: {result.describe()}"
        if result.diff_path:
            msg += f"\n  Diff: {result.diff_path}"
        super().__init__(msg)
