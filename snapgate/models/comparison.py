"""Comparison and run result data structures."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field


class Verdict(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class ComparisonResult(BaseModel):
    """Outcome of comparing a candidate screenshot against its baseline.

    Never persisted; recomputed on every run.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    diff_pixels: int = 0
    total_pixels: int = 0
    ratio: float = 0.0
    max_diff_pixel_ratio: float = 0.0
    verdict: Verdict = Verdict.PASS
    baseline_created: bool = False
    diff_image: Optional[Image.Image] = Field(default=None, exclude=True, repr=False)
    # Written by the gate on failure
    actual_path: Optional[str] = None
    expected_path: Optional[str] = None
    diff_path: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.verdict == Verdict.PASS

    def describe(self) -> str:
        if self.baseline_created:
            return "Baseline created (first run)"
        return (
            f"{self.diff_pixels} of {self.total_pixels} pixels differ "
            f"(ratio {self.ratio:.4f}, max {self.max_diff_pixel_ratio:.4f})"
        )


class CheckResult(BaseModel):
    test_id: str
    name: str
    result: str  # pass, fail, error
    duration_seconds: float = 0.0
    ratio: Optional[float] = None
    message: str = ""
    baseline_created: bool = False
    actual_path: Optional[str] = None
    expected_path: Optional[str] = None
    diff_path: Optional[str] = None


class RunResult(BaseModel):
    run_id: str
    started_at: str
    completed_at: str = ""
    base_url: str
    total: int = 0
    passed: int = 0
    failed: int = 0
    errors: int = 0
    duration_seconds: float = 0.0
    check_results: list[CheckResult] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.errors == 0
