"""Configuration models for the screenshot gate."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720
    name: str = "desktop"


class ScreenshotCheck(BaseModel):
    """A single declared screenshot assertion."""
    test_id: str
    name: str  # baseline file name, e.g. "homepage.png"
    path: str = "/"
    selector: Optional[str] = None  # element capture when set, page capture otherwise
    full_page: bool = False
    scripts: list[str] = Field(default_factory=list)  # evaluated in order before capture
    mask: list[str] = Field(default_factory=list)
    max_diff_pixel_ratio: Optional[float] = None

    @field_validator("max_diff_pixel_ratio")
    @classmethod
    def check_ratio(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 <= v <= 1.0:
            raise ValueError("max_diff_pixel_ratio must be within [0, 1]")
        return v


class GateConfig(BaseModel):
    # Target
    base_url: str = ""

    # Storage
    baselines_dir: str = "./baselines"
    artifacts_dir: str = "./snapgate-results"

    # Comparison
    max_diff_pixel_ratio: float = 0.0
    pixel_threshold: int = 40
    missing_baseline: Literal["fail", "create"] = "create"

    # Capture
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    animations: Literal["disabled", "allow"] = "disabled"
    stable_timeout_ms: int = 5000
    navigation_timeout_ms: int = 30000

    checks: list[ScreenshotCheck] = Field(default_factory=list)

    @field_validator("max_diff_pixel_ratio")
    @classmethod
    def check_ratio(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("max_diff_pixel_ratio must be within [0, 1]")
        return v

    @field_validator("pixel_threshold")
    @classmethod
    def check_pixel_threshold(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("pixel_threshold must be within [0, 255]")
        return v

    @classmethod
    def load(cls, path: str | Path) -> "GateConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
