"""Baseline registry data structures."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BaselineEntry(BaseModel):
    test_id: str
    name: str
    width: int
    height: int
    image_path: str  # relative path from baselines_dir to the PNG
    captured_at: str  # ISO timestamp
    image_hash: str  # SHA-256 hex digest


class BaselineRegistry(BaseModel):
    last_updated: str = ""
    baselines: dict[str, BaselineEntry] = Field(default_factory=dict)
    # key format: "{test_id}__{name}"
