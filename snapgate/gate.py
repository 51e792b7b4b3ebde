"""Screenshot gate — resolves baselines, applies the missing-baseline policy, and compares."""

from __future__ import annotations

import logging
from pathlib import Path

from snapgate.baseline.store import BaselineStore, path_segment
from snapgate.comparator.errors import BaselineMissing, DimensionMismatch
from snapgate.comparator.image_diff import compare, decode_image
from snapgate.models.comparison import ComparisonResult, Verdict
from snapgate.models.config import GateConfig

logger = logging.getLogger(__name__)


class ScreenshotGate:
    """Decides pass/fail for captured screenshots against stored baselines."""

    def __init__(self, store: BaselineStore, config: GateConfig, artifacts_dir: Path | None = None):
        self.store = store
        self.config = config
        self.artifacts_dir = artifacts_dir

    @classmethod
    def from_config(cls, config: GateConfig) -> "ScreenshotGate":
        return cls(
            BaselineStore(Path(config.baselines_dir)),
            config,
            artifacts_dir=Path(config.artifacts_dir),
        )

    def check(
        self,
        candidate: bytes,
        test_id: str,
        name: str,
        max_diff_pixel_ratio: float | None = None,
    ) -> ComparisonResult:
        """Compare captured PNG bytes against the baseline for (test_id, name).

        Raises InvalidImage, DimensionMismatch or BaselineMissing. A ratio over
        the limit is returned as a Fail verdict, not raised.
        """
        ratio_limit = (
            max_diff_pixel_ratio if max_diff_pixel_ratio is not None
            else self.config.max_diff_pixel_ratio
        )
        candidate_image = decode_image(candidate)

        baseline_bytes = self.store.get(test_id, name)
        if baseline_bytes is None:
            if self.config.missing_baseline == "fail":
                raise BaselineMissing(test_id, name)
            self.store.put(test_id, name, candidate)
            logger.info("No baseline for %s/%s, created from current capture", test_id, name)
            total = candidate_image.width * candidate_image.height
            return ComparisonResult(
                total_pixels=total,
                max_diff_pixel_ratio=ratio_limit,
                baseline_created=True,
            )

        baseline_image = decode_image(baseline_bytes)
        try:
            result = compare(
                candidate_image,
                baseline_image,
                ratio_limit,
                pixel_threshold=self.config.pixel_threshold,
                with_diff=True,
            )
        except DimensionMismatch:
            self._write_artifact(test_id, name, "actual", candidate)
            raise

        if result.verdict == Verdict.FAIL:
            logger.warning("Screenshot %s/%s differs: %s", test_id, name, result.describe())
            result.actual_path = self._write_artifact(test_id, name, "actual", candidate)
            result.expected_path = self._write_artifact(test_id, name, "expected", baseline_bytes)
            if result.diff_image is not None and self.artifacts_dir:
                diff_path = self._artifact_path(test_id, name, "diff")
                result.diff_image.save(diff_path, format="PNG")
                result.diff_path = str(diff_path)
        return result

    def _artifact_path(self, test_id: str, name: str, suffix: str) -> Path:
        stem = path_segment(name, ".png")[:-4]
        path = self.artifacts_dir / path_segment(test_id) / f"{stem}-{suffix}.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def _write_artifact(self, test_id: str, name: str, suffix: str, data: bytes) -> str | None:
        if not self.artifacts_dir:
            return None
        path = self._artifact_path(test_id, name, suffix)
        path.write_bytes(data)
        return str(path)
