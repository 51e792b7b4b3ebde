"""Baseline store — file-backed screenshot baselines keyed by test and screenshot name."""

from __future__ import annotations

import hashlib
import io
import json
import logging
import os
import re
import tempfile
import threading
import time
from pathlib import Path

from PIL import Image

from snapgate.models.baseline import BaselineEntry, BaselineRegistry

logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    """Make a test id or screenshot name safe for use as a path segment."""
    slug = re.sub(r"[^A-Za-z0-9._-]+", "-", value.strip()).strip("-.")
    return slug or "unnamed"


def path_segment(value: str, extension: str = "") -> str:
    """Readable slug plus a digest of the raw value, so distinct values never share a path.

    ``extension`` is stripped from the slug before the digest and re-appended.
    """
    stem = slugify(value)
    if extension and stem.lower().endswith(extension):
        stem = stem[: -len(extension)] or "unnamed"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"{stem}-{digest}{extension}"


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class BaselineStore:
    """Stores baseline images and their JSON registry.

    Reads go straight to the image file and take no lock, so any number of
    comparisons can read concurrently. Writes replace files atomically.
    """

    def __init__(self, baselines_dir: Path):
        self.baselines_dir = Path(baselines_dir)
        self.registry_path = self.baselines_dir / "registry.json"
        self._lock = threading.Lock()

    def load(self) -> BaselineRegistry:
        """Load registry from disk, or create a new one."""
        if self.registry_path.exists():
            try:
                with open(self.registry_path) as f:
                    data = json.load(f)
                return BaselineRegistry(**data)
            except Exception as e:
                logger.warning("Failed to load baseline registry: %s. Creating new.", e)
        return BaselineRegistry()

    def save(self, registry: BaselineRegistry) -> None:
        """Persist registry to disk."""
        registry.last_updated = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        _atomic_write(self.registry_path, json.dumps(registry.model_dump(), indent=2).encode())
        logger.debug("Saved baseline registry to %s", self.registry_path)

    @staticmethod
    def key(test_id: str, name: str) -> str:
        return f"{test_id}__{name}"

    def _image_path(self, test_id: str, name: str) -> Path:
        return self.baselines_dir / "images" / path_segment(test_id) / path_segment(name, ".png")

    def exists(self, test_id: str, name: str) -> bool:
        return self._image_path(test_id, name).exists()

    def get(self, test_id: str, name: str) -> bytes | None:
        """Return the baseline image bytes, or None when no baseline exists."""
        path = self._image_path(test_id, name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def put(self, test_id: str, name: str, data: bytes) -> BaselineEntry:
        """Write baseline bytes and register them."""
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size

        dest = self._image_path(test_id, name)
        _atomic_write(dest, data)

        entry = BaselineEntry(
            test_id=test_id,
            name=name,
            width=width,
            height=height,
            # Relative path from baselines_dir for portability
            image_path=dest.relative_to(self.baselines_dir).as_posix(),
            captured_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            image_hash=hashlib.sha256(data).hexdigest(),
        )

        with self._lock:
            registry = self.load()
            registry.baselines[self.key(test_id, name)] = entry
            self.save(registry)
        logger.info("Stored baseline %s for %s (%dx%d)", name, test_id, width, height)
        return entry

    def entries(self) -> list[BaselineEntry]:
        """Registered baselines whose image file is still present."""
        result = []
        for key, entry in sorted(self.load().baselines.items()):
            if not (self.baselines_dir / entry.image_path).exists():
                logger.warning("Baseline image missing for %s: %s", key, entry.image_path)
                continue
            result.append(entry)
        return result
