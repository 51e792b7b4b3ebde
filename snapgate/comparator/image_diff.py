"""Pixel-level screenshot comparison."""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageChops, ImageOps, UnidentifiedImageError

from snapgate.models.comparison import ComparisonResult, Verdict

from .errors import DimensionMismatch, InvalidImage

logger = logging.getLogger(__name__)

# Per-channel tolerance for anti-aliasing and font rendering noise
DEFAULT_PIXEL_THRESHOLD = 40

_DIFF_COLOR = (255, 0, 0)


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes into an RGBA image."""
    if not data:
        raise InvalidImage("Empty image buffer")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            image = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidImage(f"Cannot decode image: {e}") from e
    _check_size(image)
    return image


def encode_image(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def _check_size(image: Image.Image) -> None:
    width, height = image.size
    if width == 0 or height == 0:
        raise InvalidImage(f"Image has zero size ({width}x{height})")


def _difference_mask(a: Image.Image, b: Image.Image, pixel_threshold: int) -> Image.Image:
    """Return an "L" mask with 255 where any channel differs by more than the threshold."""
    lut = [255 if v > pixel_threshold else 0 for v in range(256)]
    delta = ImageChops.difference(a, b)
    mask = None
    for band in delta.split():
        hit = band.point(lut)
        mask = hit if mask is None else ImageChops.lighter(mask, hit)
    return mask


def render_diff(baseline: Image.Image, mask: Image.Image) -> Image.Image:
    """Overlay differing pixels in red on a faded grayscale copy of the baseline."""
    faded = ImageOps.grayscale(baseline).point(lambda v: 255 - (255 - v) // 4).convert("RGB")
    red = Image.new("RGB", baseline.size, _DIFF_COLOR)
    return Image.composite(red, faded, mask)


def compare(
    candidate: Image.Image,
    baseline: Image.Image,
    max_diff_pixel_ratio: float,
    pixel_threshold: int = DEFAULT_PIXEL_THRESHOLD,
    with_diff: bool = False,
) -> ComparisonResult:
    """Compare a candidate screenshot to its baseline.

    A pixel counts as different when any RGBA channel differs by more than
    ``pixel_threshold``. The verdict passes when the ratio of differing pixels
    is at most ``max_diff_pixel_ratio``.

    Raises InvalidImage for zero-size input and DimensionMismatch when the
    two images are not the same size.
    """
    if not 0.0 <= max_diff_pixel_ratio <= 1.0:
        raise ValueError(f"max_diff_pixel_ratio must be within [0, 1], got {max_diff_pixel_ratio}")
    if not 0 <= pixel_threshold <= 255:
        raise ValueError(f"pixel_threshold must be within [0, 255], got {pixel_threshold}")

    _check_size(candidate)
    _check_size(baseline)
    if candidate.size != baseline.size:
        raise DimensionMismatch(baseline.size, candidate.size)

    cand = candidate.convert("RGBA")
    base = baseline.convert("RGBA")
    mask = _difference_mask(cand, base, pixel_threshold)

    total = cand.width * cand.height
    diff_count = mask.histogram()[255]
    ratio = diff_count / total
    verdict = Verdict.PASS if ratio <= max_diff_pixel_ratio else Verdict.FAIL
    logger.debug("Pixel diff: %d/%d (%.4f, max %.4f) -> %s",
                 diff_count, total, ratio, max_diff_pixel_ratio, verdict.value)

    return ComparisonResult(
        diff_pixels=diff_count,
        total_pixels=total,
        ratio=ratio,
        max_diff_pixel_ratio=max_diff_pixel_ratio,
        verdict=verdict,
        diff_image=render_diff(base, mask) if with_diff else None,
    )
