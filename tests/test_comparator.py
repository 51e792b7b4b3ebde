"""Tests for the pixel comparator."""

import pytest
from PIL import Image

from snapgate.comparator.errors import DimensionMismatch, InvalidImage
from snapgate.comparator.image_diff import (
    DEFAULT_PIXEL_THRESHOLD,
    compare,
    decode_image,
    encode_image,
)
from snapgate.models.comparison import Verdict

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


@pytest.fixture
def two_by_two_pair(image_factory):
    """Two 2x2 images identical except one pixel at full intensity on all channels."""
    baseline = image_factory(2, 2, BLACK)
    candidate = image_factory(2, 2, BLACK, changed={(1, 1): (255, 255, 255, 0)})
    return candidate, baseline


class TestCompare:
    """Tests for compare()."""

    def test_identical_images_pass_with_zero_ratio(self, image_factory):
        img = image_factory(8, 6, (12, 34, 56, 255), changed={(3, 2): (200, 10, 10, 255)})
        result = compare(img, img.copy(), 0.0)
        assert result.verdict == Verdict.PASS
        assert result.passed is True
        assert result.ratio == 0.0
        assert result.diff_pixels == 0
        assert result.total_pixels == 48

    def test_two_by_two_scenario_counts(self, two_by_two_pair):
        candidate, baseline = two_by_two_pair
        result = compare(candidate, baseline, 0.1)
        assert result.total_pixels == 4
        assert result.diff_pixels == 1
        assert result.ratio == 0.25

    def test_two_by_two_fails_below_ratio(self, two_by_two_pair):
        candidate, baseline = two_by_two_pair
        result = compare(candidate, baseline, 0.1)
        assert result.verdict == Verdict.FAIL
        assert result.max_diff_pixel_ratio == 0.1

    def test_two_by_two_passes_above_ratio(self, two_by_two_pair):
        candidate, baseline = two_by_two_pair
        result = compare(candidate, baseline, 0.3)
        assert result.verdict == Verdict.PASS

    def test_ratio_equal_to_limit_passes(self, two_by_two_pair):
        candidate, baseline = two_by_two_pair
        assert compare(candidate, baseline, 0.25).passed is True

    def test_ratio_is_symmetric(self, image_factory):
        a = image_factory(5, 5, WHITE, changed={(0, 0): BLACK, (4, 4): BLACK, (2, 3): (250, 0, 0, 255)})
        b = image_factory(5, 5, WHITE, changed={(1, 1): BLACK})
        assert compare(a, b, 1.0).ratio == compare(b, a, 1.0).ratio
        assert compare(a, b, 1.0).diff_pixels == 4

    @pytest.mark.parametrize("r1,r2", [(0.0, 0.5), (0.3, 0.3), (0.3, 1.0)])
    def test_monotonic_in_threshold(self, two_by_two_pair, r1, r2):
        candidate, baseline = two_by_two_pair
        if compare(candidate, baseline, r1).passed:
            assert compare(candidate, baseline, r2).passed

    def test_small_channel_noise_is_tolerated(self, image_factory):
        baseline = image_factory(3, 3, (100, 100, 100, 255))
        candidate = image_factory(3, 3, (100 + DEFAULT_PIXEL_THRESHOLD, 100, 100, 255))
        assert compare(candidate, baseline, 0.0).diff_pixels == 0

    def test_channel_difference_above_threshold_counts(self, image_factory):
        baseline = image_factory(3, 3, (100, 100, 100, 255))
        candidate = image_factory(3, 3, (100, 100, 100 + DEFAULT_PIXEL_THRESHOLD + 1, 255))
        assert compare(candidate, baseline, 0.0).diff_pixels == 9

    def test_custom_pixel_threshold(self, image_factory):
        baseline = image_factory(2, 1, (100, 100, 100, 255))
        candidate = image_factory(2, 1, (110, 100, 100, 255))
        assert compare(candidate, baseline, 0.0, pixel_threshold=5).diff_pixels == 2
        assert compare(candidate, baseline, 0.0, pixel_threshold=10).diff_pixels == 0

    def test_rgb_and_rgba_inputs_compare_equal(self):
        rgb = Image.new("RGB", (4, 4), (10, 20, 30))
        rgba = Image.new("RGBA", (4, 4), (10, 20, 30, 255))
        assert compare(rgb, rgba, 0.0).passed is True

    @pytest.mark.parametrize("ratio", [-0.01, 1.01])
    def test_ratio_out_of_range_rejected(self, image_factory, ratio):
        img = image_factory()
        with pytest.raises(ValueError):
            compare(img, img, ratio)

    def test_pixel_threshold_out_of_range_rejected(self, image_factory):
        img = image_factory()
        with pytest.raises(ValueError):
            compare(img, img, 0.0, pixel_threshold=256)


class TestCompareErrors:
    """Tests for hard comparison errors."""

    def test_dimension_mismatch(self, image_factory):
        with pytest.raises(DimensionMismatch) as exc_info:
            compare(image_factory(4, 4), image_factory(4, 5), 1.0)
        assert exc_info.value.expected_size == (4, 5)
        assert exc_info.value.actual_size == (4, 4)

    def test_dimension_mismatch_regardless_of_content(self, image_factory):
        # Same solid color, different size
        with pytest.raises(DimensionMismatch):
            compare(image_factory(3, 2, WHITE), image_factory(2, 3, WHITE), 1.0)

    def test_zero_size_candidate(self, image_factory):
        with pytest.raises(InvalidImage):
            compare(Image.new("RGBA", (0, 3)), image_factory(2, 3), 1.0)

    def test_zero_size_baseline(self, image_factory):
        with pytest.raises(InvalidImage):
            compare(image_factory(2, 3), Image.new("RGBA", (2, 0)), 1.0)


class TestDiffImage:
    """Tests for the diff overlay."""

    def test_no_diff_image_by_default(self, two_by_two_pair):
        candidate, baseline = two_by_two_pair
        assert compare(candidate, baseline, 0.0).diff_image is None

    def test_diff_image_marks_changed_pixels_red(self, two_by_two_pair):
        candidate, baseline = two_by_two_pair
        diff = compare(candidate, baseline, 0.0, with_diff=True).diff_image
        assert diff.size == (2, 2)
        assert diff.getpixel((1, 1)) == (255, 0, 0)
        assert diff.getpixel((0, 0)) != (255, 0, 0)

    def test_diff_image_not_serialized(self, two_by_two_pair):
        candidate, baseline = two_by_two_pair
        data = compare(candidate, baseline, 0.0, with_diff=True).model_dump()
        assert "diff_image" not in data
        assert data["verdict"] == "fail"


class TestDecodeImage:
    """Tests for decode_image()."""

    def test_decodes_png_to_rgba(self):
        img = decode_image(encode_image(Image.new("RGB", (3, 2), (1, 2, 3))))
        assert img.mode == "RGBA"
        assert img.size == (3, 2)
        assert img.getpixel((0, 0)) == (1, 2, 3, 255)

    def test_empty_buffer(self):
        with pytest.raises(InvalidImage):
            decode_image(b"")

    def test_corrupt_buffer(self):
        with pytest.raises(InvalidImage):
            decode_image(b"not an image at all")

    def test_truncated_png(self, image_factory):
        data = encode_image(image_factory(16, 16))
        with pytest.raises(InvalidImage):
            decode_image(data[:40])

    def test_encode_decode_preserves_pixels(self, image_factory):
        img = image_factory(3, 3, WHITE, changed={(1, 2): BLACK})
        assert compare(decode_image(encode_image(img)), img, 0.0).diff_pixels == 0
