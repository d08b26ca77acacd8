import io

import pytest
from PIL import Image

from app.features.favicons.services.image import normalize_image


def _size(data: bytes):
    with Image.open(io.BytesIO(data)) as img:
        return img.size


def test_large_png_is_downsized(image_factory):
    original = image_factory(64, noisy=True)

    result = normalize_image(original, "image/png")

    assert result.resized is True
    assert len(result.data) < len(original)
    assert _size(result.data) == (16, 16)


def test_large_jpeg_is_downsized(image_factory):
    original = image_factory(128, fmt="JPEG", noisy=True)

    result = normalize_image(original, "image/jpeg")

    assert result.resized is True
    assert _size(result.data) == (16, 16)


def test_small_image_is_unchanged_and_idempotent(small_png):
    first = normalize_image(small_png, "image/png")
    second = normalize_image(first.data, "image/png")

    assert first.resized is False
    assert first.data == small_png
    assert second.data == first.data


@pytest.mark.parametrize(
    "size, fmt, noisy",
    [(17, "PNG", True), (32, "PNG", False), (32, "JPEG", False), (256, "PNG", False)],
)
def test_output_never_grows(image_factory, size, fmt, noisy):
    original = image_factory(size, fmt=fmt, noisy=noisy)

    result = normalize_image(original, f"image/{fmt.lower()}")

    if result.resized:
        assert len(result.data) < len(original)
    else:
        assert result.data == original


def test_non_decodable_types_pass_through():
    svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="64" height="64"></svg>'

    result = normalize_image(svg, "image/svg+xml")

    assert result.data == svg
    assert result.resized is False


def test_corrupt_data_returns_original():
    garbage = b"\x89PNG\r\n\x1a\nthis is not really a png"

    result = normalize_image(garbage, "image/png; charset=binary")

    assert result.data == garbage
    assert result.resized is False


def test_mismatched_content_type_returns_original(image_factory):
    jpeg = image_factory(64, fmt="JPEG", noisy=True)

    result = normalize_image(jpeg, "image/png")

    assert result.data == jpeg


def test_images_over_pixel_limit_are_not_decoded(image_factory):
    original = image_factory(64, noisy=True)

    result = normalize_image(original, "image/png", max_pixels=32 * 32)

    assert result.data == original
    assert result.resized is False
