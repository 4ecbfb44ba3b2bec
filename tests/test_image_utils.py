import numpy as np
import pytest

from mortar_stager.utils import image_utils


def test_is_rgba():
    assert image_utils.is_rgba(np.zeros((4, 4, 4), dtype=np.uint8))
    assert not image_utils.is_rgba(np.zeros((4, 4, 3), dtype=np.uint8))
    assert not image_utils.is_rgba(np.zeros((4, 4, 4), dtype=np.float32))
    assert not image_utils.is_rgba(np.zeros((0, 0, 4), dtype=np.uint8))
    assert not image_utils.is_rgba(None)


def test_ensure_rgba_from_bgr():
    bgr = np.zeros((5, 5, 3), dtype=np.uint8)
    bgr[:, :, 0] = 255  # blue channel
    rgba = image_utils.ensure_rgba(bgr)

    assert rgba.shape == (5, 5, 4)
    assert np.all(rgba[:, :, 2] == 255)
    assert np.all(rgba[:, :, 3] == 255)


def test_ensure_rgba_from_gray():
    gray = np.full((6, 7), 90, dtype=np.uint8)
    rgba = image_utils.ensure_rgba(gray)
    assert rgba.shape == (6, 7, 4)
    assert np.all(rgba[:, :, :3] == 90)


def test_ensure_rgba_keeps_rgba_when_not_bgr(random_rgba):
    out = image_utils.ensure_rgba(random_rgba, assume_bgr=False)
    np.testing.assert_array_equal(out, random_rgba)
    assert out is not random_rgba


def test_rgba_bgra_swap_red_blue():
    rgba = np.zeros((2, 2, 4), dtype=np.uint8)
    rgba[:, :, 0] = 10
    rgba[:, :, 2] = 30
    bgra = image_utils.rgba_to_bgra(rgba)
    assert np.all(bgra[:, :, 0] == 30)
    assert np.all(bgra[:, :, 2] == 10)


def test_validate_raises_on_wrong_type():
    with pytest.raises(image_utils.ImageValidationError):
        image_utils.ensure_rgba("not-an-image")  # type: ignore[arg-type]

    with pytest.raises(image_utils.ImageValidationError):
        image_utils.ensure_rgba(np.zeros((4, 4, 2), dtype=np.uint8))


def test_contact_sheet_layout(random_rgba):
    sheet = image_utils.make_contact_sheet([random_rgba] * 4, columns=3, tile_width=60, gap=2)

    # 80x120 → 40x60 tiles, 2 rows x 3 columns
    assert sheet.shape == (2 * 40 + 3 * 2, 3 * 60 + 4 * 2, 3)
    # 마지막 빈 칸은 흰색
    assert np.all(sheet[2 + 40 + 2 :, 2 + 2 * (60 + 2) :][:40, :60] == 255)


def test_contact_sheet_empty_raises():
    with pytest.raises(image_utils.ImageValidationError):
        image_utils.make_contact_sheet([])
