"""
Unit tests for the Lab lightness/whiteness score
"""

import numpy as np
import pytest

from mortar_stager.core.score_extractor import ScoreConfig, ScoreExtractor


def _solid_bgr(color, h=10, w=10):
    img = np.zeros((h, w, 3), dtype=np.uint8)
    img[:] = color
    return img


@pytest.fixture
def full_mask():
    return np.full((10, 10), 255, dtype=np.uint8)


def test_score_config_defaults():
    config = ScoreConfig()
    assert config.weight_lightness == 0.80
    assert config.weight_whiten == 0.20
    assert config.chroma_norm == 110.0
    assert config.bilateral_diameter == 5


def test_to_lab_uses_standard_ranges():
    lab = ScoreExtractor().to_lab(_solid_bgr((255, 255, 255)))
    assert lab[0, 0, 0] == pytest.approx(100.0, abs=0.1)
    assert abs(lab[0, 0, 1]) < 0.1
    assert abs(lab[0, 0, 2]) < 0.1


def test_white_scores_highest(full_mask):
    score = ScoreExtractor().extract(_solid_bgr((255, 255, 255)), full_mask)
    assert score.dtype == np.float32
    np.testing.assert_allclose(score, 1.0, atol=1e-3)


def test_black_scores_whiteness_only(full_mask):
    score = ScoreExtractor().extract(_solid_bgr((0, 0, 0)), full_mask)
    np.testing.assert_allclose(score, 0.2, atol=1e-3)


def test_saturated_red_is_penalized(full_mask):
    # sRGB red: L*≈53.2, a*≈80.1, b*≈67.2 → C≈104.6
    score = ScoreExtractor().extract(_solid_bgr((0, 0, 255)), full_mask)
    expected = 0.8 * 0.532 + 0.2 * (1 - 104.6 / 110.0)
    np.testing.assert_allclose(score, expected, atol=0.01)


def test_gray_score_increases_with_lightness(full_mask):
    extractor = ScoreExtractor()
    scores = [float(extractor.extract(_solid_bgr((v, v, v)), full_mask)[0, 0]) for v in (40, 120, 200)]
    assert scores[0] < scores[1] < scores[2]


def test_outside_mask_is_zero():
    mask = np.zeros((10, 10), dtype=np.uint8)
    mask[:5] = 255
    score = ScoreExtractor().extract(_solid_bgr((255, 255, 255)), mask)

    assert np.all(score[5:] == 0.0)
    assert np.all(score[:5] > 0.99)


def test_smoothing_keeps_uniform_image_score(full_mask):
    img = _solid_bgr((90, 140, 200))
    extractor = ScoreExtractor()
    plain = extractor.extract(img, full_mask, smooth=False)
    smooth = extractor.extract(img, full_mask, smooth=True)
    np.testing.assert_allclose(plain, smooth, atol=1e-4)


def test_smoothing_reduces_noise(full_mask):
    rng = np.random.default_rng(5)
    img = np.clip(rng.normal(128, 6, size=(10, 10, 3)), 0, 255).astype(np.uint8)
    extractor = ScoreExtractor()
    assert extractor.extract(img, full_mask, smooth=True).std() <= extractor.extract(img, full_mask).std()


def test_custom_weights():
    config = ScoreConfig(weight_lightness=1.0, weight_whiten=0.0)
    score = ScoreExtractor(config).extract(_solid_bgr((0, 0, 255)), np.full((10, 10), 255, np.uint8))
    np.testing.assert_allclose(score, 0.532, atol=0.01)
