import pytest

from pagewriter.docs import PAPER_SIZES, lookup_paper
from pagewriter.pipeline import fit_to_page, resolve_page_size


def test_fit_scales_uniformly_and_centres():
    placement = fit_to_page(1000, 1400, 794, 1123)
    assert placement.scale == pytest.approx(min(794 / 1000, 1123 / 1400))
    assert placement.scale == pytest.approx(0.794, abs=1e-3)
    assert placement.width == pytest.approx(794)
    assert placement.height == pytest.approx(1111.6, abs=0.1)
    assert placement.x == pytest.approx(0)
    assert placement.y == pytest.approx((1123 - placement.height) / 2)


def test_fit_upscales_small_images():
    placement = fit_to_page(100, 100, 800, 400)
    assert placement.scale == pytest.approx(4.0)
    assert placement.x == pytest.approx(200)
    assert placement.y == pytest.approx(0)


def test_fit_rejects_empty_image():
    with pytest.raises(ValueError):
        fit_to_page(0, 10, 794, 1123)


def test_paper_lookup_is_case_insensitive():
    assert lookup_paper("A4") == lookup_paper("a4") == PAPER_SIZES["a4"] == (794, 1123)
    assert resolve_page_size("LETTER") == (816, 1056)
    assert resolve_page_size("Legal") == (816, 1344)


def test_landscape_swaps_dimensions():
    assert resolve_page_size("a4", "landscape") == (1123, 794)
    assert resolve_page_size("a5", "LANDSCAPE") == (595, 420)


def test_custom_size_and_fallbacks():
    assert resolve_page_size("custom", custom_width=600, custom_height=900) == (600, 900)
    assert resolve_page_size("custom") == (794, 1123)
    assert resolve_page_size("tabloid") == (794, 1123)
    assert resolve_page_size(None) == (794, 1123)
    with pytest.raises(ValueError):
        resolve_page_size("custom", custom_width=-10, custom_height=900)
