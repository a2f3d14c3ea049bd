import pytest

from fonts import TextSurface
from label_fit import LabelLayout, fit_label

MAX_W = 368


def test_short_name_keeps_max_size(fake_surface):
    layout = fit_label("Kim", MAX_W, 36, 16, fake_surface)
    assert layout == LabelLayout(font_size_px=36, box_height_px=60, iterations=0)


def test_name_shrinks_until_it_fits(fake_surface):
    # 20 chars * 0.6 = 12 px per font px -> fits at 30px (360 <= 368)
    layout = fit_label("x" * 20, MAX_W, 36, 16, fake_surface)
    assert layout.font_size_px == 30
    assert fake_surface.measure("x" * 20, layout.font_size_px) <= MAX_W
    assert layout.box_height_px == 30 + 24


def test_overflowing_name_stops_at_floor(fake_surface):
    layout = fit_label("x" * 500, MAX_W, 36, 16, fake_surface)
    assert layout.font_size_px == 16
    assert layout.iterations == 36 - 16


def test_iterations_are_bounded(fake_surface):
    fit_label("x" * 10000, MAX_W, 36, 16, fake_surface)
    # initial measure plus one per decrement
    assert len(fake_surface.calls) == 1 + (36 - 16)
    assert min(fake_surface.calls) == 16


def test_longer_name_never_gets_bigger_font(fake_surface):
    names = ["Kim", "Alex Short", "Alexandra Montgomery", "A Very Long Attendee Name That Overflows The Label Box"]
    sizes = [fit_label(n, MAX_W, 36, 16, fake_surface).font_size_px for n in names]
    assert sizes == sorted(sizes, reverse=True)
    assert all(16 <= s <= 36 for s in sizes)


def test_custom_padding(fake_surface):
    assert fit_label("Kim", MAX_W, 20, 10, fake_surface, padding_px=4).box_height_px == 24


@pytest.mark.parametrize("lo,hi", [(0, 36), (40, 36)])
def test_invalid_bounds(fake_surface, lo, hi):
    with pytest.raises(ValueError):
        fit_label("Kim", MAX_W, hi, lo, fake_surface)


def test_real_surface_floor_for_very_long_name():
    surface = TextSurface()
    layout = fit_label("A Very Long Attendee Name That Overflows The Label Box", MAX_W, 36, 16, surface)
    assert layout.font_size_px == 16


def test_real_surface_width_grows_with_size():
    surface = TextSurface()
    assert surface.measure("Alex Short", 36) > surface.measure("Alex Short", 16)
    assert surface.measure("", 36) == 0.0


def test_multiline_name_is_measured_on_one_line():
    surface = TextSurface()
    layout = fit_label("Alex\nShort", MAX_W, 36, 16, surface)
    assert layout == fit_label("Alex Short", MAX_W, 36, 16, surface)
