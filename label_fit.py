"""Fit a single-line name label under the QR code by shrinking its font size."""

from __future__ import annotations

from typing import NamedTuple

from config import LABEL_PADDING_PX
from utils import single_line


class LabelLayout(NamedTuple):
    font_size_px: int
    box_height_px: int
    iterations: int  # number of 1px shrink steps taken


def fit_label(
    display_name: str,
    max_width_px: float,
    max_font_size_px: int,
    min_font_size_px: int,
    surface,
    padding_px: int = LABEL_PADDING_PX,
) -> LabelLayout:
    """
    Largest font size in [min_font_size_px, max_font_size_px] at which
    `display_name` fits in `max_width_px`.

    The name is measured as one line (see utils.single_line), the same text
    the compositor draws. `surface` is anything with `measure(text, size) -> width`
    (see fonts.TextSurface).
    If the name still overflows at the floor, the floor size is returned and
    the label is clipped when drawn.
    """
    if min_font_size_px < 1 or min_font_size_px > max_font_size_px:
        raise ValueError(
            f"Invalid font bounds: min={min_font_size_px}, max={max_font_size_px}"
        )

    text = single_line(display_name)
    font_size = max_font_size_px
    iterations = 0
    text_width = surface.measure(text, font_size)
    while text_width > max_width_px and font_size > min_font_size_px:
        font_size -= 1
        iterations += 1
        text_width = surface.measure(text, font_size)
    return LabelLayout(font_size, font_size + padding_px, iterations)
