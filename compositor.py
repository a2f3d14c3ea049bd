"""
Card compositor: one PNG per attendee.

Layout (W = QR_SIZE_PX):
    +-----------------+
    |     QR code     |  W x W
    |    [ plate ]    |  rounded plate + logo centred on the code
    |                 |
    +-----------------+
    |   Name label    |  W x box_height (depends on fitted font size)
    +-----------------+
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Union

from PIL import Image, ImageDraw, UnidentifiedImageError

from branding import BrandMark
from config import (
    BACKGROUND_COLOR,
    LOGO_SIZE_RATIO,
    PLATE_COLOR,
    PLATE_OPACITY,
    PLATE_RADIUS_RATIO,
    QR_SIZE_PX,
    TEXT_COLOR,
)
from data_loaders import AttendeeRecord
from errors import CompositionError
from label_fit import LabelLayout
from utils import card_entry_name, single_line


@dataclass(frozen=True)
class ComposedCard:
    record_id: str
    filename: str
    image_bytes: bytes
    width: int
    height: int
    font_size_px: int


def _as_image(code_raster: Union[Image.Image, bytes]) -> Image.Image:
    if isinstance(code_raster, Image.Image):
        return code_raster
    img = Image.open(BytesIO(code_raster))
    img.load()
    return img


def _draw_mark(card: Image.Image, brand_mark: BrandMark, qr_size: int) -> Image.Image:
    """Rounded backing plate + logo, centred on the code area. Returns a new RGBA card."""
    max_side = qr_size * LOGO_SIZE_RATIO
    draw_w, draw_h = brand_mark.draw_size(max_side)
    draw_w = max(1, round(draw_w))
    draw_h = max(1, round(draw_h))
    logo_x = (qr_size - draw_w) // 2
    logo_y = (qr_size - draw_h) // 2
    radius = round(min(draw_w, draw_h) * PLATE_RADIUS_RATIO)

    overlay = Image.new("RGBA", card.size, (0, 0, 0, 0))
    ImageDraw.Draw(overlay).rounded_rectangle(
        [(logo_x, logo_y), (logo_x + draw_w - 1, logo_y + draw_h - 1)],
        radius=radius,
        fill=(*PLATE_COLOR, round(255 * PLATE_OPACITY)),
    )
    card = Image.alpha_composite(card.convert("RGBA"), overlay)

    logo = brand_mark.image.resize((draw_w, draw_h), Image.Resampling.LANCZOS)
    card.paste(logo, (logo_x, logo_y), logo)
    return card


def compose_card(
    record: AttendeeRecord,
    brand_mark: BrandMark,
    code_raster: Union[Image.Image, bytes],
    layout: LabelLayout,
    surface,
    qr_size: int = QR_SIZE_PX,
) -> ComposedCard:
    """
    Render one card and encode it as PNG.

    Args:
        record: attendee (id is already encoded in `code_raster`)
        brand_mark: shared logo; only resized copies are drawn
        code_raster: qr_size x qr_size QR image (or its encoded bytes)
        layout: fitted label size for record.display_name
        surface: fonts.TextSurface used for the label font

    Raises:
        CompositionError: bad code raster or any drawing/encoding failure
    """
    try:
        code_img = _as_image(code_raster)
        if code_img.size != (qr_size, qr_size):
            raise CompositionError(
                f"QR raster for {record.id} is {code_img.size[0]}x{code_img.size[1]}, expected {qr_size}x{qr_size}",
                record_id=record.id,
            )

        height = qr_size + layout.box_height_px
        card = Image.new("RGB", (qr_size, height), BACKGROUND_COLOR)
        card.paste(code_img.convert("RGB"), (0, 0))
        card = _draw_mark(card, brand_mark, qr_size)

        # Label band below the code
        draw = ImageDraw.Draw(card)
        draw.rectangle([(0, qr_size), (qr_size - 1, height - 1)], fill=(*BACKGROUND_COLOR, 255))
        draw.text(
            (qr_size / 2, qr_size + layout.box_height_px / 2),
            single_line(record.display_name),
            font=surface.font(layout.font_size_px),
            fill=(*TEXT_COLOR, 255),
            anchor="mm",
        )

        buf = BytesIO()
        card.convert("RGB").save(buf, format="PNG")
    except CompositionError:
        raise
    except (OSError, ValueError, UnidentifiedImageError) as e:
        raise CompositionError(f"Could not draw card for {record.id}: {e}", record_id=record.id) from e

    return ComposedCard(
        record_id=record.id,
        filename=card_entry_name(record.display_name, record.id),
        image_bytes=buf.getvalue(),
        width=qr_size,
        height=height,
        font_size_px=layout.font_size_px,
    )
