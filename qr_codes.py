"""QR code rasters for attendee ids."""

from __future__ import annotations

from PIL import Image
import qrcode
from qrcode.exceptions import DataOverflowError

from config import QR_BORDER_MODULES, QR_ERROR_CORRECTION
from errors import CodeEncodingError

_ERROR_CORRECTION = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}


def encode_qr(payload: str, size_px: int) -> Image.Image:
    """
    Encode `payload` as a square RGB QR image of exactly size_px x size_px.

    Deterministic for the same payload/size. Modules are scaled with
    nearest-neighbour so edges stay sharp.

    Raises:
        CodeEncodingError: empty payload or too much data for a QR code
    """
    data = "" if payload is None else str(payload).strip()
    if not data:
        raise CodeEncodingError("Cannot encode an empty id as a QR code", record_id=payload)
    if size_px < 1:
        raise CodeEncodingError(f"Invalid QR size: {size_px}px", record_id=data)

    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION[QR_ERROR_CORRECTION],
        box_size=1,
        border=QR_BORDER_MODULES,
    )
    qr.add_data(data)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        raise CodeEncodingError(f"Could not encode id {data!r}: {e}", record_id=data) from e

    # Largest whole box size that fits, then snap to the exact size
    total_modules = qr.modules_count + 2 * QR_BORDER_MODULES
    qr.box_size = max(1, size_px // total_modules)
    img = qr.make_image(fill_color="black", back_color="white").get_image().convert("RGB")
    if img.size != (size_px, size_px):
        img = img.resize((size_px, size_px), Image.Resampling.NEAREST)
    return img
