"""
Central configuration for bulk-qr-cards.

Keep runtime-safe (no secrets).
"""

# UI
PREVIEW_COUNT = 6  # cards shown as previews after a run
PREVIEW_COLUMNS_DESKTOP = 3
PREVIEW_COLUMNS_MOBILE = 2
PREVIEW_WIDTH_DESKTOP = 200
PREVIEW_WIDTH_MOBILE = 220

# Archive
ARCHIVE_NAME = "bulk-qr-codes.zip"
ZIP_SPOOL_MAX_BYTES = 25 * 1024 * 1024  # spill ZIP to disk after ~25MB

# Card template
QR_SIZE_PX = 400
LOGO_SIZE_RATIO = 0.22  # logo covers ~22% of QR width
PLATE_RADIUS_RATIO = 0.18  # of the smaller logo side
PLATE_OPACITY = 0.95
MAX_FONT_SIZE_PX = 36
MIN_FONT_SIZE_PX = 16
LABEL_PADDING_PX = 24
LABEL_SIDE_MARGIN_PX = 32  # label may use QR_SIZE_PX - this
BACKGROUND_COLOR = (255, 255, 255)
PLATE_COLOR = (255, 255, 255)
TEXT_COLOR = (34, 34, 34)  # #222

# QR encoding
QR_ERROR_CORRECTION = "M"
QR_BORDER_MODULES = 4

# Network
HTTP_TIMEOUT_S = 30
FIRESTORE_MAX_ATTEMPTS = 2
