#!/usr/bin/env python3
"""
Bold sans-serif font discovery and the text measuring surface.

Run directly to list the bold fonts the label fitter can pick up:
    python fonts.py
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional

from PIL import Image, ImageDraw, ImageFont

_APP_DIR = Path(__file__).resolve().parent

# Preferred bold sans-serif files, most specific first
BOLD_FONT_CANDIDATES = [
    str(_APP_DIR / "fonts" / "Arial-Bold.ttf"),
    str(_APP_DIR / "fonts" / "DejaVuSans-Bold.ttf"),
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
    os.path.expanduser("~/Library/Fonts/Arial Bold.ttf"),
    "C:/Windows/Fonts/arialbd.ttf",
    "/usr/share/fonts/truetype/msttcorefonts/Arial_Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/liberation-sans/LiberationSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
]

FONT_DIRS = [
    "/System/Library/Fonts",
    "/System/Library/Fonts/Supplemental",
    "/Library/Fonts",
    os.path.expanduser("~/Library/Fonts"),
    "/usr/share/fonts",
    "/usr/local/share/fonts",
    "C:/Windows/Fonts",
]


def find_bold_font() -> Optional[str]:
    """First existing bold sans-serif font file, or None."""
    for path in BOLD_FONT_CANDIDATES:
        if os.path.exists(path):
            return path
    return None


def find_fonts() -> List[str]:
    """Find bold TrueType/OpenType fonts in the usual system folders."""
    fonts = []
    for font_dir in FONT_DIRS:
        if not os.path.isdir(font_dir):
            continue
        for root, _dirs, files in os.walk(font_dir):
            for file in files:
                low = file.lower()
                if low.endswith((".ttf", ".otf", ".ttc")) and ("bold" in low or low.endswith("bd.ttf")):
                    fonts.append(os.path.join(root, file))
    return sorted(fonts)


class TextSurface:
    """
    Short-lived measuring surface for one batch.

    Holds a 1x1 scratch image and a per-size font cache. Never share an
    instance between concurrent batches.
    """

    def __init__(self, font_path: Optional[str] = None):
        self.font_path = font_path if font_path is not None else find_bold_font()
        self._fonts: Dict[int, ImageFont.FreeTypeFont] = {}
        self._draw = ImageDraw.Draw(Image.new("RGB", (1, 1)))

    def font(self, size: int):
        """Load and cache the bold font at `size` px."""
        if size in self._fonts:
            return self._fonts[size]
        font = None
        if self.font_path:
            try:
                font = ImageFont.truetype(self.font_path, size)
            except OSError:
                font = None
        if font is None:
            # Pillow's bundled scalable font (needs FreeType support)
            font = ImageFont.load_default(size=size)
        self._fonts[size] = font
        return font

    def measure(self, text: str, size: int) -> float:
        """Rendered width of `text` at `size` px."""
        if not text:
            return 0.0
        return float(self._draw.textlength(text, font=self.font(size)))


if __name__ == "__main__":
    print("Bold fonts on your system:\n")
    fonts = find_fonts()
    for i, font in enumerate(fonts, 1):
        print(f"{i}. {os.path.basename(font)}")
        print(f"   Path: {font}\n")
    print(f"\nTotal: {len(fonts)} fonts found")
    chosen = find_bold_font()
    print(f"Label font in use: {chosen or 'Pillow default (no bold font found)'}")
