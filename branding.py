"""Brand mark (logo) loading: once per batch, shared read-only by every card."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError
import requests

from config import HTTP_TIMEOUT_S
from errors import AssetLoadError

MarkSource = Union[str, Path, bytes]


@dataclass(frozen=True)
class BrandMark:
    image: Image.Image  # RGBA, never drawn on directly
    width: int
    height: int

    @property
    def aspect(self) -> float:
        return self.width / self.height

    def draw_size(self, max_side: float):
        """(w, h) with the larger side equal to `max_side`, aspect preserved."""
        if self.aspect >= 1:
            return max_side, max_side / self.aspect
        return max_side * self.aspect, max_side


def _fetch_bytes(url: str, timeout_s: int) -> bytes:
    try:
        resp = requests.get(url, timeout=timeout_s)
    except requests.RequestException as e:
        raise AssetLoadError(f"Could not fetch brand mark from {url}: {e}") from e
    if resp.status_code != 200:
        raise AssetLoadError(f"Could not fetch brand mark from {url} (status: {resp.status_code})")
    return resp.content or b""


def load_brand_mark(source: MarkSource, timeout_s: int = HTTP_TIMEOUT_S) -> BrandMark:
    """
    Load and decode the brand mark from a path, raw bytes, or an http(s) URL.

    Raises:
        AssetLoadError: unreachable, empty, or undecodable source. Not retried.
    """
    if isinstance(source, bytes):
        data = source
        label = "<bytes>"
    else:
        label = str(source)
        if label.startswith(("http://", "https://")):
            data = _fetch_bytes(label, timeout_s)
        else:
            try:
                data = Path(label).read_bytes()
            except OSError as e:
                raise AssetLoadError(f"Brand mark not found at {label}: {e}") from e

    if not data:
        raise AssetLoadError(f"Brand mark at {label} is empty")
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise AssetLoadError(f"Could not decode brand mark at {label}: {e}") from e
    if img.width < 1 or img.height < 1:
        raise AssetLoadError(f"Brand mark at {label} has no pixels")
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return BrandMark(image=img, width=img.width, height=img.height)
