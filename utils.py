import hashlib
import re


def safe_filename_stem(name: str, fallback: str = "attendee") -> str:
    """
    Convert a display name into a file-system safe stem (no extension).
    - Uses only letters/numbers/spaces/_/-
    - Collapses whitespace to underscores
    - Falls back to `fallback`
    """
    raw = "" if name is None else str(name)
    safe = re.sub(r"[^A-Za-z0-9 _-]+", "", raw).strip()
    safe = re.sub(r"\s+", "_", safe)
    if not safe:
        safe = fallback
    return safe


def single_line(text: str) -> str:
    """Collapse line breaks, tabs and runs of spaces into single spaces."""
    return " ".join(("" if text is None else str(text)).split())


def short_hash(value: str) -> str:
    return hashlib.sha1(str(value).encode("utf-8")).hexdigest()[:8]


def card_entry_name(display_name: str, record_id: str) -> str:
    """
    Archive entry name for one card: display name first (what people look
    for), record id second so two attendees sharing a name never collide.
    A hash of the raw id is added when sanitizing had to change it.
    """
    stem = safe_filename_stem(single_line(display_name))
    raw_id = "" if record_id is None else str(record_id)
    rid = safe_filename_stem(raw_id, fallback="")
    if rid != raw_id:
        rid = f"{rid}_{short_hash(raw_id)}" if rid else short_hash(raw_id)
    if rid == stem:
        return f"{stem}.png"
    return f"{stem}_{rid}.png"


def archive_filename(base: str, event_id: str = "") -> str:
    """`bulk-qr-codes.zip` -> `bulk-qr-codes_<event>.zip` when an event id is given."""
    suffix = safe_filename_stem(event_id, fallback="")
    if not suffix:
        return base
    stem, dot, ext = base.rpartition(".")
    if not dot:
        return f"{base}_{suffix}"
    return f"{stem}_{suffix}.{ext}"
