#!/usr/bin/env python3
"""
Bulk QR Card Generator
Generates one PNG card per attendee (QR code of the attendee id, logo in the
middle, name underneath) and bundles them into a single ZIP.
Attendees come from a CSV/Excel export or straight from Firestore.
"""

from __future__ import annotations

import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from archive import ArchiveBuilder
from branding import BrandMark, MarkSource, load_brand_mark
from compositor import ComposedCard, compose_card
from config import (
    ARCHIVE_NAME,
    LABEL_SIDE_MARGIN_PX,
    MAX_FONT_SIZE_PX,
    MIN_FONT_SIZE_PX,
    QR_SIZE_PX,
    ZIP_SPOOL_MAX_BYTES,
)
from data_loaders import AttendeeRecord, DataFrameAttendeeSource, FirestoreAttendeeSource
from errors import BatchCancelledError, BatchError, BatchFailedError, CodeEncodingError
from fonts import TextSurface
from label_fit import fit_label
from qr_codes import encode_qr
from utils import archive_filename, short_hash

_T0 = time.perf_counter()


def _log(msg: str) -> None:
    print(f"[batch] +{time.perf_counter() - _T0:.3f}s {msg}", flush=True)


@dataclass
class BatchResult:
    success_count: int
    archive_bytes: Optional[bytes]
    archive_name: str = ARCHIVE_NAME
    failures: List[Tuple[str, str]] = field(default_factory=list)  # (record id, message)
    previews: List[ComposedCard] = field(default_factory=list)

    @property
    def nothing_to_generate(self) -> bool:
        return self.success_count == 0 and self.archive_bytes is None


class BulkQRGenerator:
    """Composes one card per attendee and packs them into a ZIP."""

    def __init__(
        self,
        brand_mark: BrandMark,
        encoder: Callable[[str, int], object] = encode_qr,
        surface: Optional[TextSurface] = None,
        abort_on_first_error: bool = True,
        should_cancel: Optional[Callable[[], bool]] = None,
        on_progress: Optional[Callable[[int, int, AttendeeRecord], None]] = None,
        archive_name: str = ARCHIVE_NAME,
        keep_previews: int = 0,
        qr_size: int = QR_SIZE_PX,
        max_font_size: int = MAX_FONT_SIZE_PX,
        min_font_size: int = MIN_FONT_SIZE_PX,
        spool_max_bytes: int = ZIP_SPOOL_MAX_BYTES,
    ):
        """
        Initialize the generator.

        Args:
            brand_mark: Logo loaded once for this batch (see branding.load_brand_mark)
            encoder: encode(payload, size_px) -> square QR raster
            surface: Text measuring surface; a fresh one is made per batch when None
            abort_on_first_error: True = all-or-nothing; False = skip failing attendees
            should_cancel: Checked between attendees; True stops the batch
            on_progress: Called with (done, total, record) after each attendee, skipped or not
            archive_name: Suggested download name for the ZIP
            keep_previews: Keep the first N composed cards on the result (UI previews)
        """
        self.brand_mark = brand_mark
        self.encoder = encoder
        self.surface = surface
        self.abort_on_first_error = abort_on_first_error
        self.should_cancel = should_cancel
        self.on_progress = on_progress
        self.archive_name = archive_name
        self.keep_previews = keep_previews
        self.qr_size = qr_size
        self.max_font_size = max_font_size
        self.min_font_size = min_font_size
        self.spool_max_bytes = spool_max_bytes

    def create_card(self, record: AttendeeRecord, surface: TextSurface) -> ComposedCard:
        """QR code -> label fit -> composite, for one attendee."""
        try:
            code_raster = self.encoder(record.id, self.qr_size)
        except CodeEncodingError as e:
            if e.record_id != record.id:
                raise CodeEncodingError(str(e), record_id=record.id) from e
            raise
        layout = fit_label(
            record.display_name,
            self.qr_size - LABEL_SIDE_MARGIN_PX,
            self.max_font_size,
            self.min_font_size,
            surface,
        )
        return compose_card(record, self.brand_mark, code_raster, layout, surface, qr_size=self.qr_size)

    def run_batch(self, records: Iterable[AttendeeRecord]) -> BatchResult:
        """
        Generate cards for all records, strictly in order.

        Returns:
            BatchResult; `archive_bytes` is None when there was nothing to generate

        Raises:
            BatchFailedError: a record failed (fail-fast), or every record failed
            BatchCancelledError: should_cancel() returned True between records
        """
        records = list(records)
        total = len(records)
        if total == 0:
            _log("no attendees; nothing to generate")
            return BatchResult(0, None, self.archive_name)

        seen = set()
        for rec in records:
            if rec.id in seen:
                raise BatchFailedError(
                    f"Attendee id {rec.id} appears more than once in this batch",
                    record_id=rec.id,
                    attempted=total,
                )
            seen.add(rec.id)

        surface = self.surface if self.surface is not None else TextSurface()
        archive = ArchiveBuilder(spool_max_bytes=self.spool_max_bytes)
        failures: List[Tuple[str, str]] = []
        previews: List[ComposedCard] = []
        used_names = set()
        last_error: Optional[BaseException] = None
        _log(f"generating {total} card(s)")

        for i, record in enumerate(records):
            if self.should_cancel is not None and self.should_cancel():
                raise BatchCancelledError(
                    f"Cancelled after {len(archive)} of {total} QR codes", completed=len(archive)
                )
            try:
                card = self.create_card(record, surface)
            except Exception as e:
                if self.abort_on_first_error:
                    _log(f"failed on {record.id} ({i + 1}/{total}): {e}")
                    raise BatchFailedError(
                        f"Failed on attendee {record.id} ({record.display_name}), "
                        f"{i + 1} of {total}: {e}",
                        record_id=record.id,
                        attempted=total,
                        completed=len(archive),
                        cause=e,
                    ) from e
                _log(f"skipping {record.id}: {e}")
                failures.append((record.id, str(e)))
                last_error = e
                if self.on_progress is not None:
                    self.on_progress(i + 1, total, record)
                continue

            filename = card.filename
            if filename in used_names:
                stem = filename.rsplit(".", 1)[0]
                filename = f"{stem}_{short_hash(record.id)}.png"
            used_names.add(archive.add(filename, card.image_bytes))
            if len(previews) < self.keep_previews:
                previews.append(card)
            if self.on_progress is not None:
                self.on_progress(i + 1, total, record)

        if len(archive) == 0:
            raise BatchFailedError(
                f"None of the {total} QR codes could be generated: {last_error}",
                record_id=failures[0][0] if failures else None,
                attempted=total,
                cause=last_error,
            ) from last_error

        success_count = len(archive)
        archive_bytes = archive.finalize()
        _log(f"generated {success_count}/{total} card(s)")
        return BatchResult(success_count, archive_bytes, self.archive_name, failures, previews)


def generate_batch(
    event_id: str,
    source,
    mark_source: MarkSource,
    **generator_kwargs,
) -> BatchResult:
    """
    Full pipeline for one event: load the logo once, list attendees, run the batch.

    `source` is anything with list_attendees(event_id) (see data_loaders).
    Raises BatchError subclasses; nothing is returned for a failed batch.
    """
    if not (event_id or "").strip():
        raise ValueError("No event selected.")
    brand_mark = load_brand_mark(mark_source)
    _log(f"loaded brand mark {brand_mark.width}x{brand_mark.height}")
    records = source.list_attendees(event_id)
    _log(f"found {len(records)} attendee(s) for event {event_id}")
    generator_kwargs.setdefault("archive_name", archive_filename(ARCHIVE_NAME, event_id))
    generator = BulkQRGenerator(brand_mark, **generator_kwargs)
    return generator.run_batch(records)


def _parse_args(argv: Optional[Sequence[str]] = None):
    import argparse

    parser = argparse.ArgumentParser(description="Generate QR cards for every attendee of an event and zip them")
    parser.add_argument("-e", "--event", required=True, help="Event id to generate cards for")
    parser.add_argument("-d", "--data", help="CSV/Excel export with ID, Name, Event ID, Status columns")
    parser.add_argument("--sheet", default="Sheet1", help="Excel sheet name (default: Sheet1)")
    parser.add_argument("--project", default=os.environ.get("FIRESTORE_PROJECT_ID"), help="Firestore project id")
    parser.add_argument("--tenant", default=os.environ.get("TENANT_ID"), help="Tenant id (tenants/<tenant>/users)")
    parser.add_argument("--api-key", default=os.environ.get("FIRESTORE_API_KEY"), help="Firestore web API key")
    parser.add_argument("--id-token", default=os.environ.get("FIRESTORE_ID_TOKEN"), help="Firebase ID token")
    parser.add_argument("-m", "--mark", required=True, help="Logo image path or URL")
    parser.add_argument("-o", "--output", help="Output ZIP path (default: bulk-qr-codes_<event>.zip)")
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Skip attendees that fail instead of aborting the whole batch",
    )
    args = parser.parse_args(argv)
    if not args.data and not (args.project and args.tenant):
        parser.error("give --data, or --project and --tenant for Firestore")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = _parse_args(argv)
    try:
        if args.data:
            source = DataFrameAttendeeSource.from_path(args.data, sheet=args.sheet)
        else:
            source = FirestoreAttendeeSource(args.project, args.tenant, api_key=args.api_key, id_token=args.id_token)
        result = generate_batch(
            args.event,
            source,
            args.mark,
            abort_on_first_error=not args.keep_going,
        )
    except (BatchError, ValueError) as e:
        print(f"Failed to generate QR codes. {e}", file=sys.stderr)
        return 1

    if result.nothing_to_generate:
        print("No users found for the selected event.")
        return 0

    out_path = Path(args.output or result.archive_name)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(result.archive_bytes)
    for record_id, message in result.failures:
        print(f"Skipped {record_id}: {message}", file=sys.stderr)
    print(f"Successfully generated {result.success_count} QR codes -> {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
