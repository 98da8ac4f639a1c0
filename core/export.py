# core/export.py
import csv
import datetime
import io
import json
import os
from pathlib import Path
from typing import Sequence

import pytz

from .errors import ExportError
from .logger import get_logger
from .models import WishlistRecord

logger = get_logger(__name__)

CSV_HEADERS = ["Item Name", "ASIN", "Price", "URL", "Image URL"]
FILENAME_PREFIX = "amazon-wishlist"
FORMATS = ("csv", "json")

OUTPUT_DIR = os.getenv("OUTPUT_DIR", "exports")


def safe_name(name: str) -> str:
    """Normalize arbitrary wishlist names/IDs to be filesystem-safe."""
    return "".join(ch if ch.isalnum() or ch in "._-" else "_" for ch in name)


def today_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).date().isoformat()


def export_filename(fmt: str, date: str | None = None) -> str:
    return f"{FILENAME_PREFIX}-{date or today_utc_iso()}.{fmt}"


def _require_items(records: Sequence[WishlistRecord]) -> None:
    if not records:
        raise ExportError("No items to export")


def to_csv(records: Sequence[WishlistRecord]) -> str:
    """
    Render records as CSV text.

    Fields containing a comma, quote or newline are quoted and embedded
    quotes doubled; everything else is written bare.
    """
    _require_items(records)
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for r in records:
        writer.writerow([r.name, r.asin, r.price, r.url, r.image])
    return buf.getvalue()


def to_json(records: Sequence[WishlistRecord]) -> str:
    _require_items(records)
    return json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)


RENDERERS = {
    "csv": to_csv,
    "json": to_json,
}


def write_export(
    records: Sequence[WishlistRecord],
    fmt: str,
    out_dir: str | Path = OUTPUT_DIR,
    date: str | None = None,
) -> Path:
    """Write records to out_dir in the given format and return the file path."""
    fmt = fmt.strip().lower()
    renderer = RENDERERS.get(fmt)
    if renderer is None:
        raise ExportError(f"Unsupported export format '{fmt}'")

    content = renderer(records)

    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)
    path = out_path / export_filename(fmt, date)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)

    logger.info("Exported %d items to %s", len(records), path)
    return path
