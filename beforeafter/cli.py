"""Command-line interface for before/after records.

Settings can be given in a YAML file (--config / BEFOREAFTER_CONFIG) and
overridden by environment variables:
    BEFOREAFTER_MAX_DIMENSION, BEFOREAFTER_JPEG_QUALITY, BEFOREAFTER_MAX_FILE_SIZE,
    BEFOREAFTER_GRID_SIZE, BEFOREAFTER_MAX_WORKERS, BEFOREAFTER_DATABASE,
    BEFOREAFTER_LOG_LEVEL
"""

import argparse
import sys
from pathlib import Path

from .config import ConfigError, Settings, configure_logging, load_settings
from .core.errors import ImageProcessingError, RecordValidationError
from .core.models import BeforeAfterRecord, RawImageInput, SortOrder
from .core.normalizer import ImageNormalizer
from .core.pipeline import RecordPipeline
from .core.reveal import compose_reveal_from_urls
from .core.scorer import ChangeScorer
from .storage.database import RecordDatabase
from .storage.exchange import (
    AutoSaveTarget,
    RecordImportError,
    default_export_filename,
    export_records,
    import_records,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def fail(message: str):
    print(f"Error: {message}")
    sys.exit(1)


def read_inputs(paths: list[str]) -> list[RawImageInput]:
    inputs = []
    for p in paths:
        path = Path(p)
        if not path.is_file():
            fail(f"{path} does not exist")
        inputs.append(RawImageInput.from_path(path))
    return inputs


def resolve_record(db: RecordDatabase, id_prefix: str) -> BeforeAfterRecord:
    """Find exactly one record by full id or unique id prefix."""
    record = db.get_by_id(id_prefix)
    if record:
        return record
    matches = db.search_by_prefix(id_prefix)
    if not matches:
        fail(f"no record matching id: {id_prefix}")
    if len(matches) > 1:
        fail(f"id prefix '{id_prefix}' matches {len(matches)} records, be more specific")
    return matches[0]


def auto_save(args, db: RecordDatabase) -> None:
    if args.auto_save:
        target = AutoSaveTarget(args.auto_save)
        if target.save(db.list_all()):
            print(f"Auto-saved to {target.path}")


def format_score(record: BeforeAfterRecord) -> str:
    return f"{record.change_score}%" if record.change_score is not None else "-"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def add(args, settings: Settings):
    """Create a record from before/after image files."""
    db = RecordDatabase(args.database)
    pipeline = RecordPipeline.from_settings(settings, progress=True)

    before = read_inputs(args.before)
    after = read_inputs(args.after or [])
    try:
        record = pipeline.create_record(args.title, before, after, record_date=args.date)
    except (RecordValidationError, ImageProcessingError) as e:
        fail(str(e))

    db.add_record(record)
    print(f"Added: {record.title} (id: {record.id})")
    print(f"  Images: {len(record.before)} before, {len(record.after)} after")
    print(f"  Change score: {format_score(record)}")
    auto_save(args, db)


def list_records(args, settings: Settings):
    """List records, optionally filtered by title."""
    db = RecordDatabase(args.database)
    records = db.search(args.search or "", SortOrder(args.sort))

    if not records:
        print("No records found")
        return

    print(f"{'Id':<14} {'Date':<12} {'Score':>6} {'Pairs':>6}  Title")
    print("-" * 72)
    for r in records:
        print(f"{r.id[:12]}.. {r.date:<12} {format_score(r):>6} {r.pair_count:>6}  {r.title}")
    print(f"\nTotal: {len(records)} record(s)")


def show(args, settings: Settings):
    """Show one record."""
    db = RecordDatabase(args.database)
    record = resolve_record(db, args.id)

    print(f"Id:       {record.id}")
    print(f"  Title:    {record.title}")
    print(f"  Date:     {record.date}")
    print(f"  Score:    {format_score(record)}")
    print(f"  Before:   {len(record.before)} image(s)")
    print(f"  After:    {len(record.after)} image(s)")
    for i, image in enumerate(record.before):
        paired = "paired" if i < len(record.after) else "no after image"
        print(f"    [{i}] {len(image)} chars ({paired})")


def edit(args, settings: Settings):
    """Change title and/or date of a record."""
    if args.title is None and args.date is None:
        fail("nothing to change, pass --title and/or --date")
    db = RecordDatabase(args.database)
    record = resolve_record(db, args.id)
    try:
        updated = db.update_record(record.id, title=args.title, date=args.date)
    except RecordValidationError as e:
        fail(str(e))
    print(f"Updated: {updated.title} ({updated.date})")
    auto_save(args, db)


def delete(args, settings: Settings):
    """Delete a record."""
    db = RecordDatabase(args.database)
    record = resolve_record(db, args.id)
    db.delete_by_id(record.id)
    print(f"Deleted: {record.title} (id: {record.id})")
    auto_save(args, db)


def export(args, settings: Settings):
    """Export all records to a JSON file."""
    db = RecordDatabase(args.database)
    output = Path(args.output or default_export_filename())
    records = db.list_all()
    export_records(records, output)
    print(f"Exported {len(records)} record(s) to {output}")


def import_(args, settings: Settings):
    """Import records from a JSON file, skipping ids already present."""
    db = RecordDatabase(args.database)
    try:
        result = import_records(args.path)
    except RecordImportError as e:
        fail(str(e))

    if result.skipped:
        print(f"Warning: {result.skipped} invalid record(s) skipped")
    added = db.merge_records(result.records)
    print(f"Imported {added} new record(s). Total in database: {db.count()}")
    auto_save(args, db)


def compare(args, settings: Settings):
    """Normalize two image files and print their change score."""
    normalizer = ImageNormalizer(settings.max_dimension, settings.jpeg_quality,
                                 settings.max_file_size)
    scorer = ChangeScorer(args.grid or settings.grid_size)
    before, after = read_inputs([args.before, args.after])
    try:
        score = scorer.score(normalizer.normalize(before), normalizer.normalize(after))
    except ImageProcessingError as e:
        fail(str(e))
    print(f"Change score: {score}%")


def normalize(args, settings: Settings):
    """Print (or write) the normalized data URL of an image file."""
    normalizer = ImageNormalizer(settings.max_dimension, settings.jpeg_quality,
                                 settings.max_file_size)
    raw = read_inputs([args.path])[0]
    try:
        data_url = normalizer.normalize(raw)
    except ImageProcessingError as e:
        fail(str(e))

    if args.output:
        Path(args.output).write_text(data_url, encoding="utf-8")
        print(f"Wrote {len(data_url)} chars to {args.output}")
    else:
        print(data_url)


def reveal(args, settings: Settings):
    """Render a before/after pair split at a slider position."""
    db = RecordDatabase(args.database)
    record = resolve_record(db, args.id)
    if not 0 <= args.pair < len(record.before):
        fail(f"record has {len(record.before)} pair(s), got --pair {args.pair}")

    after = record.after[args.pair] if args.pair < len(record.after) else None
    try:
        image = compose_reveal_from_urls(record.before[args.pair], after, args.position)
    except ImageProcessingError as e:
        fail(str(e))
    try:
        image.save(args.output)
    except (OSError, ValueError) as e:
        fail(f"could not write {args.output}: {e}")
    print(f"Saved reveal at {args.position:g}% to {args.output}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Before/After records - normalize images, score changes, manage records",
    )
    parser.add_argument(
        "--database", "-d",
        default=None,
        help="Path to SQLite database (default: data/records.db)",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to YAML settings file")
    parser.add_argument(
        "--auto-save",
        metavar="JSON_FILE",
        default=None,
        help="Rewrite the whole collection to this file after every change",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- add ---
    add_parser = subparsers.add_parser("add", help="Create a record from before/after images")
    add_parser.add_argument("title", help="Record title")
    add_parser.add_argument("--before", "-b", nargs="+", required=True, help="Before image files")
    add_parser.add_argument("--after", "-a", nargs="+", help="After image files (same order)")
    add_parser.add_argument("--date", help="Record date YYYY-MM-DD (default: today)")
    add_parser.set_defaults(func=add)

    # --- list ---
    list_parser = subparsers.add_parser("list", help="List records")
    list_parser.add_argument("--search", "-s", help="Filter by title (case-insensitive)")
    list_parser.add_argument(
        "--sort",
        choices=[o.value for o in SortOrder],
        default=SortOrder.NEWEST_FIRST.value,
        help="Sort by date (default: newest)",
    )
    list_parser.set_defaults(func=list_records)

    # --- show ---
    show_parser = subparsers.add_parser("show", help="Show a record")
    show_parser.add_argument("id", help="Record id or unique id prefix")
    show_parser.set_defaults(func=show)

    # --- edit ---
    edit_parser = subparsers.add_parser("edit", help="Change title or date of a record")
    edit_parser.add_argument("id", help="Record id or unique id prefix")
    edit_parser.add_argument("--title", "-t", help="New title")
    edit_parser.add_argument("--date", help="New date YYYY-MM-DD")
    edit_parser.set_defaults(func=edit)

    # --- delete ---
    delete_parser = subparsers.add_parser("delete", help="Delete a record")
    delete_parser.add_argument("id", help="Record id or unique id prefix")
    delete_parser.set_defaults(func=delete)

    # --- export ---
    export_parser = subparsers.add_parser("export", help="Export records to JSON")
    export_parser.add_argument(
        "output",
        nargs="?",
        help="Output JSON file (default: before-after-records-<today>.json)",
    )
    export_parser.set_defaults(func=export)

    # --- import ---
    import_parser = subparsers.add_parser("import", help="Import records from JSON")
    import_parser.add_argument("path", help="JSON file to import")
    import_parser.set_defaults(func=import_)

    # --- compare ---
    compare_parser = subparsers.add_parser("compare", help="Change score of two image files")
    compare_parser.add_argument("before", help="Before image file")
    compare_parser.add_argument("after", help="After image file")
    compare_parser.add_argument("--grid", "-g", type=int, help="Comparison grid size (default: 64)")
    compare_parser.set_defaults(func=compare)

    # --- normalize ---
    normalize_parser = subparsers.add_parser("normalize", help="Normalize an image to a data URL")
    normalize_parser.add_argument("path", help="Image file")
    normalize_parser.add_argument("--output", "-o", help="Write the data URL to this file")
    normalize_parser.set_defaults(func=normalize)

    # --- reveal ---
    reveal_parser = subparsers.add_parser("reveal", help="Render a before/after split image")
    reveal_parser.add_argument("id", help="Record id or unique id prefix")
    reveal_parser.add_argument("--pair", "-p", type=int, default=0, help="Pair index (default: 0)")
    reveal_parser.add_argument(
        "--position",
        type=float,
        default=50.0,
        help="Split position in percent (default: 50)",
    )
    reveal_parser.add_argument("--output", "-o", required=True, help="Output image file")
    reveal_parser.set_defaults(func=reveal)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        fail(str(e))

    configure_logging("DEBUG" if args.verbose else settings.log_level)
    if args.database is None:
        args.database = settings.database
    args.func(args, settings)


if __name__ == "__main__":
    main()
