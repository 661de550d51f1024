"""CLI commands for searching and managing the audience catalog."""

import argparse
import json
import logging
import sys

from ..config.runtime import CatalogBackend, get_settings
from ..services.errors import SearchValidationError
from ..wiring import build_catalog_service, build_index_service, build_search_service, get_runtime


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def _filters_from_args(args: argparse.Namespace) -> dict:
    raw = {
        "segment_type": args.segment_type,
        "max_cpm": args.max_cpm,
        "actively_generated": args.actively_generated,
        "min_scale": args.min_scale,
    }
    return {k: v for k, v in raw.items() if v is not None}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"true", "1", "yes", "y"}:
        return True
    if lowered in {"false", "0", "no", "n"}:
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got {value!r}")


def cmd_search(args: argparse.Namespace) -> int:
    svc = build_search_service()
    try:
        result = svc.search(args.query, _filters_from_args(args))
    except SearchValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        for err in exc.errors:
            print(f"  - {err}", file=sys.stderr)
        return 2
    if args.json:
        _print_json(result.model_dump(mode="json"))
        return 0
    print(f"Query: {result.query}")
    print(f"Scored: {result.total_found}  method: {result.scoring_method}  confidence: {result.confidence}")
    for label, cards in (("Best fit", result.best_fit), ("High value", result.high_value), ("Related", result.related)):
        if not cards:
            continue
        print(f"\n{label}:")
        for card in cards:
            score = f"{card.score:5.1f}" if card.score is not None else "  n/a"
            print(f"  [{score}] {card.segment.segment_id}  {card.segment.name}  (CPM ${card.segment.cpm:.2f})")
            if card.relevance_reason:
                print(f"          {card.relevance_reason}")
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


def cmd_segment(args: argparse.Namespace) -> int:
    try:
        card = build_search_service().get_segment_details(args.segment_id)
    except SearchValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    if card is None:
        print(f"Error: segment not found: {args.segment_id}", file=sys.stderr)
        return 1
    _print_json(card.model_dump(mode="json"))
    return 0


def cmd_browse(args: argparse.Namespace) -> int:
    try:
        segments = build_catalog_service().browse(args.keyword, args.name, args.parent, args.tier, args.tier_value)
    except SearchValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    if args.json:
        _print_json([s.model_dump(mode="json") for s in segments])
        return 0
    for seg in segments:
        print(f"  {seg.segment_id}  {seg.name}  [{seg.segment_type.value}]  {seg.full_path}")
    print(f"{len(segments)} segment(s)")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    stats = build_catalog_service().stats()
    stats["cache"] = build_search_service().cache.stats()
    _print_json(stats)
    return 0


def cmd_reload(args: argparse.Namespace) -> int:
    result = build_catalog_service().reload()
    print(f"Reloaded {result['segments']} segments; purged {result['cache_purged']} cached responses.")
    return 0


def cmd_purge_cache(args: argparse.Namespace) -> int:
    cache = build_search_service().cache
    removed = cache.invalidate_all() if args.all else cache.purge_expired()
    print(f"Removed {removed} cache entries.")
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    """Index the CSV catalog into the Qdrant collection."""
    from ..adapters.csv_catalog import CsvSegmentCatalog

    settings = get_settings()
    path = args.file or settings.catalog_csv_path
    segments = CsvSegmentCatalog(path).list_segments()
    print(f"Indexing {len(segments)} segments from {path}...")
    svc = build_index_service()
    ensured = svc.ensure_collection()
    if ensured["created"]:
        print(f"Created collection: {ensured['name']}")
    count = svc.upsert_segments(segments)
    print(f"Successfully indexed {count} segments.")
    return 0


def cmd_similar(args: argparse.Namespace) -> int:
    """Nearest indexed segments by embedding similarity (Qdrant backend)."""
    hits = build_index_service().similar_segments(args.text, args.limit)
    if args.json:
        _print_json([{"score": score, "segment": seg.model_dump(mode="json")} for seg, score in hits])
        return 0
    for seg, score in hits:
        print(f"  [{score:.3f}] {seg.segment_id}  {seg.name}")
    print(f"{len(hits)} segment(s)")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    settings = get_settings()
    runtime = get_runtime(settings)
    print(f"Generator: {settings.gemini_model if runtime.generator.available else 'disabled (keyword fallback only)'}")
    print(f"Cache: {'disabled' if not runtime.cache.enabled else settings.cache_backend.value}")
    if settings.catalog_backend != CatalogBackend.qdrant:
        print(f"Catalog backend: csv ({settings.catalog_csv_path})")
        return 0
    info = build_index_service().collection_info()
    print(f"Collection: {info['name']}")
    print(f"Status: {info['status']}")
    print(f"Points count: {info['points_count']}")
    print(f"Indexed vectors count: {info['indexed_vectors_count']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search and manage the audience segment catalog")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    search_parser = subparsers.add_parser("search", help="Find segments for a campaign description")
    search_parser.add_argument("query", help="Campaign description")
    search_parser.add_argument("--segment-type", default=None, help="'commerce_audience' or 'interest'")
    search_parser.add_argument("--max-cpm", type=float, default=None, help="Price ceiling (USD CPM)")
    search_parser.add_argument("--actively-generated", type=_parse_bool, default=None, help="true or false")
    search_parser.add_argument("--min-scale", type=float, default=None, help="Minimum reach")
    search_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    search_parser.set_defaults(func=cmd_search)

    segment_parser = subparsers.add_parser("segment", help="Show one segment with insights")
    segment_parser.add_argument("segment_id")
    segment_parser.set_defaults(func=cmd_segment)

    browse_parser = subparsers.add_parser("browse", help="List catalog segments without scoring")
    selector = browse_parser.add_mutually_exclusive_group(required=True)
    selector.add_argument("--keyword", default=None, help="Substring of name, description or path")
    selector.add_argument("--name", default=None, help="Exact segment name (case-insensitive)")
    selector.add_argument("--parent", default=None, help="List children of this segment id")
    selector.add_argument("--tier", type=int, default=None, help="Taxonomy depth (1-6)")
    browse_parser.add_argument("--tier-value", default=None, help="Tier label to match with --tier")
    browse_parser.add_argument("--json", action="store_true", help="Print segments as JSON")
    browse_parser.set_defaults(func=cmd_browse)

    subparsers.add_parser("stats", help="Catalog and cache statistics").set_defaults(func=cmd_stats)
    subparsers.add_parser("reload", help="Reload the catalog and drop cached responses").set_defaults(func=cmd_reload)

    purge_parser = subparsers.add_parser("purge-cache", help="Delete expired cache entries")
    purge_parser.add_argument("--all", action="store_true", help="Delete every entry, not only expired ones")
    purge_parser.set_defaults(func=cmd_purge_cache)

    seed_parser = subparsers.add_parser("seed", help="Index the CSV catalog into Qdrant")
    seed_parser.add_argument("--file", default=None, help="Taxonomy CSV (default: CATALOG_CSV_PATH)")
    seed_parser.set_defaults(func=cmd_seed)

    similar_parser = subparsers.add_parser("similar", help="Nearest indexed segments by embedding (Qdrant)")
    similar_parser.add_argument("text", help="Free text to embed and match")
    similar_parser.add_argument("--limit", type=int, default=10, help="Number of segments (default: 10)")
    similar_parser.add_argument("--json", action="store_true", help="Print hits as JSON")
    similar_parser.set_defaults(func=cmd_similar)

    subparsers.add_parser("info", help="Show catalog backend information").set_defaults(func=cmd_info)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
