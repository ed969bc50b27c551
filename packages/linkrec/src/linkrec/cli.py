"""CLI for classifying incoming rows against an existing record collection."""

import argparse

import structlog

from linkrec.classifier import Classifier
from linkrec.config import ClassifierConfig, EngineConfig
from linkrec.groups import has_valid_exact_rule
from linkrec.io import (
    load_configuration,
    load_schema,
    read_records,
    read_rows,
    write_changes,
    write_results,
)
from linkrec.logging import configure_logging
from linkrec.materialize import prepare_changes
from linkrec.types import BUCKETS, ClassificationResult


def _run_classification(args: argparse.Namespace) -> tuple:
    log = structlog.get_logger()
    schema = load_schema(args.schema)
    rules = load_configuration(args.config)
    rows = read_rows(args.rows)
    records = read_records(args.records, schema, id_column=args.id_column)
    log.info("files_loaded", rows=len(rows), records=len(records))

    if not has_valid_exact_rule(rules, schema):
        log.warning("no_valid_exact_rule")

    config = EngineConfig(classifier=ClassifierConfig(max_workers=args.workers))
    result = Classifier(config).classify(rows, records, schema, rules)
    return result, rules, schema


def _show(result: ClassificationResult) -> None:
    for bucket in BUCKETS:
        items = result.bucket(bucket)
        print(f"=== {bucket} ({len(items)}) ===")
        for item in items:
            label = item.row.get("name") or item.row.get("Name") or f"row {item.row_index}"
            if item.record is not None:
                score = "" if item.similarity is None else f" {item.similarity:.0%}"
                print(f"  {label} -> {item.record.name or item.record.id}{score}")
            else:
                print(f"  {label}")


def cmd_classify(args: argparse.Namespace) -> None:
    result, _, _ = _run_classification(args)
    if args.output:
        write_results(result, args.output)
        print(f"Wrote {result.total} rows -> {args.output}")
    if args.show or not args.output:
        _show(result)


def cmd_materialize(args: argparse.Namespace) -> None:
    result, rules, schema = _run_classification(args)
    changes = prepare_changes(result, rules, schema)
    write_changes(changes, args.output)
    print(
        f"{len(changes.links)} links, {len(changes.creates)} new records, "
        f"{changes.unresolved} need review -> {args.output}"
    )


def cmd_serve(args: argparse.Namespace) -> None:
    """Launch the HTTP service over a fixed record collection."""
    import uvicorn

    from linkrec.server import create_app

    log = structlog.get_logger()
    schema = load_schema(args.schema)
    records = read_records(args.records, schema, id_column=args.id_column)
    log.info("serve_start", records=len(records), port=args.port)
    app = create_app(records, schema, workers=args.workers)
    uvicorn.run(app, host=args.host, port=args.port, log_level="warning")


def _add_input_args(parser: argparse.ArgumentParser, rows: bool = True) -> None:
    if rows:
        parser.add_argument("--rows", required=True, help="Incoming rows (CSV, JSON, JSONL or XLSX)")
        parser.add_argument("--config", required=True, help="Matching configuration JSON")
    parser.add_argument("--records", required=True, help="Existing target records")
    parser.add_argument("--schema", required=True, help="Target schema JSON")
    parser.add_argument("--id-column", default="id", help="Record id column (default: id)")
    parser.add_argument("--workers", type=int, default=1, help="Rows classified in parallel (default: 1)")


def main() -> None:
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level (default: INFO)",
    )

    parser = argparse.ArgumentParser(
        description="Match incoming rows against existing records",
        parents=[parent_parser],
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    classify_parser = subparsers.add_parser("classify", parents=[parent_parser], help="Classify rows")
    _add_input_args(classify_parser)
    classify_parser.add_argument("--output", help="Results file (.csv or .jsonl)")
    classify_parser.add_argument("--show", action="store_true", help="Display buckets on screen")
    classify_parser.set_defaults(func=cmd_classify)

    materialize_parser = subparsers.add_parser(
        "materialize", parents=[parent_parser], help="Prepare links and new-record payloads"
    )
    _add_input_args(materialize_parser)
    materialize_parser.add_argument("--output", default="changes.json", help="Change set JSON path")
    materialize_parser.set_defaults(func=cmd_materialize)

    serve_parser = subparsers.add_parser("serve", parents=[parent_parser], help="Run the HTTP service")
    _add_input_args(serve_parser, rows=False)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8765, help="Server port (default: 8765)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
