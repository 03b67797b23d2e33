"""CLI entry point for owl-reasoning.

Usage:
    # Check a snapshot; exits 1 when errors are found
    python -m owl_reasoning validate ontology.json

    # Explicit plus inferred relations
    python -m owl_reasoning classify ontology.yaml
    python -m owl_reasoning classify ontology.yaml --inferred-only

    # DL query
    python -m owl_reasoning query ontology.json "teaches some Course" --mode instances

    # Structural metrics
    python -m owl_reasoning metrics ontology.json

Snapshots may be JSON or YAML. Results are printed as JSON on stdout.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import yaml


def _load_snapshot(path: str) -> dict[str, Any]:
    """Read a snapshot file (JSON or YAML, chosen by extension)."""
    source = Path(path)
    if not source.exists():
        print(f"Error: Path not found: {source}", file=sys.stderr)
        sys.exit(2)

    text = source.read_text(encoding="utf-8")
    if source.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text) or {}


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _reasoner():
    from .reasoner import Reasoner

    return Reasoner()


def _cmd_validate(args: argparse.Namespace) -> int:
    """Run the consistency checker."""
    result = _reasoner().validate(_load_snapshot(args.snapshot))
    _print_json(result.to_dict())
    return 0 if result.is_valid else 1


def _cmd_classify(args: argparse.Namespace) -> int:
    """Classify and print explicit plus inferred relations."""
    result = _reasoner().classify_and_infer(_load_snapshot(args.snapshot))
    relations = result.inferred if args.inferred_only else result.relations
    _print_json([r.model_dump(mode="json", by_alias=True) for r in relations])
    return 0


def _cmd_query(args: argparse.Namespace) -> int:
    """Answer a DL query; prints ids, or labels with --labels."""
    from .query import QueryMode

    reasoner = _reasoner()
    snapshot = _load_snapshot(args.snapshot)
    ids = reasoner.query(snapshot, args.expression, QueryMode(args.mode))
    if args.labels:
        index = reasoner.classified_index(snapshot)
        _print_json([index.label(i) for i in ids])
    else:
        _print_json(ids)
    return 0


def _cmd_metrics(args: argparse.Namespace) -> int:
    """Print structural metrics."""
    _print_json(_reasoner().metrics(_load_snapshot(args.snapshot)).to_dict())
    return 0


def main(argv: list[str] | None = None) -> int:
    from .config import get_settings
    from .errors import ReasonerError
    from .log import setup_logging

    parser = argparse.ArgumentParser(
        prog="owl_reasoning",
        description="Consistency checking, classification and DL queries for ontology snapshots",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for stderr output (default: OWL_REASONER_LOG_LEVEL or WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # validate
    validate_parser = subparsers.add_parser("validate", help="Check a snapshot for problems")
    validate_parser.add_argument("snapshot", help="Path to a JSON or YAML snapshot")

    # classify
    classify_parser = subparsers.add_parser("classify", help="Materialize inferred relations")
    classify_parser.add_argument("snapshot", help="Path to a JSON or YAML snapshot")
    classify_parser.add_argument(
        "--inferred-only",
        action="store_true",
        help="Print only the newly inferred relations",
    )

    # query
    query_parser = subparsers.add_parser("query", help="Answer a DL query")
    query_parser.add_argument("snapshot", help="Path to a JSON or YAML snapshot")
    query_parser.add_argument("expression", help="Class expression or meta-query")
    query_parser.add_argument(
        "--mode",
        default="instances",
        choices=["subclasses", "superclasses", "instances", "equivalent"],
        help="What to return (default: instances)",
    )
    query_parser.add_argument(
        "--labels",
        action="store_true",
        help="Print labels instead of entity ids",
    )

    # metrics
    metrics_parser = subparsers.add_parser("metrics", help="Structural metrics")
    metrics_parser.add_argument("snapshot", help="Path to a JSON or YAML snapshot")

    args = parser.parse_args(argv)
    setup_logging(args.log_level or get_settings().log_level)

    commands = {
        "validate": _cmd_validate,
        "classify": _cmd_classify,
        "query": _cmd_query,
        "metrics": _cmd_metrics,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 2

    try:
        return command(args)
    except ReasonerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        print(f"Error: could not read snapshot: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
