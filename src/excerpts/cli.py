#!/usr/bin/env python3
"""
CLI for the excerpts retrieval engine.

Usage:
    excerpts --help
    excerpts query "how do solar panels work" --documents docs.jsonl
    excerpts query "solar efficiency" --documents a.json --documents b.jsonl --json
    excerpts chunk article.txt --title "Solar power"
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .contracts.retrieval_contracts import Document
from .core.config import EngineConfig
from .core.exceptions import ExcerptsError
from .core.logging import configure_logging
from .retrieval.chunker import Chunker
from .retrieval.session import ContextSession

logger = logging.getLogger(__name__)


def load_documents(path: Path) -> List[Document]:
    """
    Load documents from a JSON list or a JSONL file.

    Each record needs url and content; title and origin are optional.
    """
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()

    records: List[Dict[str, Any]]
    stripped = text.lstrip()
    if stripped.startswith("["):
        records = json.loads(text)
    else:
        records = [json.loads(line) for line in text.splitlines() if line.strip()]

    return [Document.from_dict(record) for record in records]


def cmd_query(args: argparse.Namespace) -> int:
    """Run one query session and print the context."""
    config = EngineConfig.load(args.config)

    documents: List[Document] = []
    for path in args.documents:
        documents.extend(load_documents(Path(path)))
    logger.info(f"Loaded {len(documents)} documents from {len(args.documents)} files")

    result = ContextSession(config).run(args.query, documents, limit=args.limit)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.found:
        print(result.context)
        print(
            f"\n(Provided {round(result.coverage_ratio * 100)}% of source content "
            f"from {result.source_count} sources)",
            file=sys.stderr,
        )
    else:
        print(f"No relevant content found ({result.reason.value})", file=sys.stderr)

    return 0 if result.found else 1


def cmd_chunk(args: argparse.Namespace) -> int:
    """Print the chunks produced for a text file."""
    config = EngineConfig.load(args.config)
    content = Path(args.file).read_text(encoding="utf-8")

    chunks = Chunker(config.chunking).chunk(content, args.title or "")

    print(f"\n{len(chunks)} chunks from {args.file}")
    print("=" * 50)
    for i, chunk in enumerate(chunks):
        print(f"[{i}] {len(chunk.split())} words, {len(chunk)} chars")
        print(chunk)
        print("-" * 50)

    return 0


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="excerpts",
        description="Retrieve the most relevant excerpts from documents for a query",
    )
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--structured-logs", action="store_true", help="Emit JSON log lines"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    query = sub.add_parser("query", help="Build the context block for a query")
    query.add_argument("query", help="Query text")
    query.add_argument(
        "--documents",
        action="append",
        required=True,
        help="JSON or JSONL file of {url, title, content, origin} records (repeatable)",
    )
    query.add_argument("--limit", type=non_negative_int, default=None, help="Max chunks")
    query.add_argument("--json", action="store_true", help="Print the full result as JSON")
    query.set_defaults(func=cmd_query)

    chunk = sub.add_parser("chunk", help="Show how a text file is chunked")
    chunk.add_argument("file", help="Plain text file")
    chunk.add_argument("--title", default=None, help="Document title")
    chunk.set_defaults(func=cmd_chunk)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        structured=args.structured_logs,
    )

    try:
        return args.func(args)
    except (ExcerptsError, OSError, json.JSONDecodeError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
