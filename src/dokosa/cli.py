#!/usr/bin/env python3
"""
CLI for indexing git repositories and searching them semantically.

Usage:
    dokosa add /path/to/repo [-I '*.py'] [-E '*/tests/*'] [--window-size 50] [--step-size 25]
    dokosa remove /path/to/repo [--dry-run]
    dokosa sync [--dry-run] [--json]
    dokosa list [--json]
    echo "how are retries configured" | dokosa search [-c 10] [-t 0.3] [--strip-text]
    dokosa chunk < file.txt
    dokosa embed < file.txt

Every index command takes ``-i/--index-file`` (or DOKOSA_INDEX_FILE).
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config.config_loader import load_config
from .core.exceptions import ConfigError, DokosaError
from .core.logging import configure_logging
from .core.types import DokosaConfig
from .operations.repository_ops import add_repository, list_repositories, remove_repository
from .operations.sync_engine import SyncEngine
from .providers import create_embedder
from .retrieval.chunker import Chunker, ChunkingPolicy
from .retrieval.glob_filter import GlobPathFilter
from .retrieval.search import search_index
from .storage.index_log import IndexLog


logger = logging.getLogger(__name__)


def resolve_index_file(args, config: DokosaConfig) -> str:
    """Index file from the command line, else from environment or config file."""
    index_file = getattr(args, "index_file", None) or config.index_file
    if not index_file:
        raise ConfigError(
            "No index file given: pass -i/--index-file or set DOKOSA_INDEX_FILE"
        )
    return index_file


def read_stdin() -> str:
    return sys.stdin.read()


def cmd_add(args, config: DokosaConfig) -> int:
    """Index a git repository."""
    created, index_log = IndexLog.load_or_create(resolve_index_file(args, config))
    if created:
        logger.info(f"Created new index file: {index_log.path}")

    embedder = create_embedder(config.embedder_config())
    report = add_repository(
        index_log,
        args.repository,
        embedder,
        window_size=args.window_size or config.chunk_window_size,
        step_size=args.step_size or config.chunk_step_size,
        include_files=args.include_files,
        exclude_files=args.exclude_files,
    )

    print(report.summary())
    return 0


def cmd_remove(args, config: DokosaConfig) -> int:
    """Remove a repository from the index."""
    index_log = IndexLog.load(resolve_index_file(args, config))
    report = remove_repository(index_log, args.repository, dry_run=args.dry_run)
    print(report.summary())
    return 0


def cmd_sync(args, config: DokosaConfig) -> int:
    """Re-embed files changed since each repository was last indexed."""
    index_log = IndexLog.load(resolve_index_file(args, config))
    embedder = None if args.dry_run else create_embedder(config.embedder_config())

    engine = SyncEngine(index_log, embedder)
    report = engine.sync(dry_run=args.dry_run)

    print(report.summary())
    if args.json:
        print("\n" + json.dumps(report.to_dict(), indent=2))
    return 0


def cmd_list(args, config: DokosaConfig) -> int:
    """Show the indexed repositories."""
    index_log = IndexLog.load(resolve_index_file(args, config))
    summaries = list_repositories(index_log)

    if args.json:
        print(json.dumps([s.to_dict() for s in summaries], indent=2))
        return 0

    for summary in summaries:
        print(f"Repository: {summary.path}")
        print(f"  Commit: {summary.commit}")
        print(f"  Window/step: {summary.chunk_window_size}/{summary.chunk_step_size}")
        if summary.include_files:
            print(f"  Include: {', '.join(summary.include_files)}")
        if summary.exclude_files:
            print(f"  Exclude: {', '.join(summary.exclude_files)}")
        print(f"  Files: {summary.file_count}")
        print(f"  Chunks: {summary.chunk_count}")

    print("\nSummary:")
    print(f"  Repositories: {len(summaries)}")
    print(f"  Chunks: {sum(s.chunk_count for s in summaries)}")
    return 0


def cmd_search(args, config: DokosaConfig) -> int:
    """Find the chunks most similar to a query."""
    index_log = IndexLog.load(resolve_index_file(args, config))
    query = args.query if args.query is not None else read_stdin()

    embedder = create_embedder(config.embedder_config())
    query_embedding = embedder.embed([query])[0]

    path_filter = GlobPathFilter.from_strings(args.include_files, args.exclude_files)
    count = args.count if args.count is not None else config.search_count
    threshold = (
        args.similarity_threshold
        if args.similarity_threshold is not None
        else config.similarity_threshold
    )

    matches = search_index(
        index_log,
        query_embedding,
        count=count,
        similarity_threshold=threshold,
        path_filter=path_filter,
    )

    results = [m.to_dict(include_text=not args.strip_text) for m in matches]
    print(json.dumps(results, indent=2, ensure_ascii=False))
    return 0


def cmd_chunk(args, config: DokosaConfig) -> int:
    """Split stdin into line windows (for inspecting chunk boundaries)."""
    policy = ChunkingPolicy(
        window_size=args.window_size or config.chunk_window_size,
        step_size=args.step_size or config.chunk_step_size,
    )
    chunks = Chunker(policy).apply(read_stdin())
    print(json.dumps([{"line": line, "text": text} for line, text in chunks],
                     indent=2, ensure_ascii=False))
    return 0


def cmd_embed(args, config: DokosaConfig) -> int:
    """Embed stdin as one text and print the vector."""
    embedder = create_embedder(config.embedder_config())
    print(json.dumps(embedder.embed([read_stdin()])))
    return 0


COMMANDS = {
    "add": cmd_add,
    "remove": cmd_remove,
    "sync": cmd_sync,
    "list": cmd_list,
    "search": cmd_search,
    "chunk": cmd_chunk,
    "embed": cmd_embed,
}


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="dokosa",
        description="Semantic search over git repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose/debug logging",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Write logs as JSON lines",
    )

    index_parent = argparse.ArgumentParser(add_help=False)
    index_parent.add_argument(
        "-i", "--index-file",
        help="Path to the index file (default: $DOKOSA_INDEX_FILE)",
    )

    filter_parent = argparse.ArgumentParser(add_help=False)
    filter_parent.add_argument(
        "-I", "--include-files",
        action="append", default=[], metavar="PATTERN",
        help="Include files matching this glob pattern (repeatable)",
    )
    filter_parent.add_argument(
        "-E", "--exclude-files",
        action="append", default=[], metavar="PATTERN",
        help="Exclude files matching this glob pattern (repeatable)",
    )

    chunk_parent = argparse.ArgumentParser(add_help=False)
    chunk_parent.add_argument("--window-size", type=positive_int, help="Lines per chunk")
    chunk_parent.add_argument("--step-size", type=positive_int, help="Lines between chunk starts")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Add command
    add_parser = subparsers.add_parser(
        "add", parents=[index_parent, filter_parent, chunk_parent],
        help="Index a git repository",
    )
    add_parser.add_argument("repository", help="Path inside the git repository")

    # Remove command
    remove_parser = subparsers.add_parser(
        "remove", parents=[index_parent], help="Remove a repository from the index",
    )
    remove_parser.add_argument("repository", help="Repository path")
    remove_parser.add_argument("--dry-run", action="store_true", help="Report without making changes")

    # Sync command
    sync_parser = subparsers.add_parser(
        "sync", parents=[index_parent], help="Re-embed files changed since the last index",
    )
    sync_parser.add_argument("--dry-run", action="store_true", help="Report without making changes")
    sync_parser.add_argument("--json", action="store_true", help="Output report as JSON")

    # List command
    list_parser = subparsers.add_parser(
        "list", parents=[index_parent], help="Show indexed repositories",
    )
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # Search command
    search_parser = subparsers.add_parser(
        "search", parents=[index_parent, filter_parent], help="Search the index",
    )
    search_parser.add_argument("query", nargs="?", help="Query text (read from stdin when omitted)")
    search_parser.add_argument(
        "-c", "--count", type=non_negative_int,
        help="Maximum number of results (default: 10)",
    )
    search_parser.add_argument(
        "-t", "--similarity-threshold", type=float,
        help="Minimum similarity for results (default: 0.3)",
    )
    search_parser.add_argument(
        "--strip-text", action="store_true",
        help="Leave chunk text out of the results",
    )

    # Chunk command
    subparsers.add_parser(
        "chunk", parents=[chunk_parent], help="Split stdin into chunks",
    )

    # Embed command
    subparsers.add_parser("embed", help="Embed stdin")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=args.log_json,
    )

    command = COMMANDS.get(args.command)
    if command is None:
        print("No command specified. Use --help for usage.", file=sys.stderr)
        return 1

    load_dotenv()

    try:
        config = load_config(args.config)
        return command(args, config)
    except DokosaError as e:
        logger.error(str(e), extra={"command": args.command})
        return 1


if __name__ == "__main__":
    sys.exit(main())
