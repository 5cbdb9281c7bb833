#!/usr/bin/env python3
"""
Smart Blocks - command line interface

Parses, validates, extracts, summarizes, reorders and batch-processes the
smart blocks of a markdown file. Sidecar metadata is kept next to the file
(or in the configured sidecar directory) as <name>.metadata.json.
"""

import argparse
import asyncio
import inspect
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional

from smartblocks import __version__
from smartblocks.agents import AICapabilities, AgentRunner
from smartblocks.analysis import apply_order
from smartblocks.blocks.grammar import is_start_marker
from smartblocks.config import ConfigManager
from smartblocks.database import DatabaseManager
from smartblocks.engine import BlockEngine
from smartblocks.errors import SmartBlockError
from smartblocks.models import ExtractionOptions, SummarizationOptions
from smartblocks.processing import OPERATIONS
from smartblocks.sidecar import JsonFileBackend, SidecarStore, find_orphaned_entries


def setup_logging(config: ConfigManager, verbose: bool = False):
    """Configure logging for the application."""
    level_name = "DEBUG" if verbose else config.get("logging.level", "INFO")
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    format_str = config.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(config.log_filename)
        ],
        force=True
    )


def read_document(path: Path) -> str:
    """Read a markdown file."""
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def write_json(path: Path, payload: Any):
    """Write a JSON file, creating its directory if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, default=str)


def sidecar_store_for(path: Path, config: ConfigManager) -> SidecarStore:
    """Sidecar store for a document: next to it unless a directory is configured."""
    directory = config.sidecar_directory or path.parent
    return SidecarStore(JsonFileBackend(str(directory)))


async def with_engine(args, config: ConfigManager, action: Callable[[BlockEngine], Awaitable[int]]) -> int:
    """
    Run an async command with an engine.

    With --ollama the engine's AI capabilities come from an AgentRunner that
    is closed when the command finishes; otherwise the local defaults are used.
    """
    if getattr(args, "ollama", False):
        async with AgentRunner.from_config(config) as runner:
            engine = BlockEngine.from_config(config, capabilities=AICapabilities.from_runner(runner))
            return await action(engine)

    return await action(BlockEngine.from_config(config))


def cmd_parse(args, config: ConfigManager) -> int:
    path = Path(args.file)
    engine = BlockEngine.from_config(config)
    result = engine.parse_document(read_document(path))

    print(f"📄 {path}: {len(result.blocks)} blocks")
    if args.verbose:
        for block in result.blocks:
            start, end = block.line_range
            tags = f" [{', '.join(block.tags)}]" if block.tags else ""
            print(f"  - {block.id} ({block.type}) lines {start}-{end}{tags}: {block.title or ''}")
    for warning in result.warnings:
        print(f"  ⚠️  line {warning.line}: {warning.message}")

    if args.output:
        write_json(Path(args.output), result.model_dump(mode="json"))
        print(f"Wrote {args.output}")

    return 0


def cmd_validate(args, config: ConfigManager) -> int:
    path = Path(args.file)
    engine = BlockEngine.from_config(config)
    text = read_document(path)
    result = engine.parse_document(text)

    marker_count = sum(1 for line in text.split("\n") if is_start_marker(line))
    rejected = marker_count - len(result.blocks)

    for block in result.blocks:
        verdict = engine.validate_block(block)
        if args.verbose or verdict.warnings:
            print(f"✅ {block.id}")
        for warning in verdict.warnings:
            print(f"  ⚠️  {warning}")

    for warning in result.warnings:
        print(f"⚠️  line {warning.line}: {warning.message}")

    if rejected:
        print(f"❌ {rejected} of {marker_count} block markers did not produce a valid block")
        return 1

    print(f"✅ All {marker_count} blocks are valid")
    return 0


async def cmd_extract(args, config: ConfigManager) -> int:
    path = Path(args.file)
    output_dir = Path(args.output or path.parent / "extracted")
    options = ExtractionOptions(
        create_backlink=args.create_backlink,
        inherit_tags=args.inherit_tags,
        add_source_reference=args.add_source
    )
    store = sidecar_store_for(path, config)
    document_id = path.stem

    async def action(engine: BlockEngine) -> int:
        blocks = engine.parse_blocks(read_document(path))
        if args.block:
            blocks = [block for block in blocks if block.id == args.block]
            if not blocks:
                print(f"❌ Block {args.block} not found in {path}")
                return 1

        sidecar = await store.load(document_id)
        for block in blocks:
            document = engine.extract_block(block, options, sidecar, source_document_id=document_id)
            if args.format == "json":
                target = output_dir / f"{document.id}.json"
                write_json(target, document.model_dump(mode="json"))
            else:
                target = output_dir / f"{document.id}.md"
                target.parent.mkdir(parents=True, exist_ok=True)
                with open(target, 'w', encoding='utf-8') as f:
                    f.write(document.body)
            print(f"📝 {block.id} -> {target}")

        await store.save(document_id, sidecar)
        return 0

    return await with_engine(args, config, action)


async def cmd_summarize(args, config: ConfigManager) -> int:
    path = Path(args.file)
    store = sidecar_store_for(path, config)
    document_id = path.stem
    options = SummarizationOptions(max_length=args.max_length or int(config.get("summarization.max_length", 150)))

    async def action(engine: BlockEngine) -> int:
        blocks = engine.parse_blocks(read_document(path))
        sidecar = await store.load(document_id)

        summaries = {}
        for block in blocks:
            summaries[block.id] = await engine.summarize_block(block, options, sidecar)
            print(f"💡 {block.id}: {summaries[block.id]}")

        await store.save(document_id, sidecar)
        if args.output:
            write_json(Path(args.output), summaries)
        return 0

    return await with_engine(args, config, action)


async def cmd_reorder(args, config: ConfigManager) -> int:
    path = Path(args.file)

    async def action(engine: BlockEngine) -> int:
        blocks = engine.parse_blocks(read_document(path))
        order = await engine.suggest_reorder(blocks)

        if order == list(range(len(blocks))):
            print("No reordering suggested")
            return 0

        print("Suggested order:")
        for position, block in enumerate(apply_order(blocks, order), 1):
            pinned = "" if block.reorderable else " (fixed)"
            print(f"  {position}. {block.id}{pinned}")
        return 0

    return await with_engine(args, config, action)


async def cmd_process(args, config: ConfigManager) -> int:
    path = Path(args.file)
    operations = [op.strip() for op in args.operations.split(",") if op.strip()]
    store = sidecar_store_for(path, config)
    document_id = path.stem

    async def action(engine: BlockEngine) -> int:
        with DatabaseManager(args.db or config.database_filename) as db:
            db.initialize_database()

            blocks = [
                block for block in engine.parse_blocks(read_document(path))
                if args.all or db.block_needs_processing(document_id, block)
            ]
            if not blocks:
                print("✅ No changes detected. Nothing to process.")
                return 0

            sidecar = await store.load(document_id)
            jobs = await engine.process_blocks(
                blocks, operations, sidecar,
                document_id=document_id,
                database=db,
                batch_size=args.batch_size
            )
            await store.save(document_id, sidecar)

        failed = [job for job in jobs if job.status == "failed"]
        print(f"Processed {len(blocks)} blocks: {len(jobs) - len(failed)} jobs completed, {len(failed)} failed")
        for job in failed:
            print(f"  ❌ {job.type} {job.block_id}: {job.error}")
        return 1 if failed else 0

    return await with_engine(args, config, action)


async def cmd_stats(args, config: ConfigManager) -> int:
    path = Path(args.file)
    engine = BlockEngine.from_config(config)
    blocks = engine.parse_blocks(read_document(path))
    sidecar = await sidecar_store_for(path, config).load(path.stem)
    stats = engine.statistics(blocks, sidecar)
    orphaned = find_orphaned_entries(sidecar, blocks)

    if args.json:
        payload = stats.model_dump(mode="json")
        payload["orphaned_entries"] = orphaned
        print(json.dumps(payload, indent=2))
        return 0

    print(f"📊 {path}")
    print(f"  Total blocks:       {stats.total_blocks}")
    for block_type, count in sorted(stats.blocks_by_type.items()):
        print(f"    {block_type}: {count}")
    print(f"  Average length:     {stats.average_block_length}")
    print(f"  Reorderable:        {stats.reorderable_blocks}")
    print(f"  Extracted:          {stats.extracted_blocks}")
    print(f"  With AI summary:    {stats.blocks_with_ai}")
    if orphaned:
        print(f"  Orphaned metadata:  {', '.join(orphaned)}")
    return 0


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Smart Blocks - typed, addressable blocks in markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py parse notes.md -v                 # List the blocks of a file
  python main.py validate notes.md                 # Check all block markers
  python main.py extract notes.md --create-backlink --inherit-tags
  python main.py summarize notes.md --ollama       # Summarize with a local Ollama model
  python main.py process notes.md --operations summarize,embed
        """
    )

    parser.add_argument("--config", default="config.yaml", help="Path to the configuration file")
    parser.add_argument("--version", action="version", version=f"Smart Blocks {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Parse blocks from a markdown file")
    parse_cmd.add_argument("file")
    parse_cmd.add_argument("-o", "--output", help="Write the parse result as JSON")
    parse_cmd.add_argument("-v", "--verbose", action="store_true", help="List every block")

    validate_cmd = subparsers.add_parser("validate", help="Validate the blocks of a markdown file")
    validate_cmd.add_argument("file")
    validate_cmd.add_argument("-v", "--verbose", action="store_true", help="Report valid blocks too")

    extract_cmd = subparsers.add_parser("extract", help="Extract blocks into standalone documents")
    extract_cmd.add_argument("file")
    extract_cmd.add_argument("-o", "--output", help="Output directory (default: ./extracted next to the file)")
    extract_cmd.add_argument("--block", help="Only extract the block with this id")
    extract_cmd.add_argument("--format", choices=["markdown", "json"], default="markdown")
    extract_cmd.add_argument("--create-backlink", action="store_true", help="Link back to the source document")
    extract_cmd.add_argument("--inherit-tags", action="store_true", help="Copy block tags to the new document")
    extract_cmd.add_argument("--add-source", action="store_true", help="Name the source block in the new document")

    summarize_cmd = subparsers.add_parser("summarize", help="Summarize every block")
    summarize_cmd.add_argument("file")
    summarize_cmd.add_argument("-o", "--output", help="Write summaries as JSON")
    summarize_cmd.add_argument("--max-length", type=int, help="Maximum summary length in characters")
    summarize_cmd.add_argument("--ollama", action="store_true", help="Summarize with the configured Ollama model")

    reorder_cmd = subparsers.add_parser("reorder", help="Suggest an order for reorderable blocks")
    reorder_cmd.add_argument("file")
    reorder_cmd.add_argument("--ollama", action="store_true", help="Order with the configured Ollama model")

    process_cmd = subparsers.add_parser("process", help="Batch-process new or changed blocks")
    process_cmd.add_argument("file")
    process_cmd.add_argument("--operations", default="summarize",
                             help=f"Comma separated operations ({', '.join(OPERATIONS)})")
    process_cmd.add_argument("--batch-size", type=int, help="Jobs run together per batch")
    process_cmd.add_argument("--db", help="DuckDB database file")
    process_cmd.add_argument("--all", action="store_true", help="Process unchanged blocks too")
    process_cmd.add_argument("--ollama", action="store_true", help="Use the configured Ollama models")

    stats_cmd = subparsers.add_parser("stats", help="Show block statistics")
    stats_cmd.add_argument("file")
    stats_cmd.add_argument("--json", action="store_true", help="Print statistics as JSON")

    return parser.parse_args(argv)


COMMANDS = {
    "parse": cmd_parse,
    "validate": cmd_validate,
    "extract": cmd_extract,
    "summarize": cmd_summarize,
    "reorder": cmd_reorder,
    "process": cmd_process,
    "stats": cmd_stats,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    config = ConfigManager(args.config)
    setup_logging(config, getattr(args, "verbose", False))

    command = COMMANDS[args.command]

    try:
        if inspect.iscoroutinefunction(command):
            return asyncio.run(command(args, config))
        return command(args, config)

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        print("\nInterrupted.")
        return 130

    except FileNotFoundError as e:
        logging.error(f"File not found: {e}")
        print(f"❌ File not found: {e.filename or e}")
        return 1

    except (SmartBlockError, ValueError) as e:
        logging.error(f"{args.command} failed: {e}")
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
