#!/usr/bin/env python3
"""
Operations utility.
Command-line access to the encrypted memory store.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Allow running from a checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from parasocial_memory import MemoryStore, MemoryStoreError
from parasocial_memory.core.config import validate_config


async def cmd_count(store: MemoryStore, args) -> int:
    print(await store.count())
    return 0


async def cmd_list(store: MemoryStore, args) -> int:
    memories = await store.list_all_decrypted()
    if args.limit:
        memories = memories[:args.limit]
    for memory in memories:
        marker = "" if memory.decrypted else " (!)"
        print(f"{memory.id}  [{memory.importance:>2}]  {memory.timestamp:%Y-%m-%d %H:%M}  {memory.content}{marker}")
    return 0


async def cmd_export(store: MemoryStore, args) -> int:
    memories = await store.list_all_decrypted()
    payload = {
        "count": len(memories),
        "memories": [m.to_dict() for m in memories],
    }
    Path(args.output).write_text(json.dumps(payload, indent=2))
    print(f"Exported {len(memories)} memories to {args.output}")
    print("⚠️  The export is plaintext. Store it accordingly.")
    return 0


async def cmd_delete(store: MemoryStore, args) -> int:
    removed = await store.delete_memory(args.memory_id)
    print("Deleted" if removed else "No such memory (nothing to do)")
    return 0


async def cmd_search(store: MemoryStore, args) -> int:
    results = await store.retrieve_relevant_memory(args.query)
    if not results:
        print("No relevant memories")
    for i, text in enumerate(results, 1):
        print(f"{i}. {text}")
    return 0


async def cmd_add(store: MemoryStore, args) -> int:
    entry = await store.save_memory(args.text, args.importance)
    print(f"Saved {entry.id} (importance {entry.importance}, embedding: {'yes' if entry.has_embedding else 'no'})")
    return 0


async def cmd_health(store: MemoryStore, args) -> int:
    health = await store.health()
    print(json.dumps(health, indent=2))
    return 0 if health['status'] == 'healthy' else 1


COMMANDS = {
    "count": cmd_count,
    "list": cmd_list,
    "export": cmd_export,
    "delete": cmd_delete,
    "search": cmd_search,
    "add": cmd_add,
    "health": cmd_health,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage the encrypted memory store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s count
  %(prog)s list --limit 20
  %(prog)s search "where do I like to hike?"
  %(prog)s add "User prefers window seats" --importance 7
  %(prog)s export memories.json
  %(prog)s delete 3f2a...

Environment variables:
- DB_PATH=./data/memory.db
- EMBED_PROVIDER=sentence-transformers|hash
- EMBED_TIMEOUT_SEC=0 (wait forever)
        """
    )
    parser.add_argument("--db", help="Database path (default: DB_PATH)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("count", help="Number of stored memories")
    sub.add_parser("health", help="Store health report")

    p_list = sub.add_parser("list", help="List memories, newest first")
    p_list.add_argument("--limit", type=int, default=0, help="Show at most N memories")

    p_export = sub.add_parser("export", help="Export decrypted memories as JSON")
    p_export.add_argument("output", help="Output file")

    p_delete = sub.add_parser("delete", help="Delete a memory by id")
    p_delete.add_argument("memory_id")

    p_search = sub.add_parser("search", help="Retrieve memories relevant to a query")
    p_search.add_argument("query")

    p_add = sub.add_parser("add", help="Save a new memory")
    p_add.add_argument("text")
    p_add.add_argument("--importance", "-i", type=int, default=None, help="1-10 (default 5)")

    return parser


async def run(args) -> int:
    async with MemoryStore(db_path=args.db) as store:
        return await COMMANDS[args.command](store, args)


def main():
    args = build_parser().parse_args()

    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"❌ {issue}")
        sys.exit(2)

    try:
        sys.exit(asyncio.run(run(args)))
    except MemoryStoreError as e:
        print(f"❌ {e.__class__.__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
