#!/usr/bin/env python3
"""
Command-line interface for the shoe store
"""
import sys
import asyncio
import argparse
from pathlib import Path
from typing import Optional

from .config import DEFAULT_PORT, Settings
from .enrichment import EnrichmentClient
from .errors import ShoeStoreError
from .identity import AnonymousIdentityProvider
from .log import setup_logging
from .store import JsonDocumentStore
from .sync import ShoeSync

SHELL_HELP = """Commands:
  add <name> <price>   Add a shoe (the last word is the price)
  delete <name>        Remove a shoe
  clear                Remove all shoes
  list                 Show your shoe list
  details              Fetch details for all shoes in the list
  history              Show past detail views
  help                 Show this help
  quit                 Leave the shell"""


def build_sync(settings: Settings) -> ShoeSync:
    """Wire a ShoeSync to the JSON store and the enrichment service."""
    return ShoeSync(
        store=JsonDocumentStore(settings.db_path),
        identity=AnonymousIdentityProvider(),
        enrichment=EnrichmentClient(settings.enrichment_url, timeout=settings.enrichment_timeout),
    )


def print_shoes(sync: ShoeSync) -> None:
    shoes = sync.shoes
    if not shoes:
        print("🛍️  Your shoe list is empty")
        return
    print(f"🛍️  Your shoe list ({len(shoes)}):")
    for shoe in shoes:
        print(f"   {shoe.name:<30} {shoe.display_price():>10}")


def print_history(sync: ShoeSync) -> None:
    if not sync.past_views:
        print("📜 No past views yet")
        return
    print("📜 Past views:")
    for view in sync.past_views:
        print(f"\n   Shoe(s): {view.shoe_name}")
        print(f"   Date:    {view.display_timestamp}")
        print(f"   Details: {view.details}")


def print_banner(sync: ShoeSync) -> None:
    """Show the latest error, if the last command failed."""
    if sync.last_error:
        print(f"❌ {sync.last_error}")


async def run_command(sync: ShoeSync, line: str) -> bool:
    """Run one shell command. Returns False when the shell should exit."""
    command, _, rest = line.strip().partition(' ')
    command = command.lower()
    rest = rest.strip()

    try:
        if command in ('quit', 'exit'):
            return False
        elif command == 'add':
            name, _, price = rest.rpartition(' ')
            shoe = await sync.add_item(name, price)
            print(f"✅ Added {shoe.name} ({shoe.display_price()})")
        elif command == 'delete':
            if await sync.delete_item(rest):
                print(f"✅ Deleted {rest}")
            else:
                print(f"ℹ️  {rest} is not in your list")
        elif command == 'clear':
            removed = await sync.clear_all()
            print(f"✅ Removed {removed} shoe(s)")
        elif command == 'list':
            await sync.load_items()
        elif command == 'details':
            print("⏳ Loading...")
            details = await sync.request_enrichment()
            print(f"\n👟 Shoe details:\n{details}\n")
        elif command == 'history':
            await sync.load_history()
            print_history(sync)
            return True
        elif command in ('help', '?', ''):
            print(SHELL_HELP)
            return True
        else:
            print(f"Unknown command: {command} (try 'help')")
            return True
    except ShoeStoreError:
        # Message is kept in sync.last_error
        pass

    print_banner(sync)
    print_shoes(sync)
    return True


async def shell(settings: Settings) -> int:
    """Interactive session against one anonymous user."""
    sync = build_sync(settings)
    try:
        await sync.start()
    except ShoeStoreError as e:
        print(f"❌ {e.message}")
        if not sync.is_ready:
            return 1

    print(f"👟 Shoe Store (session {sync.user_id})")
    print(f"📂 Using store: {settings.db_path}")
    print(f"🌐 Details service: {settings.enrichment_url}")
    print("Type 'help' for commands\n")
    print_shoes(sync)

    while True:
        try:
            line = await asyncio.to_thread(input, "shoes> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not await run_command(sync, line):
            break

    print("👋 Bye")
    return 0


def serve_command(host: str, port: int) -> int:
    """Start the shoe details server."""
    try:
        import uvicorn
        from .enrichment_server import app
    except ImportError as e:
        print(f"❌ Missing required package: {e}")
        print("\nInstall server dependencies:")
        print("  pip install fastapi uvicorn anthropic")
        return 1

    print(f"🚀 Starting Shoe Details Server...")
    print(f"🌐 Server will run at: http://{host}:{port}")
    print(f"👟 Details endpoint: http://{host}:{port}/shoes")
    print(f"❤️  Health check: http://{host}:{port}/health")
    print(f"Press Ctrl+C to stop\n")

    try:
        uvicorn.run(app, host=host, port=port, log_level="info")
    except KeyboardInterrupt:
        print("\n\n👋 Server stopped")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser_cli = argparse.ArgumentParser(
        description="Shoe Store - Keep a shoe list and look up shoe details",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start an interactive session
  shoe-store shell

  # Use a specific data file and details server
  shoe-store shell --db ~/shoes.json --url http://localhost:8765

  # Start the details server (requires ANTHROPIC_API_KEY)
  shoe-store serve --port 8765
        """
    )
    parser_cli.add_argument('--log-level', type=str, help='Logging level (default: LOG_LEVEL or WARNING)')

    subparsers = parser_cli.add_subparsers(dest='command', help='Command to run')

    shell_parser = subparsers.add_parser('shell', help='Start an interactive session')
    shell_parser.add_argument('--db', type=Path, help='JSON data file (default: SHOE_STORE_DB or ./shoe-store.json)')
    shell_parser.add_argument('--url', type=str, help='Details server URL (default: SHOE_STORE_ENRICHMENT_URL)')

    serve_parser = subparsers.add_parser('serve', help='Start the shoe details server')
    serve_parser.add_argument('--host', type=str, default='0.0.0.0', help='Interface to bind (default: 0.0.0.0)')
    serve_parser.add_argument('--port', '-p', type=int, default=DEFAULT_PORT, help=f'Port number (default: {DEFAULT_PORT})')

    args = parser_cli.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1
    setup_logging(args.log_level or settings.log_level)

    if args.command == 'shell':
        if args.db:
            settings.db_path = args.db
        if args.url:
            settings.enrichment_url = args.url
        return asyncio.run(shell(settings))
    elif args.command == 'serve':
        return serve_command(args.host, args.port)
    else:
        parser_cli.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
