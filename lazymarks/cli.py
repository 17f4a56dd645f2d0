"""Command-line front door for lazymarks.

With no arguments the interactive browser starts. A bare query searches
bookmarks and opens the pick; subcommands cover quick add, HTML
import/export, link checking and data setup.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import system
from .ai import AIClient, build_context
from .culler import LinkStatus, check_urls
from .errors import ExternalServiceFailure, LazymarksError, ValidationFailed
from .interchange import default_export_path, read_html_bookmarks, write_export
from .model import Bookmark, BookmarkItem, Folder, Store, utc_now
from .model.paths import get_or_create_folder_by_path
from .runtime.config import CONFIG_PATH, Config, default_data_path, load_config, save_config
from .runtime.logs import configure_logging
from .search import rank
from .storage import open_storage

logger = logging.getLogger(__name__)

COMMANDS = ("add", "import", "export", "cull", "init", "reset", "help")

HELP_TEXT = """\
lazymarks - vim-style bookmark manager

Usage:
  lazymarks                    Open interactive browser
  lazymarks <query>            Search bookmarks, pick one, open it
  lazymarks add                Add URL from clipboard to the quick-add folder
  lazymarks add --url URL      Use the given URL
  lazymarks add --title TITLE  Skip AI title suggestion
  lazymarks import <file>      Import bookmarks from browser HTML export
  lazymarks export [path]      Export bookmarks to HTML
  lazymarks cull               Check every URL and report dead links
  lazymarks init               Create config and sample data
  lazymarks reset              Delete all bookmarks and folders
  lazymarks help               Show this help

Options:
  --data PATH   Bookmark file (.json, or .db for SQLite)
  --verbose     Debug logging

Press ? inside the browser for keybindings.
"""


def _global_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lazymarks", add_help=False)
    parser.add_argument("--data", type=Path, default=None, help="Bookmark data file.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("-h", "--help", action="store_true", help="Show help and exit.")
    return parser


def is_web_url(url: str) -> bool:
    return url.startswith(("http://", "https://")) and len(url) > len("https://")


def _data_path(args: argparse.Namespace) -> Path:
    return Path(args.data).expanduser() if args.data is not None else default_data_path()


def run_quick_search(storage, query: str, choose=input) -> None:
    store = storage.load()
    items = [BookmarkItem(b) for b in store.bookmarks]
    results = rank(query, items, lambda item: item.title)
    if not results:
        print(f"No bookmarks found for '{query}'")
        return
    if len(results) == 1:
        picked = results[0].bookmark
    else:
        for idx, item in enumerate(results[:20], start=1):
            print(f"{idx:>3}. {item.bookmark.title}  ({item.bookmark.url})")
        answer = choose(f"Open which? [1-{min(len(results), 20)}, Enter to cancel]: ").strip()
        if not answer:
            print("Cancelled")
            return
        if not answer.isdigit() or not 1 <= int(answer) <= min(len(results), 20):
            raise ValidationFailed(f"Invalid choice: {answer}")
        picked = results[int(answer) - 1].bookmark
    print(f"Opening: {picked.title}")
    picked.visited_at = utc_now()
    storage.save(store)
    system.open_url(picked.url)


def run_add(storage, config: Config, url: str | None, title: str | None, ai: AIClient | None = None) -> Bookmark:
    if not url:
        url = system.read_clipboard().strip()
        if not url:
            raise ValidationFailed("No URL found in clipboard")
    url = url.strip()
    if not is_web_url(url):
        raise ValidationFailed(f"Invalid URL: {url}")

    store = storage.load()
    folder_id = get_or_create_folder_by_path(store, config.quick_add_folder)
    tags: list[str] = []
    if not title:
        client = ai or AIClient()
        try:
            suggestion = client.suggest_bookmark(url, build_context(store))
        except ExternalServiceFailure as exc:
            print(f"AI unavailable ({exc}) - using URL as title")
            title = url
        else:
            title, tags = suggestion.title, list(suggestion.tags)

    bookmark = Bookmark.create(title, url, folder_id, tags)
    store.add_bookmark(bookmark)
    storage.save(store)
    print(f"Added to {config.quick_add_folder}: {title}")
    return bookmark


def run_import(storage, path: Path) -> tuple[int, int]:
    folders, bookmarks = read_html_bookmarks(path)
    store = storage.load()
    added, skipped = store.import_merge(folders, bookmarks)
    storage.save(store)
    message = f"Imported {added} bookmarks, {len(folders)} folders"
    if skipped:
        message += f" ({skipped} duplicates skipped)"
    print(message)
    return added, skipped


def run_export(storage, path: Path | None) -> Path:
    store = storage.load()
    target = write_export(store, path or default_export_path())
    print(f"Exported {len(store.bookmarks)} bookmarks, {len(store.folders)} folders to {target}")
    return target


def run_cull(storage, config: Config) -> None:
    store = storage.load()
    if not store.bookmarks:
        print("No bookmarks to check.")
        return
    total = len(store.bookmarks)
    print(f"Checking {total} bookmarks...")
    if config.cull_exclude_domains:
        print(f"Excluding domains: {', '.join(config.cull_exclude_domains)}")

    def on_progress(completed: int, count: int) -> None:
        sys.stdout.write(f"\rChecking {count} bookmarks... [{completed}/{count}]")
        sys.stdout.flush()

    results = check_urls(store.bookmarks, config.cull_exclude_domains, on_progress=on_progress)
    print()
    dead = [r for r in results if r.status is LinkStatus.DEAD]
    unreachable = [r for r in results if r.status is LinkStatus.UNREACHABLE]
    if dead:
        print(f"\nDEAD ({len(dead)}):")
        for result in dead:
            print(f'  - "{result.bookmark.title}" {result.bookmark.url} ({result.reason})')
    if unreachable:
        groups: dict[str, list] = {}
        for result in unreachable:
            groups.setdefault(result.reason, []).append(result)
        print(f"\nUNREACHABLE ({len(unreachable)}):")
        for reason, items in groups.items():
            print(f"\n  [{reason}] ({len(items)}):")
            for result in items:
                print(f'    - "{result.bookmark.title}" {result.bookmark.url}')
    healthy = total - len(dead) - len(unreachable)
    print(f"\nSummary: {healthy} healthy, {len(dead)} dead, {len(unreachable)} unreachable")
    print("\nUse 'C' in the browser for interactive cull mode.")


def sample_store() -> Store:
    development = Folder.create("Development")
    tools = Folder.create("Tools")
    read_later = Folder.create("Read Later")
    return Store(
        folders=[development, tools, read_later],
        bookmarks=[
            Bookmark.create("GitHub", "https://github.com", development.id, ["code", "git"]),
            Bookmark.create("Python Documentation", "https://docs.python.org/3/", development.id, ["python", "docs"]),
            Bookmark.create("Textual", "https://textual.textualize.io", tools.id, ["tui", "python"]),
            Bookmark.create("Hacker News", "https://news.ycombinator.com", None, ["news", "tech"]),
        ],
    )


def run_init(data_path: Path, config_path: Path = CONFIG_PATH) -> None:
    data_exists = data_path.exists()
    config_exists = config_path.exists()
    if data_exists and config_exists:
        print("Already initialized:")
        print(f"  {data_path} (data)")
        print(f"  {config_path} (config)")
        return
    print("Created:")
    if not data_exists:
        store = sample_store()
        open_storage(data_path).save(store)
        print(f"  {data_path} ({len(store.folders)} folders, {len(store.bookmarks)} bookmarks)")
    if not config_exists:
        if not save_config(Config(), config_path):
            raise ValidationFailed(f"Could not write {config_path}")
        print(f"  {config_path}")
    print("\nRun 'lazymarks' to open the browser")


def run_reset(storage, confirm=input) -> bool:
    print("This will delete all bookmarks and folders.\n")
    if confirm("Type 'yes' to confirm: ").strip() != "yes":
        print("Aborted")
        return False
    storage.save(Store())
    print("All data cleared")
    return True


def _dispatch(command: str, rest: list[str], args: argparse.Namespace) -> None:
    data_path = _data_path(args)
    storage = open_storage(data_path)
    logger.debug("command %s using %s", command, data_path)

    if command == "add":
        parser = argparse.ArgumentParser(prog="lazymarks add")
        parser.add_argument("--url", default=None)
        parser.add_argument("--title", default=None)
        opts = parser.parse_args(rest)
        run_add(storage, load_config(), opts.url, opts.title)
    elif command == "import":
        parser = argparse.ArgumentParser(prog="lazymarks import")
        parser.add_argument("file", type=Path)
        opts = parser.parse_args(rest)
        run_import(storage, opts.file)
    elif command == "export":
        parser = argparse.ArgumentParser(prog="lazymarks export")
        parser.add_argument("path", nargs="?", type=Path, default=None)
        opts = parser.parse_args(rest)
        run_export(storage, opts.path)
    elif command == "cull":
        run_cull(storage, load_config())
    elif command == "init":
        run_init(data_path)
    elif command == "reset":
        run_reset(storage)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and run the requested command.

    Any ``LazymarksError`` becomes ``SystemExit(1)`` with the message on
    stderr; success returns normally.
    """
    args, rest = _global_parser().parse_known_args(sys.argv[1:] if argv is None else argv)
    command = rest[0] if rest else ""
    if args.help or command == "help":
        sys.stdout.write(HELP_TEXT)
        return

    interactive = not rest
    configure_logging(verbose=args.verbose, stderr=not interactive)
    try:
        if interactive:
            from .runtime.loop import run_app

            run_app(open_storage(_data_path(args)), load_config())
        elif command in COMMANDS:
            _dispatch(command, rest[1:], args)
        else:
            run_quick_search(open_storage(_data_path(args)), " ".join(rest))
    except LazymarksError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        raise SystemExit(130) from None


if __name__ == "__main__":
    main()
