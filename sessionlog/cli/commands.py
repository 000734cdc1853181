"""Command implementations for the CLI interface."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Callable
from dataclasses import dataclass

from sessionlog.files import HashCache, LocalFileResolver
from sessionlog.history import FileByteStore, Role, TranscriptEntry, TranscriptLog
from sessionlog.history.format import format_heading
from sessionlog.markdown import reflow
from sessionlog.render import RenderScheduler
from sessionlog.settings import AppSettings
from sessionlog.util.hashing import hasher_for

ROLE_CHOICES = [role.value for role in Role]


@dataclass
class Command:
    """Describe a CLI command and its argument handler."""

    func: Callable[[argparse.Namespace], None]
    help: str
    add_arguments: Callable[[argparse.ArgumentParser], None]


def _settings(args: argparse.Namespace) -> AppSettings:
    settings = getattr(args, "app_settings", None)
    return settings if isinstance(settings, AppSettings) else AppSettings()


def _transcript_log(args: argparse.Namespace) -> TranscriptLog:
    return TranscriptLog(FileByteStore(args.root), _settings(args).history)


def cmd_append(args: argparse.Namespace) -> None:
    """Append one message to the transcript of a session."""

    message = sys.stdin.read() if args.message == "-" else args.message
    log = _transcript_log(args)
    session = log.session_for(args.session_id, title=args.title or "")
    entry = TranscriptEntry(
        role=Role(args.role),
        message=message,
        model_id=args.model or None,
    )
    log.append_entry(session, entry)
    sys.stdout.write(f"{session.log_path}\n")


def add_append_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``append`` command."""
    p.add_argument("root", help="directory holding the history folder")
    p.add_argument("session_id", help="session identifier")
    p.add_argument("role", choices=ROLE_CHOICES, help="author of the message")
    p.add_argument("message", help="message text, or - to read stdin")
    p.add_argument("--model", help="model that produced the message")
    p.add_argument("--title", help="session title used when the log is created")


def _render_blocks(entries: list[TranscriptEntry], *, raw: bool) -> list[str]:
    """Render *entries* concurrently and return their blocks in input order."""
    blocks: list[str] = [""] * len(entries)
    positions = {id(entry): index for index, entry in enumerate(entries)}

    async def render(entry: TranscriptEntry, should_scroll: bool) -> None:
        body = entry.message if raw else reflow(entry.message)
        blocks[positions[id(entry)]] = f"{format_heading(entry)}\n\n{body}"

    asyncio.run(
        RenderScheduler().render_batch(entries, render, lambda: None, lambda: None)
    )
    return blocks


def cmd_show(args: argparse.Namespace) -> None:
    """Print the transcript of a session with paragraphs reflowed."""

    log = _transcript_log(args)
    session = log.session_for(args.session_id)
    entries = log.load_entries(session)
    if not entries:
        sys.stdout.write(f"no entries for session {args.session_id}\n")
        return
    blocks = _render_blocks(entries, raw=args.raw)
    sys.stdout.write("\n\n".join(blocks) + "\n")


def add_show_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``show`` command."""
    p.add_argument("root", help="directory holding the history folder")
    p.add_argument("session_id", help="session identifier")
    p.add_argument("--raw", action="store_true", help="print messages without reflow")


def cmd_hash(args: argparse.Namespace) -> None:
    """Print content digests of files; missing files get an empty digest."""

    cache = HashCache(
        LocalFileResolver(args.root),
        hasher=hasher_for(_settings(args).hashing.algorithm),
    )
    for path in args.paths:
        sys.stdout.write(f"{cache.compute_hash(path)}  {path}\n")


def add_hash_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``hash`` command."""
    p.add_argument("root", help="directory the paths are relative to")
    p.add_argument("paths", nargs="+", help="files to hash")


COMMANDS: dict[str, Command] = {
    "append": Command(cmd_append, "append a message to a session", add_append_arguments),
    "show": Command(cmd_show, "print a session transcript", add_show_arguments),
    "hash": Command(cmd_hash, "print content digests", add_hash_arguments),
}
