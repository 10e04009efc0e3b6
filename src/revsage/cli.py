"""revsage command line: browse the history and past trees of a repository."""

import argparse
import stat
import sys
from typing import List, Optional

from loguru import logger

from revsage.config import load_settings
from revsage.errors import RevsageError
from revsage.repository import Navigator, open_repository
from revsage.types.base import Commit, FileInfo


def format_commit(commit: Commit) -> str:
    """Format a single commit's information for display."""
    parents = " ".join(parent[:12] for parent in commit.parents) or "(root)"
    return f"""Commit: {commit.id}
Parents: {parents}
Author: {commit.author.name} <{commit.author.email}>
Date: {commit.author.timestamp.strftime('%Y-%m-%d %H:%M:%S %z')}

{commit.message.strip()}
"""


def format_log_line(commit: Commit) -> str:
    summary = commit.message.strip().split("\n", 1)[0]
    return f"{commit.id[:12]} {commit.author.timestamp.strftime('%Y-%m-%d')} {commit.author.name}: {summary}"


def format_file_info(info: FileInfo) -> str:
    name = info.name + "/" if info.is_dir() else info.name
    return f"{stat.filemode(info.mode)} {info.size:>10} {name}"


def _cmd_resolve(nav: Navigator, args: argparse.Namespace) -> None:
    print(nav.resolve_revision(args.spec))


def _cmd_log(nav: Navigator, args: argparse.Namespace) -> None:
    commits = nav.commit_log(nav.resolve_revision(args.rev))
    if args.limit:
        commits = commits[: args.limit]
    for commit in commits:
        print(format_log_line(commit))


def _cmd_show(nav: Navigator, args: argparse.Namespace) -> None:
    print(format_commit(nav.get_commit(nav.resolve_revision(args.rev))), end="")


def _cmd_ls(nav: Navigator, args: argparse.Namespace) -> None:
    snapshot = nav.snapshot_at(nav.resolve_revision(args.rev))
    for info in sorted(snapshot.read_dir(args.path), key=lambda fi: fi.name):
        print(format_file_info(info))


def _cmd_cat(nav: Navigator, args: argparse.Namespace) -> None:
    snapshot = nav.snapshot_at(nav.resolve_revision(args.rev))
    sys.stdout.buffer.write(snapshot.read_bytes(args.path))
    sys.stdout.flush()


def _cmd_stat(nav: Navigator, args: argparse.Namespace) -> None:
    snapshot = nav.snapshot_at(nav.resolve_revision(args.rev))
    print(format_file_info(snapshot.stat(args.path)))


def _cmd_tags(nav: Navigator, args: argparse.Namespace) -> None:
    for name in nav.tags():
        print(f"{name} {nav.resolve_tag(name)}")


def _cmd_branches(nav: Navigator, args: argparse.Namespace) -> None:
    for name in nav.branches():
        print(f"{name} {nav.resolve_branch(name)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="revsage", description="Browse repository history and past trees")
    parser.add_argument("--repo-path", type=str, help="Path to the repository (default: $REVSAGE_REPO_PATH or .)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("resolve", help="Print the commit id a revision resolves to")
    p.add_argument("spec", help="Branch, tag, index, commit id or prefix")
    p.set_defaults(func=_cmd_resolve)

    p = sub.add_parser("log", help="List commits newest first")
    p.add_argument("rev", nargs="?", default="", help="Revision to start from")
    p.add_argument("--limit", type=int, default=0, help="Show at most this many commits")
    p.set_defaults(func=_cmd_log)

    p = sub.add_parser("show", help="Show one commit")
    p.add_argument("rev", nargs="?", default="")
    p.set_defaults(func=_cmd_show)

    for name, func, help_text in (
        ("ls", _cmd_ls, "List a directory"),
        ("cat", _cmd_cat, "Print a file's content"),
        ("stat", _cmd_stat, "Describe a file or directory"),
    ):
        p = sub.add_parser(name, help=help_text)
        if name == "ls":
            p.add_argument("path", nargs="?", default=".")
        else:
            p.add_argument("path")
        p.add_argument("--rev", "-r", default="", help="Revision to read (default: tip)")
        p.set_defaults(func=func)

    sub.add_parser("tags", help="List tags").set_defaults(func=_cmd_tags)
    sub.add_parser("branches", help="List branch heads").set_defaults(func=_cmd_branches)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(repo_path=args.repo_path)
    except RevsageError as e:
        logger.error(str(e))
        return 1

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else settings.log_level)

    try:
        nav = open_repository(settings.repo_path, settings)
        args.func(nav, args)
    except RevsageError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
