from __future__ import annotations

import argparse
import getpass
import sys
from collections.abc import Callable
from dataclasses import replace

from bsky_archive.cli import output as out
from bsky_archive.cli.config import (
    Config,
    config_exists,
    config_path_display,
    load_config,
    save_config,
)
from bsky_archive.core.exceptions import ArchiveError, InputFormatError
from bsky_archive.core.url import extract_post_reference

DESCRIPTION = """\
bsky-archive: keep a local copy of a Bluesky post

Logs in to Bluesky, fetches a single post, saves the raw thread response
and every attached image or video under ./posts/<record key>/, then asks
the Internet Archive to snapshot the post URL."""

EXIT_FAILURE = 1
# Distinct from every other failure: the URL carried no post reference.
EXIT_INPUT_FORMAT = 100


# ── Infrastructure helpers ──────────────────────────────────────────


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _build_archiver(cfg: Config):
    from bsky_archive import PostArchiver

    return PostArchiver.from_settings(cfg.to_settings())


def _resolve_credentials(cfg: Config, args: argparse.Namespace) -> tuple[str, str]:
    """Take credentials from flags, then config/env, prompting for the rest."""
    identifier = args.identifier or cfg.identifier
    password = cfg.password

    if not identifier and sys.stdin.isatty():
        identifier = input("  Bluesky handle or email: ").strip()
    if not password and sys.stdin.isatty():
        password = getpass.getpass("  App password: ").strip()

    if not identifier or not password:
        out.error(
            "Bluesky credentials not configured. "
            "Run 'bsky-archive config set-credentials' or set "
            "BSKYUSERNAME and BSKYPASSWORD."
        )
        sys.exit(EXIT_FAILURE)
    return identifier, password


# ── archive ─────────────────────────────────────────────────────────


def cmd_archive(args: argparse.Namespace) -> None:
    cfg = load_config()
    if args.archive_dir:
        cfg = replace(cfg, archive_dir=args.archive_dir)
    if args.no_mirror:
        cfg = replace(cfg, mirror=False)
    if args.workers is not None:
        cfg = replace(cfg, image_workers=args.workers)

    try:
        extract_post_reference(args.url)
    except InputFormatError as exc:
        out.error(str(exc))
        out.info("Expected a URL like https://bsky.app/profile/<handle>/post/<id>")
        sys.exit(EXIT_INPUT_FORMAT)

    identifier, password = _resolve_credentials(cfg, args)

    out.header("Archiving post")
    out.kv("URL", args.url)
    out.kv("Archive directory", cfg.archive_dir)
    print()

    archiver = _build_archiver(cfg)
    try:
        result = archiver.archive(args.url, identifier, password)
    except ArchiveError as exc:
        out.error(str(exc))
        sys.exit(EXIT_FAILURE)

    if result.saved:
        out.success(f"Saved {result.raw_uri}")
        for path in result.media:
            out.success(f"Saved {path}")
        if result.skipped_images:
            out.warn(
                f"{result.skipped_images} image(s) skipped: missing blob reference"
            )
    else:
        out.warn("The thread holds no post record; nothing was saved locally.")

    if cfg.mirror:
        if result.mirrored:
            out.success("Submitted to the Internet Archive")
        else:
            out.warn("Internet Archive submission failed (ignored)")
    print()


# ── list ────────────────────────────────────────────────────────────


def cmd_list(args: argparse.Namespace) -> None:
    """List record keys archived under the archive directory."""
    cfg = load_config()
    if args.archive_dir:
        cfg = replace(cfg, archive_dir=args.archive_dir)

    posts = _build_archiver(cfg).storage.list_posts()
    if not posts:
        out.info(f"No archived posts in {cfg.archive_dir}/")
        return

    out.header(f"Archived posts ({len(posts)})")
    print()
    for record_key in posts:
        out.info(record_key)
    print()


# ── config ──────────────────────────────────────────────────────────


def cmd_config_show(args: argparse.Namespace) -> None:
    """Display current configuration."""
    cfg = load_config()

    out.header(f"Configuration ({config_path_display()})")
    print()

    out.kv("Identifier", cfg.identifier or out.dim("not set"))
    out.kv("Password", "********" if cfg.password else out.dim("not set"))
    out.kv("Service", cfg.service_url)
    out.kv("Archive directory", cfg.archive_dir)
    out.kv("Internet Archive mirror", "on" if cfg.mirror else "off")
    out.kv("Image workers", cfg.image_workers)
    out.kv(
        "Image extensions",
        "from MIME type" if cfg.infer_image_extension else "always .png",
    )

    print()
    out.info("To change settings:")
    out.next_step("bsky-archive config set-credentials", "change login")
    out.next_step(f"edit {config_path_display()}", "everything else")
    print()


def cmd_config_set_credentials(args: argparse.Namespace) -> None:
    """Prompt for and save Bluesky credentials."""
    cfg = load_config() if config_exists() else Config()

    out.info("Use an app password: Settings → Privacy and security → App passwords")
    print()

    if cfg.identifier:
        out.kv("Current identifier", cfg.identifier)

    identifier = input("  Bluesky handle or email: ").strip()
    password = getpass.getpass("  App password: ").strip()
    if not identifier or not password:
        out.warn("Nothing entered, keeping current values.")
        return

    cfg.identifier = identifier
    cfg.password = password
    path = save_config(cfg)
    out.success(f"Credentials saved to {path}")


def cmd_config_path(args: argparse.Namespace) -> None:
    """Print the config file path."""
    print(config_path_display())


# ── Parser ──────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bsky-archive",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  bsky-archive archive "
            "https://bsky.app/profile/alice.bsky.social/post/3kabc123\n"
            "  bsky-archive list\n"
            "  bsky-archive config set-credentials\n"
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress logs",
    )
    sub = parser.add_subparsers(dest="command", title="commands")

    p_archive = sub.add_parser("archive", help="Archive a single post")
    p_archive.add_argument("url", help="Post URL")
    p_archive.add_argument(
        "--identifier", help="Handle or email to log in with (default: config)"
    )
    p_archive.add_argument(
        "--archive-dir", metavar="DIR", help="Archive root (default: ./posts)"
    )
    p_archive.add_argument(
        "--no-mirror",
        action="store_true",
        help="Do not submit the URL to the Internet Archive",
    )
    p_archive.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Parallel image downloads (default: 1)",
    )

    p_list = sub.add_parser("list", help="List archived posts")
    p_list.add_argument("--archive-dir", metavar="DIR", help="Archive root")

    p_cfg = sub.add_parser("config", help="View and change settings")
    cfg_sub = p_cfg.add_subparsers(dest="config_command", title="config commands")

    cfg_sub.add_parser("show", help="Show current settings")
    cfg_sub.add_parser("set-credentials", help="Change Bluesky login")
    cfg_sub.add_parser("path", help="Print config file location")

    return parser


# ── Dispatch ────────────────────────────────────────────────────────

_CommandHandler = Callable[[argparse.Namespace], None]

_COMMAND_MAP: dict[str, _CommandHandler] = {
    "archive": cmd_archive,
    "list": cmd_list,
}

_CONFIG_MAP: dict[str, _CommandHandler] = {
    "show": cmd_config_show,
    "set-credentials": cmd_config_set_credentials,
    "path": cmd_config_path,
}


def main(argv: list[str] | None = None) -> None:
    import logging

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="  %(name)s: %(message)s",
        )
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if not args.command:
        parser.print_help()
        return

    if args.command == "config":
        if not args.config_command:
            parser.parse_args(["config", "--help"])
            return
        handler = _CONFIG_MAP.get(args.config_command)
    else:
        handler = _COMMAND_MAP.get(args.command)

    if handler is None:
        parser.print_help()
        return

    try:
        handler(args)
    except KeyboardInterrupt:
        print()
