from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

from .builder import build
from .config import SiteConfig, load_config
from .errors import ConfigError


def build_parser(config_path: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="folio", description="Render a folder of pages and posts into a static site.")
    parser.add_argument("--config", default=config_path, help="Path to site config file (TOML/YAML/JSON).")
    commands = parser.add_subparsers(dest="command", required=True)

    build_cmd = commands.add_parser("build", help="Build the site once.")
    build_cmd.add_argument("source", help="Directory containing the source documents.")
    build_cmd.add_argument("output", help="Output directory for the site.")
    build_cmd.add_argument("--config", default=config_path, help="Path to site config file (TOML/YAML/JSON).")
    build_cmd.add_argument("--site-name", default=None, help="Site title.")
    build_cmd.add_argument("--site-description", default=None, help="Site description.")
    build_cmd.add_argument("--base-url", default=None, help="Public site URL used for feeds, sitemap and permalinks.")
    build_cmd.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Clean output directory before writing.",
    )
    build_cmd.add_argument(
        "--build-workers",
        default=None,
        type=int,
        help="Number of worker threads for parsing/rendering (0 = auto).",
    )
    build_cmd.add_argument(
        "--posts-per-page",
        default=None,
        type=int,
        help="Number of posts on the home page before pagination.",
    )
    build_cmd.add_argument("--feed-limit", default=None, type=int, help="Maximum number of posts in RSS/Atom feeds.")
    build_cmd.add_argument("--toc-depth", default=None, help="Heading depth range for TOC (e.g. 2-4).")
    build_cmd.add_argument("--static", default=None, help="Directory of static assets copied into the output.")
    build_cmd.add_argument("--templates", default=None, help="Directory of extra templates.")
    return parser


def resolve_config(args: argparse.Namespace) -> SiteConfig:
    config_path = Path(args.config)
    config = SiteConfig.from_mapping(load_config(config_path), config_path.resolve().parent)
    return config.override(
        site_name=args.site_name,
        site_description=args.site_description,
        base_url=args.base_url,
        clean=args.clean,
        build_workers=args.build_workers,
        posts_per_page=max(1, args.posts_per_page) if args.posts_per_page is not None else None,
        feed_limit=max(0, args.feed_limit) if args.feed_limit is not None else None,
        toc_depth=args.toc_depth,
        static_dir=Path(args.static) if args.static else None,
        templates_dir=Path(args.templates) if args.templates else None,
    )


def main(argv: Optional[list[str]] = None) -> int:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default="site.toml")
    pre_args, _ = pre_parser.parse_known_args(argv)

    args = build_parser(pre_args.config).parse_args(argv)
    try:
        config = resolve_config(args)
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        return 1

    start = time.perf_counter()
    report = build(args.source, args.output, config)
    elapsed = time.perf_counter() - start

    for issue in report.warnings:
        print(f"warning: {issue}", file=sys.stderr)
    for issue in report.errors:
        print(f"error: {issue}", file=sys.stderr)
    if not report.ok:
        print("Build failed. No files were written.", file=sys.stderr)
        return 1
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"Wrote {report.documents_written} documents to {args.output}")
    return 0
