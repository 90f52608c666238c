#!/usr/bin/env python3
"""
Command-line interface for Postdeck.
"""

import os
import sys
import argparse
import time
from typing import Dict, Any, List, Optional

from . import __version__
from .core import Postdeck
from .filtering import ALL_CATEGORIES, FilterState, PostFilter
from .page import StaticPage
from .settings import PostdeckSettings
from .theme import DARK, THEMES, PreferenceStore, ThemeController

SAMPLE_POSTS = {
    'java-performance.md': """---
title: "Java Performance"
date: 2025-03-02
category: tech
description: "Notes on profiling the JVM."
---

# Java Performance

Profiling the JVM starts with measuring, not guessing. This post walks through
flame graphs, allocation profiling and the garbage collector logs.
""",
    'lisbon-guide.md': """---
title: "Lisbon Guide"
date: 2025-02-14
category: travel
description: "Three days in Lisbon."
---

# Lisbon Guide

Trams, custard tarts and viewpoints: a short itinerary for a long weekend.
""",
}

SAMPLE_CATEGORIES = """# Category slug -> button label, in the order the buttons appear
tech: Tech
travel: Travel
"""


def create_starter_structure() -> None:
    """Create the content directories with a couple of sample posts."""
    current_dir = os.getcwd()
    posts_dir = os.path.join(current_dir, 'content', 'posts')
    os.makedirs(posts_dir, exist_ok=True)
    os.makedirs(os.path.join(current_dir, 'assets'), exist_ok=True)

    for filename, text in SAMPLE_POSTS.items():
        path = os.path.join(posts_dir, filename)
        if os.path.exists(path):
            print(f"Sample post already exists: content/posts/{filename}")
            continue
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        print(f"Created sample post: content/posts/{filename}")

    categories_path = os.path.join(current_dir, 'content', 'categories.yml')
    if os.path.exists(categories_path):
        print("Categories file already exists: content/categories.yml")
    else:
        with open(categories_path, 'w', encoding='utf-8') as f:
            f.write(SAMPLE_CATEGORIES)
        print("Created sample categories: content/categories.yml")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='postdeck', description='Postdeck - blog builder with post filtering and themes')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter content')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    add_build_arguments(parser)
    subparsers = parser.add_subparsers(dest='command')

    build = subparsers.add_parser('build', help='Build the site (default)')
    add_build_arguments(build)

    filter_cmd = subparsers.add_parser('filter', help='Filter the post cards of a built page')
    filter_cmd.add_argument('page', help='Path to a generated page, e.g. output/index.html')
    filter_cmd.add_argument('--category', type=str, default=ALL_CATEGORIES,
                            help="Category to show (default: 'all')")
    filter_cmd.add_argument('--search', type=str, default='', help='Case-insensitive search text')
    filter_cmd.add_argument('--write', action='store_true',
                            help='Write the filtered visibility back into the page')

    theme = subparsers.add_parser('theme', help='Show or change the theme preference')
    choice = theme.add_mutually_exclusive_group()
    choice.add_argument('--set', type=str, choices=list(THEMES), dest='set_theme',
                        help='Store an explicit theme')
    choice.add_argument('--toggle', action='store_true', help='Switch to the other theme')
    choice.add_argument('--clear', action='store_true', help='Forget the stored theme')
    theme.add_argument('--system', type=str, choices=list(THEMES),
                       help='Color scheme reported by the operating system')
    theme.add_argument('--page', type=str, help='Apply the resolved theme to this generated page')
    theme.add_argument('--preferences', type=str, help='Preferences file to read and write')

    return parser


def add_build_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--output', type=str, help='Output directory for generated site')
    parser.add_argument('--content', type=str, help='Content directory containing markdown files')
    parser.add_argument('--templates', type=str, help='Templates directory')
    parser.add_argument('--assets', type=str, help='Assets directory to copy to output')
    parser.add_argument('--site-title', type=str, help='Site title for metadata')
    parser.add_argument('--site-tagline', type=str, help='Site tagline for metadata')
    parser.add_argument('--site-url', type=str, help='Public URL of the site')
    parser.add_argument('--blog-slug', type=str, help="Custom slug for posts instead of 'blog'")
    parser.add_argument('--minify', action='store_true', default=None, help='Minify CSS and JS assets')


def run_build(settings: Dict[str, Any]) -> int:
    output_dir = os.path.expanduser(settings['output'])
    start_time = time.time()

    generator = Postdeck(
        content_dir=settings['content'],
        templates_dir=settings['templates'],
        output_dir=output_dir,
        site_url=settings['site_url'],
        assets_dir=settings['assets'],
        blog_slug=settings['blog_slug'],
        site_title=settings['site_title'],
        site_tagline=settings['site_tagline'],
        minify=bool(settings['minify']),
        snippet_words=settings['snippet_words'],
        words_per_minute=settings['words_per_minute'],
        debounce_ms=settings['debounce_ms'],
        theme_key=settings['theme_key'],
    )
    generator.build()

    total_time = time.time() - start_time
    generator.logger.info(f"Site build completed in {total_time:.6f} seconds.")
    generator.logger.info(f"Total posts generated: {generator.posts_generated}")
    return 0


def run_filter(args: argparse.Namespace) -> int:
    page = StaticPage.from_file(args.page)
    known = page.filter_categories()
    if args.category != ALL_CATEGORIES and args.category not in known:
        print(f"Warning: no filter button for category '{args.category}'", file=sys.stderr)

    post_filter = PostFilter.for_page(page, state=FilterState(args.category, args.search))
    page.set_active_category(post_filter.state.active_category)
    result = post_filter.refresh()

    if result.show_empty_state:
        print("No posts found.")
    else:
        for title in result.visible_titles:
            print(title)

    if args.write:
        page.save(args.page)
    return 0


def run_theme(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    store = PreferenceStore(args.preferences or settings['preferences_file'])
    page = StaticPage.from_file(args.page) if args.page else None
    system_prefers_dark = None
    if args.system:
        system_prefers_dark = lambda: args.system == DARK

    controller = ThemeController(
        store=store,
        view=page,
        system_prefers_dark=system_prefers_dark,
        storage_key=settings['theme_key'],
    )

    if args.clear:
        controller.clear()
    theme = controller.initialize()
    if args.set_theme:
        theme = controller.set_theme(args.set_theme)
    elif args.toggle:
        theme = controller.toggle()

    source = 'stored' if controller.saved_theme() else 'system' if args.system else 'default'
    print(f"{theme} ({source})")

    if page is not None:
        page.save(args.page)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.init:
            settings_loader = PostdeckSettings()
            config_path = settings_loader.create_sample_config(args.init)
            print(f"Created sample configuration file: {config_path}")
            create_starter_structure()
            print("\nEdit the configuration and posts, then run 'postdeck' to build your site.")
            return 0

        settings_loader = PostdeckSettings()
        settings_loader.load_settings()

        if args.command == 'filter':
            return run_filter(args)
        if args.command == 'theme':
            return run_theme(args, settings_loader.settings)

        build_keys = ['output', 'content', 'templates', 'assets', 'site_title',
                      'site_tagline', 'site_url', 'blog_slug', 'minify']
        args_dict = {key: getattr(args, key, None) for key in build_keys}
        return run_build(settings_loader.merge_with_args(args_dict))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
