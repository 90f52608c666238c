import os
import re
import html
import math
import shutil
import logging
from datetime import datetime, date

import yaml
import mistune
import rjsmin
import csscompressor
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, TemplateSyntaxError

from .filtering import ALL_CATEGORIES

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
PACKAGE_TEMPLATES_DIR = os.path.join(PACKAGE_DIR, 'templates')
PACKAGE_ASSETS_DIR = os.path.join(PACKAGE_DIR, 'assets')

UNCATEGORIZED = 'uncategorized'
EXCERPT_WORDS = 30


def reading_time(text, words_per_minute=200):
    """Whole minutes needed to read ``text``, never less than one."""
    words = len(text.split())
    return max(1, math.ceil(words / words_per_minute))


def plain_text(html_content):
    """Strip tags and entities, collapsing whitespace."""
    text = re.sub(r'<[^>]+>', ' ', html_content)
    text = html.unescape(text)
    return ' '.join(text.split())


def create_markdown_parser(lazy_images=False):
    """Create a Mistune markdown parser with a custom renderer.

    With ``lazy_images`` the image URL goes into ``data-src`` and the client
    script swaps it in once the image scrolls into view.
    """
    class CustomRenderer(mistune.HTMLRenderer):
        def __init__(self):
            super().__init__(escape=False)

        def block_code(self, code, info=None):
            escaped_code = mistune.escape(code)
            if info:
                language = mistune.escape(info.split()[0])
                return '<pre><code class="language-{}">{}</code></pre>\n'.format(language, escaped_code)
            return '<pre><code>{}</code></pre>\n'.format(escaped_code)

        def image(self, text, url, title=None):
            if not lazy_images:
                return super().image(text, url, title)
            alt = html.escape(plain_text(text))
            img = f'<img data-src="{self.safe_url(url)}" alt="{alt}"'
            if title:
                img += f' title="{html.escape(title)}"'
            return img + ' />'
    return mistune.create_markdown(
        renderer=CustomRenderer(),
        plugins=['table', 'task_lists', 'strikethrough']
    )


class FileProcessor:
    """Turns one markdown post into a post page plus the data for its card."""

    def __init__(self, templates_dir, output_dir, categories, authors, site_url, blog_slug,
                 site_title=None, snippet_words=50, words_per_minute=200, page_globals=None,
                 lazy_images=False):
        self.templates_dir = templates_dir
        self.output_dir = output_dir
        self.categories = categories
        self.authors = authors
        self.site_url = site_url
        self.blog_slug = blog_slug
        self.site_title = site_title
        self.snippet_words = snippet_words
        self.words_per_minute = words_per_minute
        self.logger = logging.getLogger('FileProcessor')

        self.env = Environment(loader=FileSystemLoader(templates_dir))
        self.markdown_parser = create_markdown_parser(lazy_images)
        self.env.globals.update(page_globals or {})

    def markdown_filter(self, text):
        """Convert markdown text to HTML."""
        return self.markdown_parser(text)

    def parse_date(self, date_str):
        """Parse a date string."""
        if isinstance(date_str, datetime):
            return date_str
        elif isinstance(date_str, date):
            return datetime(date_str.year, date_str.month, date_str.day)
        elif isinstance(date_str, str):
            for fmt in ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d', '%b %d, %Y']:
                try:
                    return datetime.strptime(date_str, fmt)
                except ValueError:
                    continue
        return datetime.min

    def format_date(self, date_str=None):
        """Format a date string for display."""
        if date_str is None:
            return ''
        date_obj = self.parse_date(date_str)
        if date_obj == datetime.min:
            return ''
        return date_obj.strftime('%B %d, %Y')

    def parse_markdown_with_metadata(self, filepath):
        """Parse a markdown file with YAML front matter."""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to read markdown file {filepath}: {e}")
            return {}, ""

        parts = content.split('---', 2)
        if content.lstrip().startswith('---') and len(parts) >= 3:
            try:
                metadata = yaml.safe_load(parts[1]) or {}
            except yaml.YAMLError as e:
                self.logger.error(f"Invalid YAML front matter in {filepath}: {e}")
                metadata = {}
            if not isinstance(metadata, dict):
                metadata = {}
            markdown_content = parts[2].strip()
        else:
            metadata = {}
            markdown_content = content

        return metadata, markdown_content

    def get_author_name(self, author_id):
        """Get author name from ID, passing plain names through."""
        if author_id is None:
            return ''
        author = self.authors.get(author_id)
        if author is None:
            return str(author_id)
        if isinstance(author, dict):
            return author.get('name', str(author_id))
        return str(author)

    def get_category(self, metadata):
        """Card category slug: ``category``, else the first of ``categories``."""
        category = metadata.get('category')
        if category is None:
            categories = metadata.get('categories') or []
            if isinstance(categories, (list, tuple)) and categories:
                category = categories[0]
            elif isinstance(categories, str):
                category = categories
        category = str(category).strip() if category is not None else ''
        if not category or category == ALL_CATEGORIES:
            return UNCATEGORIZED
        return category

    def get_category_name(self, slug):
        name = self.categories.get(slug)
        if isinstance(name, dict):
            name = name.get('name')
        return name or slug.replace('-', ' ').title()

    def generate_excerpt(self, text):
        """Generate an excerpt from plain text."""
        words = text.split()
        if len(words) > EXCERPT_WORDS:
            return ' '.join(words[:EXCERPT_WORDS]) + '...'
        return text

    def generate_snippet(self, text):
        """Lower-cased leading words of the body, for the card's search payload."""
        return ' '.join(text.split()[:self.snippet_words]).lower()

    def calculate_relative_path(self, current_output_dir):
        """Calculate relative path from current directory to root."""
        rel_path = os.path.relpath(self.output_dir, current_output_dir)
        if rel_path == '.':
            return ''
        return rel_path.replace(os.sep, '/') + '/'

    def build_post(self, post, html_content, output_dir):
        """Render a single post page."""
        os.makedirs(output_dir, exist_ok=True)
        output_file_path = os.path.join(output_dir, 'index.html')
        metadata = post['metadata']
        template_part = metadata.get('template')
        template_name = f"post-{template_part}.html" if template_part else 'post.html'

        try:
            template = self.env.get_template(template_name)
            rendered_html = template.render(
                content=html_content,
                post=post,
                title=post['title'],
                seo_description=metadata.get('description', post['excerpt']),
                lang=metadata.get('lang', 'en'),
                relative_path=self.calculate_relative_path(output_dir),
                site_url=self.site_url,
                site_title=self.site_title,
            )
        except (TemplateNotFound, TemplateSyntaxError) as e:
            self.logger.error(f"Template error for {post['slug']}: {e}")
            return False

        try:
            with open(output_file_path, 'w', encoding='utf-8') as output_file:
                output_file.write(rendered_html)
            self.logger.debug(f"Generated HTML: {output_file_path}")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write HTML file {output_file_path}: {e}")
            return False
        return True

    def process(self, file_path):
        """Process a single markdown post; returns the card data or None."""
        metadata, markdown_content = self.parse_markdown_with_metadata(file_path)
        html_content = self.markdown_filter(markdown_content)
        text = plain_text(html_content)

        slug = str(metadata.get('slug') or os.path.splitext(os.path.basename(file_path))[0])
        title = metadata.get('title') if isinstance(metadata.get('title'), str) else 'Untitled'
        category = self.get_category(metadata)
        read_time = metadata.get('read_time') or reading_time(text, self.words_per_minute)

        post = {
            'title': title,
            'slug': slug,
            'permalink': f"{self.blog_slug}/{slug}/",
            'date': self.format_date(metadata.get('date')),
            'parsed_date': self.parse_date(metadata.get('date')),
            'author': self.get_author_name(metadata.get('author')),
            'category': category,
            'category_name': self.get_category_name(category),
            'excerpt': metadata.get('excerpt') or self.generate_excerpt(text),
            'snippet': self.generate_snippet(text),
            'read_time': read_time,
            'metadata': metadata,
        }

        output_dir = os.path.join(self.output_dir, self.blog_slug, slug)
        if not self.build_post(post, html_content, output_dir):
            return None
        return post


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        allowed_messages = [
            "Site build completed in",
            "Total posts generated:",
            "Building index page",
            "Building 404 page",
        ]
        return record.levelno >= logging.WARNING or any(msg in record.getMessage() for msg in allowed_messages)


class Postdeck:
    def __init__(self, content_dir='content', templates_dir='templates', output_dir='output', site_url=None,
                 assets_dir=None, blog_slug='blog', site_title=None, site_tagline=None, minify=False,
                 snippet_words=50, words_per_minute=200, debounce_ms=300, theme_key='theme',
                 lazy_images=True, log_dir=None):
        self.content_dir = content_dir
        self.templates_dir = templates_dir
        self.output_dir = output_dir
        self.site_url = site_url.rstrip('/') if site_url else site_url
        self.assets_dir = assets_dir
        self.blog_slug = blog_slug
        self.site_title = site_title
        self.site_tagline = site_tagline
        self.minify = minify
        self.snippet_words = snippet_words
        self.words_per_minute = words_per_minute
        self.lazy_images = lazy_images
        # Read by the client script from <body> data attributes on every page
        self.page_globals = {
            'minify': minify,
            'debounce_ms': debounce_ms,
            'theme_key': theme_key,
        }
        self.log_dir = log_dir or os.path.join(os.getcwd(), 'logs')
        self.posts_generated = 0
        self.posts = []

        # Fall back to the bundled templates when the configured directory is missing
        if not os.path.isabs(self.templates_dir) and not os.path.exists(self.templates_dir):
            self.templates_dir = PACKAGE_TEMPLATES_DIR

        self.setup_logging()
        self.create_output_dir()

        self.categories = self.load_categories()
        self.authors = self.load_yaml_mapping('authors')

        self.env = Environment(loader=FileSystemLoader(self.templates_dir))
        self.env.globals.update(self.page_globals)

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Postdeck')
        self.logger.setLevel(logging.DEBUG)

        if not self.logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(console_handler)

            os.makedirs(self.log_dir, exist_ok=True)
            log_filename = datetime.now().strftime('postdeck_%Y-%m-%d_%H-%M-%S.log')
            file_handler = logging.FileHandler(os.path.join(self.log_dir, log_filename))
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            self.logger.addHandler(file_handler)

    def create_output_dir(self):
        """Create output directory, removing only what a previous build generated."""
        if not os.path.exists(self.output_dir):
            os.makedirs(self.output_dir, exist_ok=True)
            return

        generated = {'index.html', '404.html', 'assets', self.blog_slug}
        preserved_items = []
        for item in os.listdir(self.output_dir):
            item_path = os.path.join(self.output_dir, item)
            if item in generated:
                if os.path.isdir(item_path):
                    shutil.rmtree(item_path)
                else:
                    os.remove(item_path)
            else:
                preserved_items.append(item)

        if preserved_items:
            self.logger.info(f"Preserved non-Postdeck files: {', '.join(sorted(preserved_items))}")

    def load_yaml_mapping(self, type_name):
        """Load a mapping from ``<content>/<type_name>.yml``."""
        file_path = os.path.join(self.content_dir, f'{type_name}.yml')
        if not os.path.exists(file_path):
            return {}
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to read {type_name} file {file_path}: {e}")
            return {}
        except yaml.YAMLError as e:
            self.logger.error(f"Invalid YAML in {type_name} file {file_path}: {e}")
            return {}
        if isinstance(data, list):
            return {str(item): str(item).replace('-', ' ').title() for item in data}
        if not isinstance(data, dict):
            self.logger.error(f"Expected a mapping in {file_path}, got {type(data).__name__}")
            return {}
        return data

    def load_categories(self):
        """Category slug -> display name, in file order."""
        categories = {}
        for slug, value in self.load_yaml_mapping('categories').items():
            if isinstance(value, dict):
                value = value.get('name')
            categories[str(slug)] = value or str(slug).replace('-', ' ').title()
        return categories

    def copy_assets_to_output(self):
        """Copy bundled assets, then the site's own assets over them."""
        output_assets_dir = os.path.join(self.output_dir, 'assets')
        sources = [PACKAGE_ASSETS_DIR]
        if self.assets_dir and os.path.exists(self.assets_dir):
            sources.append(self.assets_dir)
        elif self.assets_dir:
            self.logger.warning(f"Assets directory not found: {self.assets_dir}")

        for source in sources:
            try:
                shutil.copytree(source, output_assets_dir, dirs_exist_ok=True)
                self.logger.debug(f"Copied assets from {source}")
            except (IOError, OSError, PermissionError, shutil.Error) as e:
                self.logger.error(f"Failed to copy assets from {source}: {e}")

    def minify_assets(self):
        """Minify CSS and JS assets."""
        assets_output_dir = os.path.join(self.output_dir, 'assets')
        minifiers = [
            ('css', '.css', '.min.css', csscompressor.compress),
            ('js', '.js', '.min.js', rjsmin.jsmin),
        ]
        for subdir, ext, min_ext, minify in minifiers:
            asset_dir = os.path.join(assets_output_dir, subdir)
            if not os.path.exists(asset_dir):
                continue
            for file in os.listdir(asset_dir):
                if not file.endswith(ext) or file.endswith(min_ext):
                    continue
                path = os.path.join(asset_dir, file)
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        source = f.read()
                    minified_path = os.path.join(asset_dir, file[:-len(ext)] + min_ext)
                    with open(minified_path, 'w', encoding='utf-8') as f:
                        f.write(minify(source))
                    self.logger.debug(f"Minified {subdir.upper()}: {file}")
                except (IOError, OSError, PermissionError) as e:
                    self.logger.error(f"Failed to minify {file}: {e}")

    def get_markdown_files(self, directory):
        """Get all markdown files from a directory, sorted by name."""
        if not os.path.exists(directory):
            return []
        return [os.path.join(directory, file) for file in sorted(os.listdir(directory)) if file.endswith('.md')]

    def render_template(self, template_name, **context):
        """Render a Jinja2 template."""
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except (TemplateNotFound, TemplateSyntaxError) as e:
            self.logger.error(f"Template error: {e}")
            return None

    def build_posts(self):
        """Build every post page and collect card data."""
        post_files = self.get_markdown_files(os.path.join(self.content_dir, 'posts'))
        if not post_files:
            self.logger.warning("No markdown files found to process.")
            return

        processor = FileProcessor(
            self.templates_dir, self.output_dir, self.categories, self.authors,
            self.site_url, self.blog_slug, site_title=self.site_title,
            snippet_words=self.snippet_words, words_per_minute=self.words_per_minute,
            page_globals=self.page_globals, lazy_images=self.lazy_images
        )
        for file_path in post_files:
            try:
                post = processor.process(file_path)
            except Exception as e:
                self.logger.error(f"Error processing {file_path}: {e}")
                continue
            if post:
                self.posts.append(post)
                self.posts_generated += 1

    def sorted_posts(self):
        """Newest first; undated posts last, ties by title."""
        by_title = sorted(self.posts, key=lambda p: p['title'].lower())
        return sorted(by_title, key=lambda p: p['parsed_date'], reverse=True)

    def filter_categories(self):
        """
        Filter buttons for the index page, after the reserved "all" button.

        Declared categories come first in file order. A category used by a
        post but missing from categories.yml still gets a button so the card
        stays reachable, and the gap is logged.
        """
        buttons = [{'slug': slug, 'name': name} for slug, name in self.categories.items()]
        known = set(self.categories)
        for post in self.sorted_posts():
            if post['category'] not in known:
                self.logger.warning(
                    f"Category '{post['category']}' used by '{post['title']}' has no filter button in categories.yml"
                )
                known.add(post['category'])
                buttons.append({'slug': post['category'], 'name': post['category_name']})
        return buttons

    def build_index_page(self):
        """Render every post card on the index page."""
        html_output = self.render_template(
            'index.html',
            posts=self.sorted_posts(),
            filter_categories=self.filter_categories(),
            all_category=ALL_CATEGORIES,
            relative_path='',
            site_url=self.site_url,
            site_title=self.site_title,
            site_tagline=self.site_tagline,
            title=self.site_title or 'Home',
            minify=self.minify,
        )
        if html_output is None:
            return None

        output_path = os.path.join(self.output_dir, 'index.html')
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(html_output)
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write index page {output_path}: {e}")
            return None

        self.logger.info("Building index page")
        return output_path

    def build_404_page(self):
        """Build 404 error page."""
        html_output = self.render_template(
            '404.html',
            relative_path='',
            site_url=self.site_url,
            site_title=self.site_title,
            title='Page not found',
            minify=self.minify,
        )
        if html_output:
            with open(os.path.join(self.output_dir, '404.html'), 'w', encoding='utf-8') as f:
                f.write(html_output)
        self.logger.info("Building 404 page")

    def build(self):
        """Main build process."""
        self.logger.debug("Starting site build...")
        self.copy_assets_to_output()
        if self.minify:
            self.minify_assets()
        self.build_posts()
        self.build_index_page()
        self.build_404_page()
        return self.posts_generated
