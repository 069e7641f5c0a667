import os
import shutil
import json
import logging
from datetime import datetime, timezone
from email.utils import formatdate, format_datetime
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from .collector import ContentCollector
from .errors import BuildError
from .markdown_renderer import create_markdown_parser
from .settings import GardenerSettings, SiteConfig

PACKAGE_TEMPLATES = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')
SEARCH_DATE_FORMAT = '%b %d, %Y'
REDIRECTS = "/* /404.html 404\n"


class InfoFilter(logging.Filter):
    """Filter to allow warnings, errors and selected INFO messages in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total posts generated:",
            "Total notes generated:",
            "Total tag pages generated:",
            "Skipped files:",
            "Build complete!",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def human_date(value):
    """Format a date like 'Jan 02, 2006'; the zero date formats as ''."""
    if not value or value == datetime.min:
        return ''
    return value.strftime(SEARCH_DATE_FORMAT)


def rfc822(value):
    """RFC 822 date for feeds; the zero date formats as ''."""
    if not value or value == datetime.min:
        return ''
    return format_datetime(value.replace(tzinfo=timezone.utc))


def sort_by_date(items):
    """Newest first; items with equal dates keep their encounter order."""
    return sorted(items, key=lambda item: item.date, reverse=True)


def setup_logging(log_dir=None):
    """Set up logging configuration for the Gardener logger tree."""
    logger = logging.getLogger('Gardener')
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        # Console handler with filter
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(InfoFilter())
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(console_handler)

        # File handler for all logs
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            log_filename = datetime.now().strftime('gardener_%Y-%m-%d_%H-%M-%S.log')
            file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            file_handler.setFormatter(file_formatter)
            logger.addHandler(file_handler)

    return logger


class Gardener:
    def __init__(self, root_dir='.', settings=None, content_dir=None, notes_dir=None,
                 templates_dir=None, output_dir=None, static_dir=None, assets_dir=None,
                 log_dir=None):
        self.root_dir = root_dir
        self.content_dir = content_dir or os.path.join(root_dir, 'content')
        self.notes_dir = notes_dir or os.path.join(root_dir, 'notes')
        self.templates_dir = templates_dir or os.path.join(root_dir, 'templates')
        self.output_dir = output_dir or os.path.join(root_dir, 'public')
        self.static_dir = static_dir or os.path.join(root_dir, 'static')
        self.assets_dir = assets_dir or os.path.join(root_dir, 'assets')
        self.logger = setup_logging(log_dir)

        if settings is None:
            settings = GardenerSettings(root_dir).load_settings()
        self.settings = settings
        self.base_url = SiteConfig.from_settings(settings).base_url

        self.env = None
        self.site = None
        self.report = None
        self.markdown_parser = create_markdown_parser()

    def markdown_filter(self, text):
        """Convert markdown text to HTML."""
        return self.markdown_parser(text)

    def create_output_dir(self):
        """Remove the previous output directory and create an empty one."""
        output = os.path.realpath(self.output_dir)
        root = os.path.realpath(self.root_dir)
        if output == root or root.startswith(output + os.sep):
            raise BuildError(f"Refusing to clean output directory {self.output_dir}: it contains the project")
        try:
            if os.path.exists(self.output_dir):
                shutil.rmtree(self.output_dir)
            os.makedirs(self.output_dir, exist_ok=True)
        except (IOError, OSError, PermissionError) as e:
            raise BuildError(f"Failed to create output directory {self.output_dir}: {e}")

    def load_templates(self):
        """Set up the Jinja2 environment, preferring the project's own templates."""
        templates_dir = self.templates_dir
        if not os.path.isdir(templates_dir):
            self.logger.debug(f"Templates directory {templates_dir} not found, using package templates")
            templates_dir = PACKAGE_TEMPLATES
        if not os.path.isdir(templates_dir):
            raise BuildError(f"Templates directory not found: {templates_dir}")

        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(['html', 'xml']),
        )
        self.env.filters['human_date'] = human_date
        self.env.filters['rfc822'] = rfc822
        return self.env

    def render_template(self, template_name, **context):
        """Render a Jinja2 template; template names may be a list of candidates."""
        try:
            template = self.env.get_or_select_template(template_name)
            return template.render(site=self.site, **context)
        except TemplateError as e:
            raise BuildError(f"Template error in {template_name}: {e}")

    def write_file(self, path, text):
        """Write one output file, creating its directory. Failures are fatal."""
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(text)
            self.logger.debug(f"Generated: {path}")
        except (IOError, OSError, PermissionError) as e:
            raise BuildError(f"Failed to write {path}: {e}")

    def output_path(self, *parts):
        return os.path.join(self.output_dir, *parts)

    def build_posts_and_notes(self):
        """Write one clean-URL page per post and per note."""
        for post in self.report.posts:
            html = self.render_template('post.html', post=post)
            self.write_file(self.output_path(post.slug, 'index.html'), html)

        for note in self.report.notes:
            rel_path = os.path.relpath(note.source_path, self.notes_dir)
            clean_path = os.path.splitext(rel_path)[0]
            html = self.render_template(['note.html', 'post.html'], post=note)
            self.write_file(self.output_path('notes', clean_path, 'index.html'), html)

    def build_index_page(self):
        """Homepage listing posts, newest first."""
        html = self.render_template('index.html', posts=sort_by_date(self.report.posts))
        self.write_file(self.output_path('index.html'), html)

    def build_notes_page(self):
        """Flat notes index."""
        notes = sorted(self.report.notes, key=lambda n: n.title.lower())
        html = self.render_template('notes.html', notes=notes)
        self.write_file(self.output_path('notes.html'), html)

    def build_tag_pages(self, tags):
        """One page per tag. A failing tag page is logged and skipped."""
        generated = 0
        for tag, items in tags.items():
            output_file = self.output_path('tags', f'{tag}.html')
            try:
                if os.sep in tag or '/' in tag or tag.startswith('.'):
                    raise BuildError("unsafe tag name for a file path")
                html = self.render_template('tag.html', tag=tag, posts=sort_by_date(items))
                self.write_file(output_file, html)
                generated += 1
            except Exception as e:
                self.logger.error(f"Skipping tag page for '{tag}': {e}")
                self.report.tag_failures.append(tag)
        self.logger.info(f"Total tag pages generated: {generated}")
        return generated

    def search_records(self):
        records = []
        for item in self.report.posts + self.report.notes:
            records.append({
                'title': item.title,
                'url': item.url,
                'date': human_date(item.date),
                'content': item.content,
                'type': item.kind,
                'tags': ','.join(item.tags),
            })
        return records

    def generate_search_index(self):
        """Write search.json with one record per post and note."""
        content = json.dumps(self.search_records(), ensure_ascii=False) + '\n'
        self.write_file(self.output_path('search.json'), content)

    def generate_xml_sitemap(self):
        html = self.render_template('sitemap.xml', posts=self.report.posts, notes=self.report.notes)
        self.write_file(self.output_path('sitemap.xml'), html)

    def generate_robots_txt(self):
        self.write_file(self.output_path('robots.txt'), self.render_template('robots.txt'))

    def generate_rss_feed(self):
        """RSS feed of posts and notes together, newest first."""
        items = sort_by_date(self.report.posts + self.report.notes)
        rss = self.render_template('rss.xml', posts=items, build_date=formatdate(localtime=True))
        self.write_file(self.output_path('rss.xml'), rss)

    def build_404_page(self):
        self.write_file(self.output_path('404.html'), self.render_template('404.html'))

    def write_redirects(self):
        """Host redirect rules (Netlify / Cloudflare Pages) sending unknown paths to 404.html."""
        self.write_file(self.output_path('_redirects'), REDIRECTS)

    def copy_static_dir(self, source_dir, name):
        """Copy a directory verbatim into the output. Failures are logged per file."""
        dest_root = self.output_path(name)
        os.makedirs(dest_root, exist_ok=True)
        if not os.path.isdir(source_dir):
            self.logger.debug(f"No {name} directory at {source_dir}")
            return 0

        copied = 0
        for dirpath, dirnames, filenames in os.walk(source_dir, onerror=self._log_walk_error):
            dest_dir = os.path.join(dest_root, os.path.relpath(dirpath, source_dir))
            for filename in filenames:
                source = os.path.join(dirpath, filename)
                try:
                    os.makedirs(dest_dir, exist_ok=True)
                    shutil.copyfile(source, os.path.join(dest_dir, filename))
                    copied += 1
                except (IOError, OSError, PermissionError) as e:
                    self.logger.error(f"Failed to copy {source}: {e}")
                    self.report.asset_failures.append(source)
        self.logger.debug(f"Copied {copied} files from {source_dir}")
        return copied

    def _log_walk_error(self, error):
        self.logger.warning(f"Skipping unreadable path while copying assets: {error}")

    def build(self):
        """Main build process."""
        self.logger.info("Starting site build...")
        self.create_output_dir()
        self.load_templates()

        collector = ContentCollector(self.markdown_parser, self.base_url, self.output_dir)
        collection = collector.collect(self.content_dir, self.notes_dir)
        self.report = collection.report
        self.site = SiteConfig.from_settings(
            self.settings,
            home_content=collection.home_content,
            notes_tree=collection.notes_tree,
        )

        self.build_posts_and_notes()
        self.build_index_page()
        self.build_notes_page()
        self.build_tag_pages(collection.tags)
        self.generate_search_index()
        self.generate_xml_sitemap()
        self.generate_robots_txt()
        self.generate_rss_feed()
        self.build_404_page()
        self.write_redirects()

        self.report.assets_copied += self.copy_static_dir(self.static_dir, 'static')
        self.report.assets_copied += self.copy_static_dir(self.assets_dir, 'assets')

        self.logger.info(f"Total posts generated: {len(self.report.posts)}")
        self.logger.info(f"Total notes generated: {len(self.report.notes)}")
        if self.report.skipped:
            self.logger.info(f"Skipped files: {', '.join(self.report.skipped_paths)}")
        return self.report
