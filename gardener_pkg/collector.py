"""
Content collection for a Gardener build.

The collector reads posts from the flat content directory and notes from the
notes tree, renders each one, and records everything the emitter needs:
content items, the tag index, the notes navigation tree and the home page
body. Files that fail to parse or render are recorded as SkippedFile entries
instead of stopping the build.
"""

import logging
import os
import re
import shutil
from collections import OrderedDict
from datetime import datetime
from typing import NamedTuple, Tuple

from .errors import FrontmatterError
from .frontmatter import read_document, parse_tags
from .tree import INDEX_FILE, MARKDOWN_SUFFIX, note_url, walk_notes

DATE_FORMAT = '%Y-%m-%d'
DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}\Z")
DEFAULT_HOME_CONTENT = '<p>Welcome to my digital garden.</p>'

logger = logging.getLogger('Gardener.collector')


class ContentItem(NamedTuple):
    """A rendered post or note."""
    title: str
    description: str
    date: datetime
    tags: Tuple[str, ...]
    content: str
    url: str
    slug: str
    kind: str
    source_path: str = ''


class SkippedFile(NamedTuple):
    path: str
    reason: str


def parse_date(value):
    """Parse a YYYY-MM-DD date; anything else becomes datetime.min."""
    if not isinstance(value, str) or not DATE_RE.match(value):
        return datetime.min
    try:
        return datetime.strptime(value, DATE_FORMAT)
    except (TypeError, ValueError):
        return datetime.min


class TagIndex:
    """Items grouped by lower-cased tag, in the order they were added."""

    def __init__(self):
        self._tags = OrderedDict()

    def add(self, item):
        seen = set()
        for tag in item.tags:
            key = tag.lower()
            if key in seen:
                continue
            seen.add(key)
            self._tags.setdefault(key, []).append(item)

    def items(self):
        return self._tags.items()

    def __getitem__(self, tag):
        return self._tags[tag.lower()]

    def __contains__(self, tag):
        return tag.lower() in self._tags

    def __iter__(self):
        return iter(self._tags)

    def __len__(self):
        return len(self._tags)


class BuildReport:
    """What a build produced and what it had to leave out."""

    def __init__(self):
        self.posts = []
        self.notes = []
        self.skipped = []
        self.assets_copied = 0
        self.asset_failures = []
        self.tag_failures = []
        self.tree_failures = []

    def skip(self, path, reason):
        self.skipped.append(SkippedFile(path, reason))

    @property
    def skipped_paths(self):
        return [s.path for s in self.skipped]


class Collection:
    """Everything gathered by one collection pass."""

    def __init__(self, report, tags, notes_tree, home_content):
        self.report = report
        self.tags = tags
        self.notes_tree = notes_tree
        self.home_content = home_content

    @property
    def posts(self):
        return self.report.posts

    @property
    def notes(self):
        return self.report.notes


class ContentCollector:
    def __init__(self, markdown, base_url, output_dir):
        self.markdown = markdown
        self.base_url = base_url
        self.output_dir = output_dir
        self.report = BuildReport()
        self.tags = TagIndex()

    def collect(self, content_dir, notes_dir):
        """Collect posts, then notes, in a single pass over each directory."""
        self.collect_posts(content_dir)
        try:
            notes_tree = walk_notes(
                notes_dir,
                self.base_url,
                on_note=self._visit_note,
                on_asset=self._copy_note_asset,
            )
        except OSError as e:
            logger.warning(f"Could not build notes tree: {e}")
            self.report.tree_failures.append(str(e))
            notes_tree = []
        home_content = self.render_home(notes_dir)
        logger.info(f"Collected {len(self.report.posts)} posts and {len(self.report.notes)} notes")
        return Collection(self.report, self.tags, notes_tree, home_content)

    def collect_posts(self, content_dir):
        if not os.path.isdir(content_dir):
            logger.warning(f"Content directory not found: {content_dir}")
            return
        for name in sorted(os.listdir(content_dir)):
            path = os.path.join(content_dir, name)
            if name == INDEX_FILE or not name.endswith(MARKDOWN_SUFFIX) or not os.path.isfile(path):
                continue
            slug = name[:-len(MARKDOWN_SUFFIX)]
            item = self.process_file(path, url=self.base_url + slug, kind='post')
            if item is not None:
                self.report.posts.append(item)
                self.tags.add(item)

    def _visit_note(self, path, rel_path):
        item = self.process_file(path, url=note_url(self.base_url, rel_path), kind='note')
        if item is None:
            return None
        self.report.notes.append(item)
        self.tags.add(item)
        return item.title

    def process_file(self, path, url, kind):
        """Build a ContentItem from a markdown file, or record why it was skipped."""
        try:
            document = read_document(path)
        except (OSError, UnicodeDecodeError) as e:
            return self._skip(path, f"unreadable: {e}")
        except FrontmatterError as e:
            return self._skip(path, str(e))

        try:
            content = self.markdown(document.body)
        except Exception as e:
            return self._skip(path, f"render failed: {e}")

        name = os.path.basename(path)
        return ContentItem(
            title=document.get('title') or name,
            description=document.get('description'),
            date=parse_date(document.get('date')),
            tags=tuple(parse_tags(document.get('tags'))),
            content=content,
            url=url,
            slug=name[:-len(MARKDOWN_SUFFIX)],
            kind=kind,
            source_path=path,
        )

    def _skip(self, path, reason):
        logger.warning(f"Skipping {path}: {reason}")
        self.report.skip(path, reason)
        return None

    def _copy_note_asset(self, path, rel_path):
        dest = os.path.join(self.output_dir, 'notes', rel_path)
        try:
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            shutil.copyfile(path, dest)
            self.report.assets_copied += 1
            logger.debug(f"Copied note asset: {path} -> {dest}")
        except (IOError, OSError, PermissionError) as e:
            logger.error(f"Failed to copy note asset {path}: {e}")
            self.report.asset_failures.append(path)

    def render_home(self, notes_dir):
        """Render notes/_index.md, falling back to a short welcome paragraph."""
        path = os.path.join(notes_dir, INDEX_FILE)
        if not os.path.isfile(path):
            return DEFAULT_HOME_CONTENT
        try:
            document = read_document(path)
            return self.markdown(document.body) or DEFAULT_HOME_CONTENT
        except (OSError, UnicodeDecodeError, FrontmatterError) as e:
            logger.warning(f"Could not render home content from {path}: {e}")
            return DEFAULT_HOME_CONTENT
