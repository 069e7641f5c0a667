"""
Notes tree traversal.

walk_notes() is the one place that decides which entries of the notes
directory are navigation nodes, which are content and which are plain
assets. The content collector and the navigation tree both come out of the
same pass, so the exclusion rules cannot drift apart.
"""

import logging
import os
from typing import NamedTuple, Tuple

from .errors import FrontmatterError
from .frontmatter import read_document

IMAGES_DIR = 'images'
INDEX_FILE = '_index.md'
MARKDOWN_SUFFIX = '.md'

logger = logging.getLogger('Gardener.tree')


class TreeNode(NamedTuple):
    """One entry of the notes navigation."""
    name: str
    url: str = ''
    is_dir: bool = False
    title: str = ''
    children: Tuple['TreeNode', ...] = ()


def note_url(base_url, rel_path):
    """Clean URL of a note given its path relative to the notes root."""
    rel_path = rel_path.replace(os.sep, '/')
    if rel_path.endswith(MARKDOWN_SUFFIX):
        rel_path = rel_path[:-len(MARKDOWN_SUFFIX)]
    return f"{base_url}notes/{rel_path}"


def is_hidden(name):
    return name.startswith('.')


def read_title(path):
    """Frontmatter title of a note, or None when it has none or cannot be read."""
    try:
        document = read_document(path)
    except (OSError, UnicodeDecodeError, FrontmatterError) as e:
        logger.debug(f"Could not read title from {path}: {e}")
        return None
    return document.get('title') or None


def walk_notes(root, base_url, on_note=None, on_asset=None):
    """
    Walk the notes directory once and return its navigation tree.

    Args:
        root: Notes directory. A missing directory yields an empty tree.
        base_url: Site base URL, ending in a slash.
        on_note: Called as ``on_note(path, rel_path)`` for every markdown note;
            its return value, when truthy, is used as the node title.
        on_asset: Called as ``on_asset(path, rel_path)`` for every
            non-markdown file, including everything under ``images/``.

    Returns:
        List of TreeNode for the direct children of ``root``.

    Raises:
        OSError: A directory inside the tree could not be listed.
    """
    if not os.path.isdir(root):
        logger.warning(f"Notes directory not found: {root}")
        return []
    return _walk_dir(root, root, base_url, on_note, on_asset)


def _walk_dir(directory, root, base_url, on_note, on_asset):
    nodes = []
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        name = entry.name
        if is_hidden(name) or name == INDEX_FILE:
            continue
        rel_path = os.path.relpath(entry.path, root)

        if entry.is_dir():
            if name == IMAGES_DIR:
                _walk_assets(entry.path, root, on_asset)
                continue
            children = _walk_dir(entry.path, root, base_url, on_note, on_asset)
            nodes.append(TreeNode(name=name, is_dir=True, children=tuple(children)))
        elif name.endswith(MARKDOWN_SUFFIX):
            if on_note is not None:
                title = on_note(entry.path, rel_path)
            else:
                title = read_title(entry.path)
            nodes.append(TreeNode(
                name=name,
                url=note_url(base_url, rel_path),
                title=title or name,
            ))
        elif on_asset is not None:
            on_asset(entry.path, rel_path)

    return nodes


def _walk_assets(directory, root, on_asset):
    """Hand every visible file below directory to on_asset, without parsing."""
    if on_asset is None:
        return
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(d for d in dirnames if not is_hidden(d))
        for filename in sorted(filenames):
            if is_hidden(filename):
                continue
            path = os.path.join(dirpath, filename)
            on_asset(path, os.path.relpath(path, root))


def build_notes_tree(root, base_url):
    """Navigation tree of the notes directory, without collecting content."""
    return walk_notes(root, base_url)
