"""Test configuration and fixtures for Gardener tests."""

import pytest
import tempfile
import shutil
import json
from pathlib import Path

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from gardener_pkg.markdown_renderer import create_markdown_parser


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def make_file():
    """Write a text file, creating parent directories."""
    def _make_file(path, text=''):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
        return path
    return _make_file


@pytest.fixture
def markdown():
    """A fresh markdown parser."""
    return create_markdown_parser()


@pytest.fixture
def notes_dir(temp_dir, make_file):
    """Create a notes tree with folders, images, hidden files and an index page."""
    root = Path(temp_dir) / 'notes'
    make_file(root / '_index.md', "---\ntitle: Home\n---\nHello **garden**\n")
    make_file(root / 'alpha.md', "---\ntitle: Alpha Note\ndate: 2024-02-01\ntags: [go, web]\n---\n# Alpha\n")
    make_file(root / 'beta.md', "No frontmatter here\n")
    make_file(root / 'projects' / 'gamma.md', "---\ntitle: Gamma\ntags: 'Go'\n---\n## Setup\n")
    make_file(root / 'projects' / 'diagram.svg', "<svg></svg>")
    make_file(root / 'images' / 'pic.png', "not really a png")
    make_file(root / 'images' / 'hidden.md', "---\ntitle: Not a note\n---\n")
    make_file(root / '.obsidian' / 'config.md', "---\ntitle: Secret\n---\n")
    make_file(root / '.draft.md', "---\ntitle: Draft\n---\n")
    return str(root)


@pytest.fixture
def project_dir(temp_dir, make_file):
    """Create a complete project: config, posts, notes, static and assets."""
    root = Path(temp_dir)
    make_file(root / 'config.json', json.dumps({
        'title': 'Test Garden',
        'description': 'Notes and posts',
        'base_url': '/',
    }))

    content = root / 'content'
    make_file(content / 'first-post.md', "---\ntitle: First Post\ndate: 2024-01-01\ntags: [\"a\", \"b\"]\n---\nFirst body\n")
    make_file(content / 'second-post.md', "---\ntitle: Second Post\ndate: 2024-03-01\ntags: c\n---\nSecond body\n")
    make_file(content / 'undated-post.md', "---\ntitle: Undated Post\ndate: \n---\nNo date\n")
    make_file(content / 'broken-post.md', "---\ntitle: Broken\nno closing delimiter\n")

    notes = root / 'notes'
    make_file(notes / '_index.md', "Welcome to the **test** garden.\n")
    make_file(notes / 'x.md', "---\ntitle: X\ndate: 2024-02-01\ntags: [A]\n---\n# Hi\n")
    make_file(notes / 'topics' / 'y.md', "---\ntitle: Y\n---\n## Details\n")
    make_file(notes / 'images' / 'photo.jpg', "jpeg bytes")

    make_file(root / 'static' / 'style.css', "body { margin: 0; }")
    make_file(root / 'static' / 'js' / 'search.js', "console.log('search');")
    make_file(root / 'assets' / 'banner.txt', "banner")
    return str(root)
