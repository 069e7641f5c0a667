"""Tests for the notes tree traversal."""

import os

import pytest

from gardener_pkg import tree
from gardener_pkg.tree import TreeNode, build_notes_tree, note_url, walk_notes


def all_names(nodes):
    names = []
    for node in nodes:
        names.append(node.name)
        names.extend(all_names(node.children))
    return names


class TestBuildNotesTree:
    """Test cases for build_notes_tree and walk_notes."""

    def test_excluded_entries_never_appear(self, notes_dir):
        """images, _index.md and dotfiles are never nodes, at any depth."""
        names = all_names(build_notes_tree(notes_dir, '/'))
        assert 'images' not in names
        assert '_index.md' not in names
        assert not [name for name in names if name.startswith('.')]

    def test_structure_and_order(self, notes_dir):
        """Entries come in name order; only markdown files and folders are listed."""
        nodes = build_notes_tree(notes_dir, '/')
        assert [node.name for node in nodes] == ['alpha.md', 'beta.md', 'projects']

        projects = nodes[2]
        assert projects.is_dir
        assert projects.url == ''
        assert projects.title == ''
        assert [child.name for child in projects.children] == ['gamma.md']

    def test_titles_and_urls(self, notes_dir):
        """Titles come from frontmatter, falling back to the file name."""
        nodes = build_notes_tree(notes_dir, 'https://example.com/')
        alpha, beta, projects = nodes
        assert alpha.title == 'Alpha Note'
        assert alpha.url == 'https://example.com/notes/alpha'
        assert beta.title == 'beta.md'
        assert projects.children[0] == TreeNode(
            name='gamma.md',
            url='https://example.com/notes/projects/gamma',
            title='Gamma',
        )

    def test_malformed_frontmatter_falls_back_to_name(self, temp_dir, make_file):
        """A note whose frontmatter cannot be parsed still gets a node."""
        make_file(os.path.join(temp_dir, 'broken.md'), "---\ntitle: never closed\n")
        nodes = build_notes_tree(temp_dir, '/')
        assert nodes == [TreeNode(name='broken.md', url='/notes/broken', title='broken.md')]

    def test_missing_root_is_empty(self, temp_dir):
        """A notes directory that does not exist gives an empty tree."""
        assert build_notes_tree(os.path.join(temp_dir, 'nope'), '/') == []

    def test_directory_read_failure_propagates(self, notes_dir, monkeypatch):
        """Failing to list a subdirectory aborts the tree walk itself."""
        real_scandir = os.scandir
        broken = os.path.join(notes_dir, 'projects')

        def fake_scandir(path):
            if os.path.normpath(path) == broken:
                raise PermissionError(13, 'Permission denied', path)
            return real_scandir(path)

        monkeypatch.setattr(tree.os, 'scandir', fake_scandir)
        with pytest.raises(PermissionError):
            build_notes_tree(notes_dir, '/')

    def test_callbacks(self, notes_dir):
        """Notes go to on_note and every other visible file to on_asset."""
        notes, assets = [], []

        def on_note(path, rel_path):
            notes.append(rel_path)
            return rel_path.upper()

        nodes = walk_notes(notes_dir, '/', on_note=on_note,
                           on_asset=lambda path, rel_path: assets.append(rel_path))

        assert notes == ['alpha.md', 'beta.md', os.path.join('projects', 'gamma.md')]
        assert sorted(assets) == sorted([
            os.path.join('images', 'hidden.md'),
            os.path.join('images', 'pic.png'),
            os.path.join('projects', 'diagram.svg'),
        ])
        assert nodes[0].title == 'ALPHA.MD'

    def test_note_url(self):
        """Note URLs drop the .md suffix and use forward slashes."""
        assert note_url('/', 'a.md') == '/notes/a'
        assert note_url('/blog/', os.path.join('dir', 'b.md')) == '/blog/notes/dir/b'
