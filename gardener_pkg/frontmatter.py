"""
Frontmatter parsing for Gardener documents.

A document may open with a block of ``key: value`` lines fenced by ``---``
lines. Values are kept as plain strings; tag lists are parsed on demand with
:func:`parse_tags`.
"""

from typing import Dict, List, Tuple

from .errors import FrontmatterError

DELIMITER = '---\n'


class Document:
    """A markdown source file split into frontmatter and body."""

    def __init__(self, path, frontmatter, body):
        self.path = path
        self.frontmatter = frontmatter
        self.body = body

    def get(self, key, default=''):
        return self.frontmatter.get(key, default)

    def __repr__(self):
        return f"Document({self.path!r})"


def parse_frontmatter(text: str) -> Tuple[Dict[str, str], str]:
    """
    Split text into a metadata mapping and a markdown body.

    Args:
        text: Full document text.

    Returns:
        A ``(metadata, body)`` tuple. Documents without a leading delimiter
        come back as an empty mapping and the untouched text.

    Raises:
        FrontmatterError: The opening delimiter is never closed.
    """
    if not text.startswith(DELIMITER):
        return {}, text

    parts = text.split(DELIMITER, 2)
    if len(parts) < 3:
        raise FrontmatterError("malformed frontmatter")

    metadata = {}
    for line in parts[1].splitlines():
        idx = line.find(':')
        # A colon in the first column has no key in front of it.
        if idx > 0:
            metadata[line[:idx].strip()] = line[idx + 1:].strip()

    return metadata, parts[2]


def parse_tags(value: str) -> List[str]:
    """Parse a tag string such as ``["go", 'web']`` or ``go, web`` into a list."""
    if not value:
        return []
    value = value.strip('[]')
    value = value.replace('"', '').replace("'", '')
    return [tag.strip() for tag in value.split(',') if tag.strip()]


def read_document(path) -> Document:
    """Read a UTF-8 markdown file and split off its frontmatter."""
    with open(path, 'r', encoding='utf-8') as f:
        text = f.read()
    metadata, body = parse_frontmatter(text)
    return Document(path, metadata, body)
