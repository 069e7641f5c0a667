"""Markdown to HTML conversion for posts and notes."""

import re

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

CODE_STYLE = 'monokai'

COPY_LINK_BUTTON = (
    ' <button class="copy-link-btn" aria-label="Copy link to this section"'
    ' onclick="copyToClipboard(\'{link}\', this)">'
    '<i class="fa-solid fa-link"></i></button>'
)

LINK_RE = re.compile(r'!?\[([^\]]*)\]\([^)]*\)')
TAG_RE = re.compile(r'<[^>]+>')


class HeadingIds:
    """Generates unique heading ids for one document."""

    def __init__(self):
        self.seen = set()

    def generate(self, text):
        text = TAG_RE.sub('', LINK_RE.sub(r'\1', text)).strip()
        chars = []
        for ch in text:
            if ch.isascii() and ch.isalnum():
                chars.append(ch.lower())
            elif ch.isspace() or ch in '-_':
                chars.append('-')
        base = ''.join(chars) or 'heading'

        candidate = base
        n = 0
        while candidate in self.seen:
            n += 1
            candidate = f"{base}-{n}"
        self.seen.add(candidate)
        return candidate


def _assign_heading_ids(tokens, ids):
    for token in tokens:
        if token.get('type') == 'heading':
            token['attrs']['id'] = ids.generate(token.get('text', ''))
        children = token.get('children')
        if isinstance(children, list):
            _assign_heading_ids(children, ids)


def heading_id_hook(md, state):
    """Before-render hook giving every heading of the document an id."""
    _assign_heading_ids(state.tokens, HeadingIds())


class GardenRenderer(mistune.HTMLRenderer):
    """HTML renderer with highlighted code blocks and linkable section headings."""

    def __init__(self):
        super().__init__(escape=False)
        self.formatter = HtmlFormatter(style=CODE_STYLE, noclasses=True, linenos='inline')

    def heading(self, text, level, **attrs):
        tag = f"h{level}"
        html = '<' + tag
        heading_id = attrs.get('id')
        if heading_id:
            html += f' id="{heading_id}"'
        html += '>' + text
        if heading_id and level in (2, 3):
            html += COPY_LINK_BUTTON.format(link='#' + heading_id)
        return html + f"</{tag}>\n"

    def block_code(self, code, info=None):
        if info:
            lang = info.strip().split(None, 1)[0]
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                return highlight(code, lexer, self.formatter)
        return super().block_code(code, info)


def create_markdown_parser():
    """Create the mistune parser used for every document of a build."""
    md = mistune.create_markdown(
        renderer=GardenRenderer(),
        hard_wrap=True,
        plugins=['table', 'strikethrough', 'task_lists', 'url'],
    )
    md.before_render_hooks.append(heading_id_hook)
    return md
