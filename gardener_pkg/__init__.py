"""
Gardener - a static site generator for a blog and a digital garden.

Gardener reads flat markdown posts from ``content/`` and a recursive tree of
notes from ``notes/``, renders them with Jinja2 templates, and writes a
deployable site with tag pages, a search index, a sitemap and an RSS feed.
"""

__version__ = "1.0.0"

from .core import Gardener
from .errors import BuildError, ConfigError, FrontmatterError, GardenerError

__all__ = ['Gardener', 'BuildError', 'ConfigError', 'FrontmatterError', 'GardenerError']
