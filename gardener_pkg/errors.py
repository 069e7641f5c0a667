"""Exceptions raised by Gardener."""


class GardenerError(Exception):
    """Base class for every Gardener error."""


class ConfigError(GardenerError):
    """The configuration file could not be read or has the wrong shape."""


class FrontmatterError(GardenerError):
    """A document starts a frontmatter block but never closes it."""


class BuildError(GardenerError):
    """A fatal failure that aborts the whole build."""
