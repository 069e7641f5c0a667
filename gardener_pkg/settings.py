#!/usr/bin/env python3
"""
Settings loader for the Gardener static site generator.
Supports configuration from config.json, config.yml or config.yaml files.
"""

import os
import json
import logging
import yaml
from typing import Dict, Any, NamedTuple, Optional, Tuple

from .errors import ConfigError

logger = logging.getLogger('Gardener.settings')


class SiteConfig(NamedTuple):
    """Site-wide values shared by every template of one build."""
    title: str
    description: str
    base_url: str
    umami_id: str = ''
    umami_url: str = ''
    home_content: str = ''
    notes_tree: Tuple = ()

    @classmethod
    def from_settings(cls, settings: Dict[str, Any], home_content: str = '',
                      notes_tree=()) -> 'SiteConfig':
        return cls(
            title=settings.get('title') or '',
            description=settings.get('description') or '',
            base_url=normalize_base_url(settings.get('base_url')),
            umami_id=settings.get('umami_id') or '',
            umami_url=settings.get('umami_url') or '',
            home_content=home_content,
            notes_tree=tuple(notes_tree),
        )


def normalize_base_url(base_url: Optional[str]) -> str:
    """Return base_url with exactly one trailing slash ('/' when empty)."""
    if not base_url:
        return '/'
    return base_url.rstrip('/') + '/'


class GardenerSettings:
    """Load and manage Gardener configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'title': 'My Digital Garden',
        'description': 'A static site generated from markdown notes.',
        'umami_id': '',
        'umami_url': '',
        'base_url': '/',
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['config.json', 'config.yml', 'config.yaml']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from the configuration file if it exists.

        Returns:
            Dictionary of configuration settings

        Raises:
            ConfigError: The configuration file exists but cannot be used.
        """
        config_file = self._find_config_file()

        if config_file is None:
            logger.warning("Warning: config.json not found, using default configuration")
        else:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if not isinstance(loaded_settings, dict):
                raise ConfigError(f"Configuration file {config_file} must contain a mapping")
            # Unknown keys are kept but never read
            self.settings.update({k: v for k, v in loaded_settings.items() if v is not None})
            logger.info(f"Loaded configuration from: {os.path.relpath(config_file)}")

        self.settings['base_url'] = normalize_base_url(self.settings.get('base_url'))
        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Any:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            The parsed document, normally a dictionary
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f)
                else:
                    raise ConfigError(f"Unsupported config file format: {file_ext}")
        except PermissionError:
            raise ConfigError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ConfigError(f"Error parsing {os.path.basename(config_path)}: {e}")
        except (IOError, OSError) as e:
            raise ConfigError(f"Error reading configuration file {config_path}: {e}")
