#!/usr/bin/env python3
"""
Settings loader for Postdeck.
Supports configuration from postdeck.yml, postdeck.yaml, or postdeck.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional


class PostdeckSettings:
    """Load and manage Postdeck configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'output': 'output',
        'content': 'content',
        'templates': 'templates',
        'assets': None,
        'site_title': None,
        'site_tagline': None,
        'site_url': None,
        'blog_slug': 'blog',
        'minify': False,
        'debounce_ms': 300,
        'theme_key': 'theme',
        'preferences_file': os.path.join('.postdeck', 'preferences.json'),
        'snippet_words': 50,
        'words_per_minute': 200,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['postdeck.yml', 'postdeck.yaml', 'postdeck.json']

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
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            try:
                loaded_settings = self._load_config_file(config_file)
                if loaded_settings:
                    self.settings.update(loaded_settings)
                    print(f"Loaded configuration from: {os.path.relpath(config_file)}")
            except (ValueError, IOError) as e:
                print(f"Warning: Failed to load config file {config_file}: {e}")

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    loaded = yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    loaded = json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise IOError(f"Error reading configuration file {config_path}: {e}")

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        return loaded

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'site_url': 'https://example.com',
            'site_title': 'My Blog',
            'site_tagline': 'Notes on code and travel',
            'output': 'output',
            'content': 'content',
            'templates': 'templates',
            'assets': 'assets',
            'blog_slug': 'blog',
            'minify': False,
            'debounce_ms': 300,
            'theme_key': 'theme',
        }

        if file_format not in ['yml', 'yaml', 'json']:
            raise ValueError(f"Unsupported config file format: {file_format}")

        filename = f'postdeck.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Postdeck Configuration File\n\n")
                    f.write("# Site information\n")
                    f.write("site_url: https://example.com\n")
                    f.write("site_title: My Blog\n")
                    f.write("site_tagline: Notes on code and travel\n\n")
                    f.write("# Build settings\n")
                    f.write("output: output\n")
                    f.write("content: content\n")
                    f.write("templates: templates\n")
                    f.write("assets: assets\n")
                    f.write("blog_slug: blog\n")
                    f.write("minify: false\n\n")
                    f.write("# Search box delay in milliseconds\n")
                    f.write("debounce_ms: 300\n\n")
                    f.write("# Key the theme preference is stored under\n")
                    f.write("theme_key: theme\n")
                else:
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.
        """
        merged = self.settings.copy()
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value
        return merged
