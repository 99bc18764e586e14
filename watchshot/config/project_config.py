#!/usr/bin/env python3
"""
Application Configuration Module

Resolves every path and default the services need. Values come from, in
order: explicit constructor arguments, environment variables, package
defaults.

Usage:
    from watchshot.config.project_config import AppConfig

    config = AppConfig()
    catalog = Catalog.from_file(config.watches_path, resolver)
"""

from pathlib import Path
from typing import Optional
import os

from watchshot.config.compose_config import PathConfig


class AppConfig:
    """
    Paths and defaults for a WatchShot run.

    Environment variables:
        WATCHSHOT_CONFIG: watch configuration resource (JSON or plist)
        WATCHSHOT_ARTWORK_DIR: directory holding "<prefix>_<suffix>.png" faces
        WATCHSHOT_DEFAULTS: preferences file
        WATCHSHOT_STORE_DIR: directory read by the file-backed store
        WATCHSHOT_SCREENSHOTS_DIR: directory scanned for screenshots
        WATCHSHOT_TINT: default background tint
    """

    def __init__(
        self,
        watches_path: Optional[Path] = None,
        artwork_dir: Optional[Path] = None,
        defaults_path: Optional[Path] = None,
        store_dir: Optional[Path] = None,
        screenshots_dir: Optional[Path] = None,
        data_dir: Optional[Path] = None
    ):
        self._data_dir = data_dir or Path.home() / PathConfig.DATA_DIR
        self._watches_path = watches_path
        self._artwork_dir = artwork_dir
        self._defaults_path = defaults_path
        self._store_dir = store_dir
        self._screenshots_dir = screenshots_dir

    @staticmethod
    def _from_env(name: str) -> Optional[Path]:
        value = os.getenv(name)
        return Path(value).expanduser() if value else None

    @property
    def package_dir(self) -> Path:
        """Directory of the installed watchshot package"""
        return Path(__file__).resolve().parent.parent

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def watches_path(self) -> Path:
        """Watch configuration resource"""
        return (
            self._watches_path
            or self._from_env('WATCHSHOT_CONFIG')
            or self.package_dir / PathConfig.WATCHES_RESOURCE
        )

    @property
    def artwork_dir(self) -> Path:
        """Directory holding watch-face artwork"""
        return (
            self._artwork_dir
            or self._from_env('WATCHSHOT_ARTWORK_DIR')
            or self.data_dir / PathConfig.ARTWORK_DIR
        )

    @property
    def defaults_path(self) -> Path:
        """Preferences file (last selected models, activation flags)"""
        return (
            self._defaults_path
            or self._from_env('WATCHSHOT_DEFAULTS')
            or self.data_dir / PathConfig.DEFAULTS_FILE
        )

    @property
    def store_dir(self) -> Path:
        """Directory read by the file-backed purchase store"""
        return (
            self._store_dir
            or self._from_env('WATCHSHOT_STORE_DIR')
            or self.data_dir / PathConfig.STORE_DIR
        )

    @property
    def screenshots_dir(self) -> Path:
        """Directory scanned for screenshots"""
        return (
            self._screenshots_dir
            or self._from_env('WATCHSHOT_SCREENSHOTS_DIR')
            or Path.cwd()
        )

    def get_default_tint(self) -> Optional[str]:
        """
        Background tint from the environment, if any.

        Returns:
            Color string (e.g., '#FF5722') or None
        """
        tint = os.getenv('WATCHSHOT_TINT')
        if not tint:
            return None

        # Accept bare hex values
        if all(c in '0123456789abcdefABCDEF' for c in tint) and len(tint) in (3, 4, 6, 8):
            tint = f'#{tint}'
        return tint
