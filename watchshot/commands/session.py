#!/usr/bin/env python3
"""
Command Session

Builds the long-lived services every command needs, once, and passes
them around explicitly.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from watchshot.config.project_config import AppConfig
from watchshot.services.catalog import Catalog, SizeClass
from watchshot.services.compositor import ImageCompositor
from watchshot.services.dispatch import MainQueue
from watchshot.services.ownership import OwnershipResolver
from watchshot.services.preferences import Preferences
from watchshot.services.store import FileStore, PurchaseStore, StoreKeeper


class CommandError(Exception):
    """Raised when a command cannot complete"""
    pass


class ConsoleOutput:
    """Colored console messages shared by the commands"""

    # Console colors
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    BLUE = '\033[0;34m'
    CYAN = '\033[0;36m'
    NC = '\033[0m'

    def _print_section(self, title: str) -> None:
        """Print section header"""
        print()
        print(f"{self.BLUE}━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━{self.NC}")
        print(f"{self.BLUE}{title}{self.NC}")
        print(f"{self.BLUE}━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━{self.NC}")
        print()

    def _print_success(self, message: str) -> None:
        print(f"{self.GREEN}✅ {message}{self.NC}")

    def _print_error(self, message: str) -> None:
        print(f"{self.RED}❌ {message}{self.NC}")

    def _print_warning(self, message: str) -> None:
        print(f"{self.YELLOW}⚠️  {message}{self.NC}")

    def _print_info(self, message: str) -> None:
        print(f"{self.CYAN}ℹ️  {message}{self.NC}")


class Session:
    """Services shared by one CLI run"""

    def __init__(self, config: Optional[AppConfig] = None, store: Optional[PurchaseStore] = None):
        """
        Build the services

        Args:
            config: Paths and defaults; read from the environment when None
            store: Purchase store; a FileStore over config.store_dir when None

        Raises:
            CatalogError: If the watch configuration is missing or malformed
        """
        self.logger = logging.getLogger(__name__)
        self.config = config or AppConfig()
        self.main_queue = MainQueue()
        self.preferences = Preferences(self.config.defaults_path)
        self.resolver = OwnershipResolver(self.preferences)
        self.catalog = Catalog.from_file(self.config.watches_path, self.resolver)
        self.store = store or FileStore(self.config.store_dir)
        self.store_keeper = StoreKeeper(self.catalog, self.store, self.main_queue)
        self.compositor = ImageCompositor(self.catalog, self.config.artwork_dir)

    def start(self) -> None:
        """Check products and the receipt, then apply the results"""
        self.store_keeper.start()
        self.settle()

    def settle(self) -> None:
        """Run queued store callbacks until none are left"""
        while self.main_queue.drain():
            pass

    def close(self) -> None:
        self.store_keeper.stop()

    def open_screenshot(self, path: Path) -> Tuple[Image.Image, SizeClass]:
        """
        Load a screenshot and find its size class

        Raises:
            CommandError: If the file is unreadable or of an unknown size
        """
        # Guard clause: Screenshot missing
        if not path.exists():
            raise CommandError(f"Screenshot not found: {path}")

        try:
            with Image.open(path) as image:
                screenshot = image.convert("RGBA")
        except OSError as e:
            raise CommandError(f"Could not read screenshot {path}: {e}")

        size_class = self.catalog.size_class_for_screenshot_size(*screenshot.size)
        if size_class is None:
            width, height = screenshot.size
            known = ", ".join(f"{w}x{h}" for w, h in self.catalog.screenshot_sizes())
            raise CommandError(
                f"No watch size takes {width}x{height} screenshots (known: {known})"
            )
        return screenshot, size_class
