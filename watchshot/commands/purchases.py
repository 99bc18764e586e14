#!/usr/bin/env python3
"""
Purchase Commands

Show models with their ownership, buy a model, restore purchases.
"""

import logging
from pathlib import Path
from typing import Optional

from watchshot.commands.session import CommandError, ConsoleOutput, Session
from watchshot.services.catalog import CatalogError
from watchshot.services.ownership import ActionKind, Ownership


class ModelsCommand(ConsoleOutput):
    """Lists the models for a screenshot's watch size"""

    OWNERSHIP_LABELS = {
        Ownership.FREE: "free",
        Ownership.OWNED: "owned",
        Ownership.FOR_SALE: "for sale",
        Ownership.UNAVAILABLE: "unavailable",
    }

    def __init__(
        self,
        screenshot_path: Optional[Path] = None,
        size_prefix: Optional[str] = None,
        show_all: bool = False,
        session: Optional[Session] = None
    ):
        self.logger = logging.getLogger(__name__)
        self.screenshot_path = screenshot_path
        self.size_prefix = size_prefix
        self.show_all = show_all
        self.session = session

    def _size_class(self):
        if self.screenshot_path is not None:
            _, size_class = self.session.open_screenshot(self.screenshot_path)
            return size_class

        size_class = self.session.catalog.size_class_for_prefix(self.size_prefix or "")
        if size_class is None:
            raise CommandError(f"Unknown watch size: {self.size_prefix}")
        return size_class

    def run(self) -> int:
        try:
            if self.session is None:
                self.session = Session()
            self.session.start()

            size_class = self._size_class()
            models = size_class.all_models if self.show_all else size_class.models
            width, height = size_class.screenshot_size
            self._print_section(f"⌚ {size_class.filename_prefix} ({width}x{height})")

            resolver = self.session.resolver
            for model in models:
                ownership = resolver.resolve(model)
                action = resolver.action_for(model)
                label = model.display_description().replace("\n", " · ")
                print(
                    f"   {self.YELLOW}{model.filename_suffix:<28}{self.NC} "
                    f"{self.OWNERSHIP_LABELS[ownership]:<12} {action.title:<20} {label}"
                )
            return 0

        except (CommandError, CatalogError) as e:
            self._print_error(str(e))
            return 1


class BuyCommand(ConsoleOutput):
    """Buys a model that is for sale"""

    def __init__(self, model_suffix: str, size_prefix: str, session: Optional[Session] = None):
        self.logger = logging.getLogger(__name__)
        self.model_suffix = model_suffix
        self.size_prefix = size_prefix
        self.session = session

    def run(self) -> int:
        try:
            if self.session is None:
                self.session = Session()
            self.session.start()

            size_class = self.session.catalog.size_class_for_prefix(self.size_prefix)
            if size_class is None:
                raise CommandError(f"Unknown watch size: {self.size_prefix}")

            model = size_class.model_for_filename_key(self.model_suffix)
            if model is None:
                raise CommandError(f"Model '{self.model_suffix}' not available for {self.size_prefix}")

            action = self.session.resolver.action_for(model)
            if action.kind is ActionKind.SHARE:
                self._print_info(f"{self.model_suffix} is already yours")
                return 0
            if action.kind is not ActionKind.BUY:
                raise CommandError(f"{self.model_suffix} is unavailable; try 'restore'")

            self._print_info(f"{action.title}")
            self.session.store_keeper.create_purchase(model.product)
            self.session.settle()

            if not self.session.resolver.resolve(model).is_usable:
                raise CommandError(f"Purchase of {self.model_suffix} did not complete")

            self._print_success(f"Purchased {self.model_suffix}")
            return 0

        except (CommandError, CatalogError) as e:
            self._print_error(str(e))
            return 1


class RestoreCommand(ConsoleOutput):
    """Refreshes the receipt and re-validates owned purchases"""

    def __init__(self, session: Optional[Session] = None):
        self.logger = logging.getLogger(__name__)
        self.session = session

    def run(self) -> int:
        try:
            if self.session is None:
                self.session = Session()
            self.session.start()

            self.session.store_keeper.restore_purchases()
            self.session.settle()

            owned = [
                model for size_class in self.session.catalog.sizes
                for model in size_class.all_models
                if model.receipt is not None
            ]
            self._print_success(f"Purchases restored: {len(owned)} owned")
            for model in owned:
                print(f"   {self.YELLOW}{model.artwork_name}{self.NC}")
            return 0

        except CatalogError as e:
            self._print_error(str(e))
            return 1
