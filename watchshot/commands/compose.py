#!/usr/bin/env python3
"""
Compose Command

Composites a screenshot onto a watch model and writes the PNG:
1. Find the size class from the screenshot's pixel size
2. Pick the requested model, or the last one selected for that size
3. Composite, optionally on a tinted background
4. Remember the model for next time
"""

import logging
from pathlib import Path
from typing import List, Optional

from watchshot.commands.session import CommandError, ConsoleOutput, Session
from watchshot.config.compose_config import PathConfig
from watchshot.services.catalog import CatalogError
from watchshot.services.compositor import ComposeError
from watchshot.services.preferences import PreferencesError, load_selected_model, save_selected_model
from watchshot.services.screenshots import ScreenshotLibrary


class ComposeCommand(ConsoleOutput):
    """Writes the shareable image for one screenshot"""

    def __init__(
        self,
        screenshot_path: Path,
        model_suffix: Optional[str] = None,
        tint: Optional[str] = None,
        output_path: Optional[Path] = None,
        preview: bool = False,
        session: Optional[Session] = None
    ):
        """
        Initialize compose command

        Args:
            screenshot_path: Screenshot to composite
            model_suffix: Model filename suffix; last selected model when None
            tint: Background color; environment default when None
            output_path: Output PNG; "<screenshot>_<suffix>.png" beside it when None
            preview: Allow models that are not owned, writing the faded preview
            session: Services to use; built from the environment when None
        """
        self.logger = logging.getLogger(__name__)
        self.screenshot_path = screenshot_path
        self.model_suffix = model_suffix
        self.tint = tint
        self.output_path = output_path
        self.preview = preview
        self.session = session

    def _select_model(self, size_class):
        preferences = self.session.preferences
        if self.model_suffix is None:
            model = load_selected_model(size_class, preferences)
            if model is None:
                raise CommandError(f"No models available for {size_class.filename_prefix}")
            return model

        model = size_class.model_for_filename_key(self.model_suffix)
        if model is None:
            available = ", ".join(m.filename_suffix for m in size_class.models)
            raise CommandError(
                f"Model '{self.model_suffix}' not available for {size_class.filename_prefix} "
                f"(available: {available})"
            )
        return model

    def _default_output(self, model) -> Path:
        name = PathConfig.OUTPUT_PATTERN.format(
            name=self.screenshot_path.stem,
            suffix=model.filename_suffix
        )
        return self.screenshot_path.with_name(name)

    def run(self) -> int:
        """
        Compose workflow

        Returns:
            Exit code (0 for success, 1 for failure)
        """
        try:
            if self.session is None:
                self.session = Session()
            self.session.start()

            screenshot, size_class = self.session.open_screenshot(self.screenshot_path)
            model = self._select_model(size_class)
            ownership = self.session.resolver.resolve(model)

            # Guard clause: Locked models only as previews
            if not ownership.is_usable and not self.preview:
                action = self.session.resolver.action_for(model)
                raise CommandError(
                    f"{model.filename_suffix} is not owned ({action.title}). "
                    f"Use 'buy' first, or --preview for a faded preview."
                )

            tint = self.tint if self.tint is not None else self.session.config.get_default_tint()
            image = self.session.compositor.compose(screenshot, model, ownership, tint=tint)

            output_path = self.output_path or self._default_output(model)
            self.session.compositor.save(image, output_path)
            save_selected_model(size_class, model, self.session.preferences)

            self._print_success(f"{model.display_description().splitlines()[0]} → {output_path}")
            return 0

        except (CommandError, CatalogError, ComposeError, PreferencesError) as e:
            self._print_error(str(e))
            return 1


class ListCommand(ConsoleOutput):
    """Lists screenshots of known sizes, newest first"""

    def __init__(self, screenshots_dir: Optional[Path] = None, session: Optional[Session] = None):
        self.logger = logging.getLogger(__name__)
        self.screenshots_dir = screenshots_dir
        self.session = session

    def run(self) -> int:
        try:
            if self.session is None:
                self.session = Session()

            directory = self.screenshots_dir or self.session.config.screenshots_dir
            library = ScreenshotLibrary(directory, self.session.catalog)
            assets = library.fetch()

            # Guard clause: No screenshots found
            if not assets:
                self._print_warning(f"No watch screenshots found in: {directory}")
                return 1

            self._print_section(f"📸 {len(assets)} screenshots")
            lines: List[str] = []
            for asset in assets:
                size_class = self.session.catalog.size_class_for_screenshot_size(*asset.pixel_size)
                lines.append(
                    f"   {asset.created:%Y-%m-%d %H:%M}  "
                    f"{self.YELLOW}{size_class.filename_prefix:<8}{self.NC} {asset.path.name}"
                )
            print("\n".join(lines))
            return 0

        except CatalogError as e:
            self._print_error(str(e))
            return 1
