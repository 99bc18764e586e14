#!/usr/bin/env python3
"""
Watch Catalog

Loads watch-face size and model metadata from the configuration resource
and looks models up by screenshot size, product identifier and filename
suffix.

The catalog is an arena: it owns the list of size classes, each size class
owns its models, and a model refers back to its size class only by index.

Usage:
    from watchshot.services.catalog import Catalog

    catalog = Catalog.from_file(path, resolver)
    size_class = catalog.size_class_for_screenshot_size(312, 390)
"""

import json
import logging
import plistlib
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from watchshot.config.compose_config import CompositorConfig, LabelConfig
from watchshot.services.ownership import Ownership, OwnershipResolver


class CatalogError(Exception):
    """Raised when the watch configuration is missing or malformed"""
    pass


DescriptionTable = List[Tuple[str, str]]


def match_description(name: str, table: DescriptionTable, by_suffix: bool = False) -> str:
    """
    Description for a filename suffix from an ordered pattern table

    The longest matching pattern wins; among patterns of the same length the
    one declared last wins. No match yields an empty string.

    Args:
        name: Model filename suffix
        table: Ordered (pattern, description) pairs
        by_suffix: Match patterns against the end of the name instead of the start

    Example:
        >>> match_description("sport_silver_white", [("sport", "SPORT"), ("sport_silver", "SILVER")])
        'SILVER'
    """
    best_length = -1
    description = ""
    for pattern, text in table:
        matched = name.endswith(pattern) if by_suffix else name.startswith(pattern)
        if matched and len(pattern) >= best_length:
            best_length = len(pattern)
            description = text
    return description


class Model:
    """A single watch model, at a specific size"""

    def __init__(
        self,
        filename_suffix: str,
        size_index: int,
        filename_prefix: str,
        product_identifier: Optional[str] = None,
        activation_key: Optional[str] = None,
        model_description: str = "",
        case_description: str = "",
        band_description: str = ""
    ):
        self.filename_suffix = filename_suffix
        self.size_index = size_index
        self.filename_prefix = filename_prefix
        self.product_identifier = product_identifier
        self.activation_key = activation_key
        self.model_description = model_description
        self.case_description = case_description
        self.band_description = band_description

        # Set by the store keeper once products and the receipt are validated
        self.product = None
        self.receipt = None

    @property
    def artwork_name(self) -> str:
        """Artwork file stem, "<prefix>_<suffix>" """
        return f"{self.filename_prefix}_{self.filename_suffix}"

    @property
    def artwork_filename(self) -> str:
        return f"{self.artwork_name}{CompositorConfig.ARTWORK_EXTENSION}"

    def display_description(self) -> str:
        """Three-line label: brand and model, case, band"""
        if self.model_description:
            first_line = f"{LabelConfig.BRAND} {self.model_description}"
        else:
            first_line = LabelConfig.BRAND
        return f"{first_line}\n{self.case_description}\n{self.band_description}"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return self.filename_suffix == other.filename_suffix

    def __hash__(self) -> int:
        return hash(self.filename_suffix)

    def __repr__(self) -> str:
        return f"Model({self.artwork_name!r})"


class SizeClass:
    """A collection of watch models all of the same size"""

    def __init__(
        self,
        key: str,
        filename_prefix: str,
        screenshot_size: Tuple[int, int],
        image_size: Tuple[int, int],
        models: List[Model],
        resolver: OwnershipResolver
    ):
        self.key = key
        self.filename_prefix = filename_prefix
        self.screenshot_size = screenshot_size
        self.image_size = image_size
        self.resolver = resolver
        self._models = models

    @property
    def all_models(self) -> List[Model]:
        """All models for this size, including those unavailable for sale"""
        return list(self._models)

    @property
    def models(self) -> List[Model]:
        """Models shown to the user; unavailable ones are hidden"""
        return [
            model for model in self._models
            if self.resolver.resolve(model) is not Ownership.UNAVAILABLE
        ]

    @property
    def screenshot_rect(self) -> Tuple[int, int, int, int]:
        """Screenshot placement (x, y, width, height), centered in the image"""
        image_width, image_height = self.image_size
        screenshot_width, screenshot_height = self.screenshot_size
        return (
            (image_width - screenshot_width) // 2,
            (image_height - screenshot_height) // 2,
            screenshot_width,
            screenshot_height,
        )

    def model_for_filename_key(self, filename_suffix: str) -> Optional[Model]:
        """Visible model with the given filename suffix, if any"""
        for model in self.models:
            if model.filename_suffix == filename_suffix:
                return model
        return None

    def __repr__(self) -> str:
        width, height = self.screenshot_size
        return f"SizeClass({self.filename_prefix!r}, {width}x{height})"


class Catalog:
    """All watch sizes and models, built once at startup"""

    def __init__(self, config: Dict[str, Any], resolver: OwnershipResolver):
        """
        Build the catalog from a parsed configuration document

        Args:
            config: Document with "sizes" and "descriptions" keys
            resolver: Ownership resolver deciding model visibility

        Raises:
            CatalogError: If the document is malformed
        """
        self.logger = logging.getLogger(__name__)
        self.resolver = resolver

        sizes = _require(config, 'sizes', dict, "configuration")
        descriptions = _parse_descriptions(_require(config, 'descriptions', dict, "configuration"))

        self.sizes: List[SizeClass] = []
        seen: Dict[Tuple[int, int], str] = {}
        for key, size_info in sizes.items():
            size_class = self._build_size_class(len(self.sizes), str(key), size_info, descriptions)

            # Screenshot dimensions are the lookup key
            if size_class.screenshot_size in seen:
                raise CatalogError(
                    f"Sizes '{seen[size_class.screenshot_size]}' and '{key}' share "
                    f"screenshot size {size_class.screenshot_size}"
                )
            seen[size_class.screenshot_size] = str(key)
            self.sizes.append(size_class)

        self.logger.debug(
            f"Loaded {len(self.sizes)} sizes, "
            f"{sum(len(s.all_models) for s in self.sizes)} models"
        )

    @classmethod
    def from_file(cls, path: Path, resolver: OwnershipResolver) -> "Catalog":
        """
        Load the catalog from a JSON or property-list resource

        Raises:
            CatalogError: If the resource is missing or malformed
        """
        if not path.exists():
            raise CatalogError(f"Watch configuration not found: {path}")

        try:
            if path.suffix.lower() == '.plist':
                with open(path, 'rb') as f:
                    config = plistlib.load(f)
            else:
                with open(path, 'r') as f:
                    config = json.load(f)
        except (json.JSONDecodeError, plistlib.InvalidFileException, IOError) as e:
            raise CatalogError(f"Failed to read watch configuration {path}: {e}")

        if not isinstance(config, dict):
            raise CatalogError(f"Watch configuration {path} is not a dictionary")
        return cls(config, resolver)

    def _build_size_class(
        self,
        index: int,
        key: str,
        size_info: Any,
        descriptions: Dict[str, DescriptionTable]
    ) -> SizeClass:
        where = f"size '{key}'"
        if not isinstance(size_info, dict):
            raise CatalogError(f"{where} is not a dictionary")

        filename_prefix = _require(size_info, 'filenamePrefix', str, where)
        screenshot_size = (
            _dimension(size_info, 'screenshotWidth', where),
            _dimension(size_info, 'screenshotHeight', where),
        )
        image_size = (
            _dimension(size_info, 'imageWidth', where),
            _dimension(size_info, 'imageHeight', where),
        )
        if screenshot_size[0] > image_size[0] or screenshot_size[1] > image_size[1]:
            raise CatalogError(f"{where}: screenshot {screenshot_size} larger than image {image_size}")

        model_filenames = _require(size_info, 'modelFilenames', list, where)
        product_identifiers = _require(size_info, 'productIdentifiers', dict, where)
        activation_keys = _require(size_info, 'activationKeys', dict, where)
        for mapping_name, mapping in (('productIdentifiers', product_identifiers),
                                      ('activationKeys', activation_keys)):
            for filename_suffix, value in mapping.items():
                if not isinstance(value, str):
                    raise CatalogError(f"{where}: {mapping_name} value for {filename_suffix!r} must be a string")

        models = []
        for filename_suffix in model_filenames:
            if not isinstance(filename_suffix, str):
                raise CatalogError(f"{where}: model filename {filename_suffix!r} is not a string")
            models.append(Model(
                filename_suffix=filename_suffix,
                size_index=index,
                filename_prefix=filename_prefix,
                product_identifier=product_identifiers.get(filename_suffix),
                activation_key=activation_keys.get(filename_suffix),
                model_description=match_description(filename_suffix, descriptions['models']),
                case_description=match_description(filename_suffix, descriptions['cases']),
                band_description=match_description(filename_suffix, descriptions['bands'], by_suffix=True),
            ))

        for mapping_name, mapping in (('productIdentifiers', product_identifiers),
                                      ('activationKeys', activation_keys)):
            unknown = set(mapping) - set(model_filenames)
            if unknown:
                self.logger.warning(f"{where}: {mapping_name} for unknown models ignored: {sorted(unknown)}")

        return SizeClass(key, filename_prefix, screenshot_size, image_size, models, self.resolver)

    def size_class_for(self, model: Model) -> SizeClass:
        """Size class owning a model"""
        return self.sizes[model.size_index]

    def size_class_for_screenshot_size(self, width: int, height: int) -> Optional[SizeClass]:
        """Size class that has screenshots of the given pixel size"""
        for size_class in self.sizes:
            if size_class.screenshot_size == (width, height):
                return size_class
        return None

    def size_class_for_prefix(self, filename_prefix: str) -> Optional[SizeClass]:
        for size_class in self.sizes:
            if size_class.filename_prefix == filename_prefix:
                return size_class
        return None

    def screenshot_sizes(self) -> List[Tuple[int, int]]:
        """Every screenshot size the catalog knows"""
        return [size_class.screenshot_size for size_class in self.sizes]

    def product_identifiers(self) -> List[str]:
        """Product identifiers of every model, hidden ones included"""
        identifiers = []
        for size_class in self.sizes:
            for model in size_class.all_models:
                if model.product_identifier is not None:
                    identifiers.append(model.product_identifier)
        return identifiers

    def model_for_product_identifier(self, product_identifier: str) -> Optional[Model]:
        """Model sold under the given product identifier, hidden ones included"""
        for size_class in self.sizes:
            for model in size_class.all_models:
                if model.product_identifier == product_identifier:
                    return model
        return None


def _require(container: Dict[str, Any], key: str, kind: Any, where: str) -> Any:
    if key not in container:
        raise CatalogError(f"{where}: missing '{key}'")
    value = container[key]
    if not isinstance(value, kind):
        kinds = kind if isinstance(kind, tuple) else (kind,)
        expected = " or ".join(k.__name__ for k in kinds)
        raise CatalogError(f"{where}: '{key}' must be a {expected}")
    return value


def _dimension(container: Dict[str, Any], key: str, where: str) -> int:
    value = _require(container, key, (int, float), where)
    if isinstance(value, bool) or value <= 0 or int(value) != value:
        raise CatalogError(f"{where}: '{key}' must be a positive whole number")
    return int(value)


def _parse_descriptions(descriptions: Dict[str, Any]) -> Dict[str, DescriptionTable]:
    tables = {}
    for name in ('models', 'cases', 'bands'):
        table = _require(descriptions, name, (dict, list), "descriptions")
        tables[name] = _description_pairs(table, name)
    return tables


def _description_pairs(table: Any, name: str) -> DescriptionTable:
    """Ordered (pattern, description) pairs from a mapping or a list of pairs"""
    if isinstance(table, dict):
        items: Sequence = list(table.items())
    else:
        items = table

    pairs = []
    for item in items:
        if (not isinstance(item, (list, tuple)) or len(item) != 2
                or not all(isinstance(part, str) for part in item)):
            raise CatalogError(f"descriptions '{name}': entries must be string pairs, got {item!r}")
        pairs.append((item[0], item[1]))
    return pairs
