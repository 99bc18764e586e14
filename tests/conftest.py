import json
from pathlib import Path

import pytest
from PIL import Image

from watchshot.services.catalog import Catalog
from watchshot.services.ownership import OwnershipResolver
from watchshot.services.preferences import Preferences

ARTWORK_COLOR = (30, 30, 30, 255)
SCREENSHOT_COLOR = (200, 10, 10, 255)


def write_png(path: Path, size, color) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path)
    return path


@pytest.fixture
def watch_config():
    return {
        "sizes": {
            "small": {
                "filenamePrefix": "38mm",
                "screenshotWidth": 40,
                "screenshotHeight": 50,
                "imageWidth": 60,
                "imageHeight": 80,
                "modelFilenames": ["sport_white", "steel_link", "secret_face", "edition_gold"],
                "productIdentifiers": {
                    "steel_link": "com.example.38.steel_link",
                    "edition_gold": "com.example.38.edition_gold",
                },
                "activationKeys": {
                    "secret_face": "activated.secret",
                    "edition_gold": "activated.edition",
                },
            },
            "large": {
                "filenamePrefix": "42mm",
                "screenshotWidth": 48,
                "screenshotHeight": 60,
                "imageWidth": 71,
                "imageHeight": 90,
                "modelFilenames": ["sport_white", "steel_link"],
                "productIdentifiers": {"steel_link": "com.example.42.steel_link"},
                "activationKeys": {},
            },
        },
        "descriptions": {
            "models": [["sport", "SPORT"], ["steel", ""], ["edition", "EDITION"], ["secret", "SECRET"]],
            "cases": [
                ["sport", "Aluminum Case"],
                ["steel", "Stainless Steel Case"],
                ["edition", "Edition Case"],
                ["edition_gold", "18-Karat Gold Case"],
                ["secret", "Mystery Case"],
            ],
            "bands": [
                ["white", "White Sport Band"],
                ["link", "Link Bracelet"],
                ["gold", "Modern Buckle"],
                ["face", "Classic Buckle"],
            ],
        },
    }


@pytest.fixture
def config_path(tmp_path, watch_config):
    path = tmp_path / "watches.json"
    path.write_text(json.dumps(watch_config))
    return path


@pytest.fixture
def preferences():
    return Preferences()


@pytest.fixture
def resolver(preferences):
    return OwnershipResolver(preferences)


@pytest.fixture
def catalog(watch_config, resolver):
    return Catalog(watch_config, resolver)


@pytest.fixture
def small(catalog):
    return catalog.size_class_for_prefix("38mm")


@pytest.fixture
def artwork_dir(tmp_path, catalog):
    directory = tmp_path / "artwork"
    for size_class in catalog.sizes:
        for model in size_class.all_models:
            write_png(directory / model.artwork_filename, size_class.image_size, ARTWORK_COLOR)
    return directory


@pytest.fixture
def screenshot(small):
    return Image.new("RGBA", small.screenshot_size, SCREENSHOT_COLOR)


@pytest.fixture
def store_dir(tmp_path):
    directory = tmp_path / "store"
    directory.mkdir()
    (directory / "products.json").write_text(json.dumps({
        "com.example.38.steel_link": {"price": "0.99", "locale": "en_US@currency=USD", "title": "Steel Link"},
        "com.example.38.edition_gold": {"price": "9.99", "locale": "en_US@currency=USD"},
    }))
    return directory
