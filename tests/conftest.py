from pathlib import Path
import sys

import pytest

# make the project root importable regardless of where pytest is started
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from diecast.config import Settings  # noqa: E402
from diecast.storage import LocalCache  # noqa: E402


@pytest.fixture
def sample_cars():
    return [
        {
            "car_id": "1700000000000",
            "brand": "Porsche",
            "model": "911 GT3",
            "manufacturer": "Hot Wheels",
            "color": "Vermelho",
            "year": "2023",
            "pack": "HW Exotics",
            "notes": "",
            "photo_url": "https://drive.google.com/open?id=abc",
        },
        {
            "car_id": "1700000000001",
            "brand": "Toyota",
            "model": "Supra",
            "manufacturer": "Matchbox",
            "color": "Azul",
            "year": "",
            "pack": "",
            "notes": "",
            "photo_url": "",
        },
        {
            "car_id": "1700000000002",
            "brand": "Toyota",
            "model": "Land Cruiser FJ40",
            "manufacturer": "Hot Wheels",
            "color": "",
            "year": "2021",
            "pack": "Off Road",
            "notes": "card bent",
            "photo_url": "",
        },
        {
            "car_id": "1700000000003",
            "brand": "Nissan",
            "model": "Skyline GT-R R34",
            "manufacturer": "Hot Wheels",
            "color": "Azul",
            "year": "",
            "pack": "Fast & Furious",
            "notes": "",
            "photo_url": "",
        },
    ]


@pytest.fixture
def cache(tmp_path):
    return LocalCache(tmp_path / "cache" / "collection.json")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        auth_email="collector@example.com",
        auth_password="s3cret!",
        cache_path=tmp_path / "collection.json",
    )
