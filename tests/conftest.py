import shutil
import sys
import os
from decimal import Decimal
from pathlib import Path

import pytest
from loguru import logger

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from shipping_rates.config.settings import Settings, get_package_dir
from shipping_rates.engine import Country, RateQuotationEngine, RateTable, WeightTier

SEED_DIR = get_package_dir() / 'data'


def tier(min_grams, max_grams, price) -> WeightTier:
    return WeightTier(
        min_grams=Decimal(str(min_grams)),
        max_grams=None if max_grams is None else Decimal(str(max_grams)),
        price=Decimal(str(price)),
    )


@pytest.fixture
def table():
    """The observed home delivery table, built in memory."""
    return RateTable(
        countries=(
            Country('BE', 'Belgium'),
            Country('FR', 'France'),
            Country('IT', 'Italy'),
            Country('DE', 'Germany', enabled=False),
        ),
        tiers={
            'BE': (tier(0, 3000, 10), tier(3000, None, 20)),
            'FR': (tier(0, 400, 15), tier(400, None, 25)),
            'IT': (tier(0, None, 45),),
            'DE': (tier(0, None, 30),),
        },
        currency='EUR',
    )


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """A writable copy of the seed rate configuration."""
    target = tmp_path / 'data'
    target.mkdir()
    for name in ('countries.csv', 'rates.csv'):
        shutil.copy(SEED_DIR / name, target / name)
    return target


@pytest.fixture
def settings(tmp_path, data_dir) -> Settings:
    return Settings.load(project_root=tmp_path, data_dir=data_dir)


@pytest.fixture
def engine(table, settings):
    return RateQuotationEngine(table=table, settings=settings)


@pytest.fixture
def log_messages():
    """Messages logged through loguru while the test runs."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
