"""
Shared pytest fixtures for all tests.
"""

import pytest

from config.settings import ProxySettings, RealtySettings, Settings
from harvester.modules.shards import RequestParams, ShardConfig
from harvester.modules.stations import Station


# ============================================================
# Settings Fixtures
# ============================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with a token, default timings and no proxies."""
    return Settings(
        realty=RealtySettings(auth_token="test-token"),
        proxy=ProxySettings(enabled=False, urls=[]),
    )


# ============================================================
# Shard Fixtures
# ============================================================


@pytest.fixture
def request_defaults() -> RequestParams:
    """Global request defaults as in the bundled shard file."""
    return RequestParams.model_validate(
        {
            "page": 0,
            "sort": "DATE_DESC",
            "category": "APARTMENT",
            "currency": "RUR",
            "pageSize": 20,
            "roomsTotal": ["STUDIO", "1", "2"],
        }
    )


@pytest.fixture
def residential_shard(request_defaults) -> ShardConfig:
    """Moscow long-term rent shard."""
    return ShardConfig(
        location_id=1,
        location_name="Moscow",
        rgid=741964,
        category_id=1,
        defaults=request_defaults,
        params=RequestParams.model_validate(
            {"type": "RENT", "rentTime": "LARGE", "priceMin": [15000, 25000]}
        ),
    )


@pytest.fixture
def commercial_shard(request_defaults) -> ShardConfig:
    """Moscow commercial rent shard."""
    return ShardConfig(
        location_id=1,
        location_name="Moscow",
        rgid=741964,
        category_id=2,
        defaults=request_defaults,
        params=RequestParams.model_validate(
            {
                "type": "RENT",
                "category": "COMMERCIAL",
                "roomsTotal": None,
                "commercialType": ["OFFICE", "RETAIL"],
            }
        ),
    )


# ============================================================
# Station Fixtures
# ============================================================


@pytest.fixture
def stations() -> list[Station]:
    """A few Moscow stations, two sharing a name on different lines."""
    return [
        Station(id=10, name="Arbatskaya", lat=55.7522, lng=37.6039, location_id=1),
        Station(id=11, name="Arbatskaya", lat=55.7520, lng=37.6017, location_id=1),
        Station(id=12, name="Kurskaya", lat=55.7586, lng=37.6612, location_id=1),
        Station(id=13, name="Park Kultury", lat=55.7356, lng=37.5941, location_id=1),
    ]
