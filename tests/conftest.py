import os
import sys
import types
from pathlib import Path
from types import SimpleNamespace

import pytest

os.environ.setdefault('NORTH_NODE_DISABLE_AUTO_LOGGING', 'true')

# Add backend directory to path for importing the service modules
BACKEND_DIR = Path(__file__).resolve().parents[1] / 'backend'
sys.path.append(str(BACKEND_DIR))

# Stub Swiss Ephemeris with deterministic values
DEFAULT_NODE_LONGITUDE = 100.0
DEFAULT_CUSPS = [200.0, 230.0, 260.0, 290.0, 320.0, 350.0, 20.0, 50.0, 80.0, 110.0, 140.0, 170.0]

stub_swe = types.ModuleType('swisseph')
stub_swe.MEAN_NODE = 10
stub_swe.TRUE_NODE = 11
stub_swe.FLG_SWIEPH = 2
stub_swe.FLG_SPEED = 256
stub_swe.GREG_CAL = 1
stub_swe.Error = type('Error', (Exception,), {})
stub_swe.NODE_LONGITUDE = DEFAULT_NODE_LONGITUDE
stub_swe.HOUSE_CUSPS = list(DEFAULT_CUSPS)
stub_swe.FAIL_NODE = False
stub_swe.CALLS = []


def set_ephe_path(path):
    return None


def julday(year, month, day, hour, cal=1):
    # Meeus, Astronomical Algorithms ch. 7 (Gregorian calendar)
    if month <= 2:
        year -= 1
        month += 12
    a = year // 100
    b = 2 - a + a // 4
    return int(365.25 * (year + 4716)) + int(30.6001 * (month + 1)) + day + b - 1524.5 + hour / 24.0


def calc_ut(jd, body, flags):
    stub_swe.CALLS.append(('calc_ut', jd, body))
    if stub_swe.FAIL_NODE:
        raise stub_swe.Error('ephemeris file not found')
    return (stub_swe.NODE_LONGITUDE, 0.0, 0.00257, -0.053, 0.0, 0.0), flags


def houses(jd, lat, lon, hsys=b'P'):
    stub_swe.CALLS.append(('houses', jd, lat, lon, hsys))
    cusps = tuple(stub_swe.HOUSE_CUSPS)
    ascmc = (cusps[0] if cusps else 0.0, cusps[9] if len(cusps) > 9 else 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    return cusps, ascmc


stub_swe.set_ephe_path = set_ephe_path
stub_swe.julday = julday
stub_swe.calc_ut = calc_ut
stub_swe.houses = houses
sys.modules['swisseph'] = stub_swe


@pytest.fixture
def swe_stub():
    """The stubbed swisseph module, restored to defaults after each test"""
    yield stub_swe
    stub_swe.NODE_LONGITUDE = DEFAULT_NODE_LONGITUDE
    stub_swe.HOUSE_CUSPS = list(DEFAULT_CUSPS)
    stub_swe.FAIL_NODE = False
    stub_swe.CALLS.clear()


def make_settings(allowed_origins=(), locator='bands', use_zone_library=True, house_system='P'):
    return SimpleNamespace(
        ephemeris=SimpleNamespace(path='', house_system=house_system, node='true'),
        timezone=SimpleNamespace(locator=locator, use_zone_library=use_zone_library),
        server=SimpleNamespace(host='127.0.0.1', port=3000),
        cors=SimpleNamespace(allowed_origins=tuple(allowed_origins)),
        logging=SimpleNamespace(level='INFO', file=None),
    )


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def settings():
    return make_settings(allowed_origins=('http://astro-sand-box.local',))


@pytest.fixture
def app(settings, swe_stub):
    """Flask application configured for testing."""
    from app import create_app

    flask_app = create_app(settings)
    flask_app.config.update({'TESTING': True})
    yield flask_app


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def birth_query():
    """Manchester, CT birth data without an explicit timezone."""
    return {
        'year': '1971',
        'month': '4',
        'day': '18',
        'hour': '5.25',
        'lat': '41.7759301',
        'lon': '-72.5215008',
    }
