import pytest

import settings
import denysoft.greylisting
from denysoft.greylisting import store


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Reset settings used by greylisting to predictable values."""
    monkeypatch.setattr(settings, 'MYNETWORKS', [])
    monkeypatch.setattr(settings, 'GREYLISTING_MODE', 'active')
    monkeypatch.setattr(settings, 'GREYLISTING_OPTIONS', {})
    monkeypatch.setattr(settings, 'GREYLISTING_WHITELISTS', [])
    monkeypatch.setattr(settings, 'GREYLISTING_BYPASS_NULL_SENDER', False)
    monkeypatch.setattr(settings, 'GREYLISTING_BYPASS_SPF', False)
    monkeypatch.setattr(settings, 'GREYLISTING_DENY_LATE', False)
    monkeypatch.setattr(settings, 'GREYLISTING_DB_DIR', '')
    monkeypatch.setattr(store, 'FALLBACK_DB_DIRS', [])
    monkeypatch.setattr(denysoft.greylisting, '_settings_cache', None)


@pytest.fixture
def db_dir(tmp_path, monkeypatch):
    """Directory of tracking store, also used as GREYLISTING_DB_DIR."""
    monkeypatch.setattr(settings, 'GREYLISTING_DB_DIR', str(tmp_path))
    return str(tmp_path)
