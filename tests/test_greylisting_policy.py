import settings
from denysoft.greylisting import Policy, DEFAULT_OPTIONS
from denysoft.greylisting import MODE_ACTIVE, MODE_TEST_ONLY


def test_defaults():
    policy = Policy.from_dict()
    assert policy.remote_ip is True
    assert policy.sender is False
    assert policy.recipient is False
    assert policy.black_timeout == 3000
    assert policy.grey_timeout == 12000
    assert policy.white_timeout == 3110400
    assert policy.mode == MODE_ACTIVE
    assert policy == Policy()


def test_valid_options():
    policy = Policy.from_dict({
        'sender': 'yes',
        'recipient': 1,
        'black_timeout': '60',
        'grey_timeout': 600,
        'white_timeout': 86400,
        'mode': 'test-only',
    })

    assert policy.sender is True
    assert policy.recipient is True
    assert policy.black_timeout == 60
    assert policy.grey_timeout == 600
    assert policy.white_timeout == 86400
    assert policy.mode == MODE_TEST_ONLY


def test_unknown_option_ignored(caplog):
    policy = Policy.from_dict({'black_timout': 10, 'mode': 'test-only'})

    assert policy.black_timeout == DEFAULT_OPTIONS['black_timeout']
    assert policy.mode == MODE_TEST_ONLY
    assert "Unknown greylisting option 'black_timout'" in caplog.text


def test_invalid_values_fallback_to_default(caplog):
    policy = Policy.from_dict({
        'remote_ip': 'maybe',
        'black_timeout': -1,
        'grey_timeout': 'soon',
        'white_timeout': None,
        'mode': 'denysoft',
    })

    assert policy == Policy()
    assert caplog.text.count('Invalid value of greylisting option') == 5


def test_from_settings(monkeypatch):
    monkeypatch.setattr(settings, 'GREYLISTING_TRACK_SENDER', True)
    monkeypatch.setattr(settings, 'GREYLISTING_BLACK_TIMEOUT', 900)
    monkeypatch.setattr(settings, 'GREYLISTING_MODE', 'disabled')
    monkeypatch.setattr(settings, 'GREYLISTING_OPTIONS', {'mode': 'test-only',
                                                          'white_timeout': 100})

    policy = Policy.from_settings()

    assert policy.remote_ip is True
    assert policy.sender is True
    assert policy.black_timeout == 900
    assert policy.white_timeout == 100
    assert policy.mode == MODE_TEST_ONLY


def test_no_key_part_fallback_to_remote_ip(caplog):
    policy = Policy.from_dict({'remote_ip': False, 'sender': False, 'recipient': 'no'})

    assert policy.remote_ip is True
    assert policy.sender is False
    assert policy.recipient is False
    assert 'No greylisting key part enabled' in caplog.text


def test_key_part_other_than_remote_ip(caplog):
    policy = Policy.from_dict({'remote_ip': False, 'sender': True})

    assert policy.remote_ip is False
    assert policy.sender is True
    assert 'No greylisting key part enabled' not in caplog.text


def test_from_settings_logs_invalid_options_once(monkeypatch, caplog):
    monkeypatch.setattr(settings, 'GREYLISTING_OPTIONS', {'black_timout': 10})

    first = Policy.from_settings()
    second = Policy.from_settings()

    assert first == second == Policy()
    assert caplog.text.count("Unknown greylisting option 'black_timout'") == 1

    # Changed settings are validated again.
    monkeypatch.setattr(settings, 'GREYLISTING_BLACK_TIMEOUT', 60)
    assert Policy.from_settings().black_timeout == 60
    assert caplog.text.count("Unknown greylisting option 'black_timout'") == 2
