"""Greylisting policy, verdicts and state names.

* Understand greylisting:
  http://greylisting.org/articles/whitepaper.shtml
"""

from typing import NamedTuple

from denysoft.logger import logger
import settings

# Greylisting modes.
MODE_ACTIVE = 'active'
MODE_TEST_ONLY = 'test-only'
MODE_DISABLED = 'disabled'
MODES = [MODE_ACTIVE, MODE_TEST_ONLY, MODE_DISABLED]

# Tracking states, derived from stored record and time elapsed since last seen.
STATE_NEW = 'new'
STATE_BLACK = 'black'
STATE_GREY = 'grey'
STATE_WHITE = 'white'
STATE_EXPIRED = 'expired'

# Verdict actions.
ALLOW = 'ALLOW'
SOFT_DENY = 'SOFT_DENY'

# Default policy options.
DEFAULT_OPTIONS = {
    'remote_ip': True,
    'sender': False,
    'recipient': False,
    'black_timeout': 50 * 60,
    'grey_timeout': 3 * 3600 + 20 * 60,
    'white_timeout': 36 * 24 * 3600,
    'mode': MODE_ACTIVE,
}

_BOOLEAN_OPTIONS = ['remote_ip', 'sender', 'recipient']
_TIMEOUT_OPTIONS = ['black_timeout', 'grey_timeout', 'white_timeout']

# Last resolved settings: (options, policy).
_settings_cache = None


class Verdict(NamedTuple):
    action: str
    reason: str = ''

    @property
    def allowed(self):
        return self.action == ALLOW

    @classmethod
    def allow(cls):
        return cls(ALLOW)

    @classmethod
    def soft_deny(cls, reason):
        return cls(SOFT_DENY, reason)


def _to_bool(v):
    if isinstance(v, bool):
        return v

    if isinstance(v, int) and v in (0, 1):
        return bool(v)

    if isinstance(v, str) and v.strip().lower() in ['1', 'yes', 'true', 'on']:
        return True

    if isinstance(v, str) and v.strip().lower() in ['0', 'no', 'false', 'off']:
        return False

    raise ValueError('not a boolean: %r' % (v,))


def _to_timeout(v):
    if isinstance(v, bool):
        raise ValueError('not a number of seconds: %r' % (v,))

    seconds = int(v)
    if seconds < 0:
        raise ValueError('negative timeout: %r' % (v,))

    return seconds


class Policy:
    """Fully resolved greylisting options for one evaluation.

    Build with `Policy.from_dict()` or `Policy.from_settings()`, which
    validate options instead of raising on bad values.
    """

    def __init__(self,
                 remote_ip=True,
                 sender=False,
                 recipient=False,
                 black_timeout=DEFAULT_OPTIONS['black_timeout'],
                 grey_timeout=DEFAULT_OPTIONS['grey_timeout'],
                 white_timeout=DEFAULT_OPTIONS['white_timeout'],
                 mode=MODE_ACTIVE):
        self.remote_ip = remote_ip
        self.sender = sender
        self.recipient = recipient
        self.black_timeout = black_timeout
        self.grey_timeout = grey_timeout
        self.white_timeout = white_timeout
        self.mode = mode

    def __repr__(self):
        return "<Policy mode={} key={} black={} grey={} white={}>".format(
            self.mode,
            ','.join(k for k in _BOOLEAN_OPTIONS if getattr(self, k)) or '(none)',
            self.black_timeout, self.grey_timeout, self.white_timeout)

    def __eq__(self, other):
        if not isinstance(other, Policy):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def as_dict(self):
        return {k: getattr(self, k) for k in DEFAULT_OPTIONS}

    @classmethod
    def from_dict(cls, options=None):
        """Validate `options`, log and replace invalid values by defaults.

        Unknown option names are logged and ignored, so that a typo in
        config file is visible in log instead of silently changing behavior.
        """
        kw = dict(DEFAULT_OPTIONS)

        for (k, v) in (options or {}).items():
            if k not in DEFAULT_OPTIONS:
                logger.error("<!> Unknown greylisting option '{}', "
                             "ignored. Valid options: {}".format(k, ', '.join(DEFAULT_OPTIONS)))
                continue

            try:
                if k in _BOOLEAN_OPTIONS:
                    kw[k] = _to_bool(v)
                elif k in _TIMEOUT_OPTIONS:
                    kw[k] = _to_timeout(v)
                elif k == 'mode':
                    if v not in MODES:
                        raise ValueError('must be one of: ' + ', '.join(MODES))
                    kw[k] = v
            except (TypeError, ValueError) as e:
                logger.error("<!> Invalid value of greylisting option '{}': "
                             "{!r} ({}), fallback to default value: "
                             "{!r}.".format(k, v, e, DEFAULT_OPTIONS[k]))

        # Without any key part, all clients would share one tracking record.
        if not any(kw[k] for k in _BOOLEAN_OPTIONS):
            logger.error("<!> No greylisting key part enabled (remote_ip, "
                         "sender, recipient), fallback to default: remote_ip.")
            kw['remote_ip'] = True

        return cls(**kw)

    @classmethod
    def from_settings(cls):
        """Resolve policy from GREYLISTING_* settings.

        Options are validated again only if settings changed since last
        call, so configuration problems are logged once instead of once per
        policy request.
        """
        global _settings_cache
        options = {
            'remote_ip': settings.GREYLISTING_TRACK_CLIENT_ADDRESS,
            'sender': settings.GREYLISTING_TRACK_SENDER,
            'recipient': settings.GREYLISTING_TRACK_RECIPIENT,
            'black_timeout': settings.GREYLISTING_BLACK_TIMEOUT,
            'grey_timeout': settings.GREYLISTING_GREY_TIMEOUT,
            'white_timeout': settings.GREYLISTING_WHITE_TIMEOUT,
            'mode': settings.GREYLISTING_MODE,
        }
        options.update(settings.GREYLISTING_OPTIONS)

        if _settings_cache is None or _settings_cache[0] != options:
            _settings_cache = (options, cls.from_dict(options))

        return _settings_cache[1]
