# Purpose: Greylisting decision engine.
#
# Unknown clients are deferred for `black_timeout` seconds. A retry after
# that, but within `grey_timeout` seconds more, whitelists the client. A
# whitelisted client stays whitelisted until it's idle for `white_timeout`
# seconds. State is derived from stored tracking record, records which timed
# out are overwritten as a newly seen client.

import dbm
import time

from denysoft.logger import logger
from denysoft import utils
from denysoft.greylisting import Policy, Verdict
from denysoft.greylisting import MODE_DISABLED, MODE_TEST_ONLY
from denysoft.greylisting import STATE_NEW, STATE_BLACK, STATE_GREY, STATE_WHITE, STATE_EXPIRED
from denysoft.greylisting.store import TrackingStore, TrackingRecord, StoreError

# Errors which mean tracking store is not usable. `dbm.error` contains OSError.
STORE_ERRORS = (StoreError,) + dbm.error

REASON_UNKNOWN_SENDER = 'unknown sender'
REASON_RETRY_TOO_SOON = 'retried too soon'

# Separator of key parts. NUL never occurs in an IP address or an SMTP
# envelope address, while ':' does (IPv6, quoted local part).
KEY_SEPARATOR = '\0'


def make_key(policy, client_address='', sender='', recipient=''):
    """Return tracking key of the triplet.

    Enabled parts are always joined in the same order: client address,
    sender, recipient. Disabled parts are omitted. Parts are joined with
    `KEY_SEPARATOR`.
    """
    parts = []

    if policy.remote_ip:
        parts.append(client_address or '')

    if policy.sender:
        parts.append(sender or '')

    if policy.recipient:
        parts.append(recipient or '')

    return KEY_SEPARATOR.join(parts)


def format_key(key):
    """Return printable form of tracking key, parts separated by space."""
    return ' '.join(key.split(KEY_SEPARATOR))


def derive_state(record, now, policy):
    """Return tracking state of `record` at time `now`.

    A duration equal to a timeout is considered expired.
    """
    if record is None:
        return STATE_NEW

    elapsed = now - record.last_seen

    if record.white_count == 0:
        if elapsed < policy.black_timeout:
            return STATE_BLACK
        elif elapsed < policy.black_timeout + policy.grey_timeout:
            return STATE_GREY
        else:
            return STATE_EXPIRED

    if elapsed < policy.white_timeout:
        return STATE_WHITE

    return STATE_EXPIRED


def _track(store, key, policy, now):
    """Read, update and write tracking record of `key`.

    Return tuple (state, new record, verdict). Test-only mode is not handled
    here, tracking data is always updated in the same way.
    """
    record = store.get(key)
    state = derive_state(record, now, policy)

    if state in (STATE_NEW, STATE_EXPIRED):
        attempt_count = 1
        if record is not None:
            attempt_count = record.attempt_count + 1

        record = TrackingRecord(last_seen=now, attempt_count=attempt_count)
        verdict = Verdict.soft_deny(REASON_UNKNOWN_SENDER)

    elif state == STATE_BLACK:
        record = record._replace(black_count=record.black_count + 1)

        _left = record.last_seen + policy.black_timeout - now
        verdict = Verdict.soft_deny(REASON_RETRY_TOO_SOON + ', ' + utils.pretty_left_seconds(_left))

    elif state == STATE_GREY:
        record = record._replace(last_seen=now, white_count=1)
        verdict = Verdict.allow()

    else:
        # STATE_WHITE
        record = record._replace(last_seen=now, white_count=record.white_count + 1)
        verdict = Verdict.allow()

    store.put(key, record)
    return (state, record, verdict)


def evaluate(client_address='',
             sender='',
             recipient='',
             policy=None,
             db_dir=None,
             now=None):
    """Evaluate the triplet against tracking store, return a `Verdict`.

    Any error while accessing tracking store returns ALLOW, greylisting must
    never be the reason mail is lost.

    @client_address -- IP address of remote SMTP client
    @sender -- envelope sender address
    @recipient -- envelope recipient address
    @policy -- a `Policy` instance, resolved from settings if None
    @db_dir -- preferred directory of tracking store
    @now -- current time in seconds since epoch, used in tests
    """
    if policy is None:
        policy = Policy.from_settings()

    if policy.mode == MODE_DISABLED:
        logger.debug('Greylisting is disabled, bypass.')
        return Verdict.allow()

    if now is None:
        now = time.time()
    now = int(now)

    key = make_key(policy,
                   client_address=client_address,
                   sender=sender,
                   recipient=recipient)
    _key = format_key(key)

    try:
        with TrackingStore.open(db_dir=db_dir) as store:
            (state, record, verdict) = _track(store, key, policy, now)
    except STORE_ERRORS as e:
        logger.error("<!> [{}] Greylisting tracking store is not available, "
                     "allow the client: {}".format(client_address, repr(e)))
        return Verdict.allow()

    logger.debug("[{}] Greylisting tracking: key={}, state={}, "
                 "record={}".format(client_address, _key, state, record.serialize()))

    if state == STATE_GREY:
        logger.info("[{}] Client has passed the greylisting, "
                    "whitelisted (key={}).".format(client_address, _key))
    elif state == STATE_EXPIRED:
        logger.info("[{}] Greylisting tracking expired, "
                    "track as first seen (key={}).".format(client_address, _key))

    if verdict.allowed:
        return verdict

    if policy.mode == MODE_TEST_ONLY:
        logger.info("[{}] Running in greylisting test-only mode, bypass "
                    "({}).".format(client_address, verdict.reason))
        return Verdict.allow()

    logger.info("[{}] Greylisted: {} (key={}).".format(client_address, verdict.reason, _key))
    return verdict


def list_records(policy=None, db_dir=None, now=None):
    """Return a list of (key, record, state) of all stored tracking records.

    `record` and `state` are None for malformed records.
    """
    if policy is None:
        policy = Policy.from_settings()

    if now is None:
        now = int(time.time())

    records = []
    with TrackingStore.open(db_dir=db_dir) as store:
        for (key, record) in store.items():
            state = None
            if record is not None:
                state = derive_state(record, now, policy)

            records.append((key, record, state))

    records.sort(key=lambda r: r[0])
    return records


def cleanup(policy=None, db_dir=None, now=None):
    """Remove expired and malformed tracking records. Return number of
    removed records.

    Expired records are reclaimed on next evaluation anyway, this just keeps
    the tracking database small.
    """
    if policy is None:
        policy = Policy.from_settings()

    if now is None:
        now = int(time.time())

    removed = 0
    with TrackingStore.open(db_dir=db_dir) as store:
        for (key, record) in list(store.items()):
            if record is None or derive_state(record, now, policy) == STATE_EXPIRED:
                store.delete(key)
                removed += 1

    logger.debug("Removed {} expired greylisting tracking records.".format(removed))
    return removed
