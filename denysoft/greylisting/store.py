# Purpose: Persistent greylisting tracking data.
#
# Tracking records are stored in a dbm file, key is the tracking key, value
# is `last_seen:attempt_count:black_count:white_count`. All access happens
# while holding an exclusive flock(2) on `<db file>.lock`, so concurrent
# policy requests sharing the same store are serialized.

import os
import dbm
import fcntl
from typing import NamedTuple

from denysoft.logger import logger
import settings

rootdir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))

# Fallback directories used if no (valid) directory is configured.
FALLBACK_DB_DIRS = [
    os.path.join(rootdir, 'var', 'db'),
    os.path.join(rootdir, 'config'),
]


class StoreError(Exception):
    """Tracking store is not usable: no directory, lock or file."""


class TrackingRecord(NamedTuple):
    last_seen: int
    attempt_count: int = 1
    black_count: int = 0
    white_count: int = 0

    def serialize(self):
        return '%d:%d:%d:%d' % self

    @classmethod
    def parse(cls, value):
        """Parse stored value, raise ValueError if it's malformed."""
        if isinstance(value, (bytes, bytearray)):
            value = value.decode('ascii')

        fields = value.split(':')
        if len(fields) != 4:
            raise ValueError('expected 4 fields, got %d' % len(fields))

        values = [int(i) for i in fields]
        if min(values) < 0:
            raise ValueError('negative field in %r' % (value,))

        return cls(*values)


def resolve_db_dir(db_dir=None):
    """Return first existing and writable directory of `db_dir`,
    `settings.GREYLISTING_DB_DIR` and fallback directories."""
    for d in [db_dir, settings.GREYLISTING_DB_DIR] + FALLBACK_DB_DIRS:
        if not d:
            continue

        if os.path.isdir(d) and os.access(d, os.W_OK | os.X_OK):
            return d

        logger.debug("Skip greylisting db directory (not exist or not writable): {}".format(d))

    raise StoreError('No usable directory for greylisting tracking database.')


class TrackingStore:
    """Locked key-value store of tracking records.

    Use as context manager so that lock is always released:

        with TrackingStore.open() as store:
            record = store.get(key)
            ...
            store.put(key, record)
    """

    def __init__(self, path):
        self.path = path
        self.lock_path = path + '.lock'
        self._lock_fd = None
        self._db = None

    @classmethod
    def open(cls, db_dir=None, db_name=None):
        path = os.path.join(resolve_db_dir(db_dir),
                            db_name or settings.GREYLISTING_DB_NAME)
        store = cls(path)
        store._open()
        return store

    def _open(self):
        try:
            fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as e:
            raise StoreError('Cannot open {}: {}'.format(self.lock_path, repr(e)))

        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
        except OSError as e:
            os.close(fd)
            raise StoreError('Cannot lock {}: {}'.format(self.lock_path, repr(e)))

        self._lock_fd = fd

        try:
            self._db = dbm.open(self.path, 'c', 0o600)
        except dbm.error as e:
            self.close()
            raise StoreError('Cannot open {}: {}'.format(self.path, repr(e)))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.close()

    def close(self):
        if self._db is not None:
            try:
                self._db.close()
            finally:
                self._db = None

        if self._lock_fd is not None:
            try:
                fcntl.flock(self._lock_fd, fcntl.LOCK_UN)
            finally:
                os.close(self._lock_fd)
                self._lock_fd = None

    def _raw_get(self, key):
        try:
            return self._db[key]
        except KeyError:
            return None

    def get(self, key):
        """Return stored TrackingRecord, or None if key is not stored or
        stored value is malformed."""
        value = self._raw_get(key)
        if value is None:
            return None

        try:
            return TrackingRecord.parse(value)
        except ValueError as e:
            logger.warning("Malformed greylisting tracking record, "
                           "treat as not seen: key={}, value={!r}, "
                           "error={}".format(key, value, e))
            return None

    def put(self, key, record):
        self._db[key] = record.serialize()

    def delete(self, key):
        try:
            del self._db[key]
            return True
        except KeyError:
            return False

    def items(self):
        """Yield (key, record) pairs. `record` is None if malformed."""
        for k in list(self._db.keys()):
            key = k.decode() if isinstance(k, bytes) else k
            value = self._raw_get(k)

            try:
                record = TrackingRecord.parse(value)
            except (AttributeError, ValueError):
                record = None

            yield (key, record)
