#!/usr/bin/env python3
# Purpose: Manage greylisting tracking data.

import os
import sys

os.environ['LC_ALL'] = 'C'

rootdir = os.path.abspath(os.path.dirname(__file__)) + '/../'
sys.path.insert(0, rootdir)

from denysoft import utils
from denysoft.greylisting import Policy
from denysoft.greylisting import engine
from denysoft.greylisting.store import TrackingStore, StoreError
from tools import logger

USAGE = """Usage:

    --list
        Show ALL greylisting tracking records, with current state of each
        record (black, grey, white, expired).

    --delete <key part> [<key part> ...]
        Delete tracking record of specified key, client will be greylisted
        again on next delivery attempt. Key is the client IP address by
        default, or the enabled parts of `client_address sender recipient`
        (in this order) as separate arguments, as shown by `--list`.

    --cleanup
        Remove expired and malformed tracking records.

    --db-dir <directory>
        Use tracking database stored in specified directory instead of
        setting `GREYLISTING_DB_DIR`.

Sample usages:

    * List all tracking records:

        # python3 greylisting_admin.py --list

    * Remove tracking record of client 192.168.1.10:

        # python3 greylisting_admin.py --delete 192.168.1.10

    * Remove tracking record of client 192.168.1.10 and sender user@example.com
      (with GREYLISTING_TRACK_SENDER = True):

        # python3 greylisting_admin.py --delete 192.168.1.10 user@example.com

    * Remove expired tracking records (e.g. in a daily cron job):

        # python3 greylisting_admin.py --cleanup
"""


def list_records(db_dir=None):
    records = engine.list_records(policy=Policy.from_settings(), db_dir=db_dir)
    if not records:
        logger.info("* No greylisting tracking records.")
        return

    output_format = '%-8s %-19s %8s %6s %6s  %s'
    print(output_format % ('State', 'Last Seen (UTC)', 'Attempts', 'Black', 'White', 'Key'))
    print('-' * 78)

    for (key, record, state) in records:
        if record is None:
            print(output_format % ('invalid', '-', '-', '-', '-', engine.format_key(key)))
        else:
            print(output_format % (state,
                                   utils.get_gmttime(record.last_seen),
                                   record.attempt_count,
                                   record.black_count,
                                   record.white_count,
                                   engine.format_key(key)))


def delete_record(parts, db_dir=None):
    key = engine.KEY_SEPARATOR.join(parts)
    _key = engine.format_key(key)

    with TrackingStore.open(db_dir=db_dir) as store:
        if store.delete(key):
            logger.info("* Deleted tracking record: {}".format(_key))
        else:
            logger.info("* No such tracking record: {}".format(_key))


def main(args):
    db_dir = None
    if '--db-dir' in args:
        index = args.index('--db-dir')
        if index + 1 >= len(args):
            sys.exit('<<< ERROR >>> No directory specified. Exit.')

        db_dir = args[index + 1]

        # Remove them.
        args.pop(index)
        args.pop(index)

    try:
        if '--list' in args:
            list_records(db_dir=db_dir)
        elif '--delete' in args:
            index = args.index('--delete')
            if index + 1 >= len(args):
                sys.exit('<<< ERROR >>> No key specified. Exit.')

            delete_record(args[index + 1:], db_dir=db_dir)
        elif '--cleanup' in args:
            removed = engine.cleanup(policy=Policy.from_settings(), db_dir=db_dir)
            logger.info("* Removed {} expired tracking records.".format(removed))
        else:
            sys.exit('<<< ERROR >>> No valid operation specified. Exit.')
    except StoreError as e:
        sys.exit('<<< ERROR >>> {}'.format(e))


if __name__ == '__main__':
    if len(sys.argv) == 1:
        print(USAGE)
        sys.exit()

    main([v for v in sys.argv[1:]])
