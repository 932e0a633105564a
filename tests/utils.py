from denysoft.greylisting import Policy
from denysoft.greylisting.store import TrackingStore
from tests import tdata


def set_smtp_session(**kw):
    """Generate sample smtp session data (as keyword arguments of plugin
    `restriction()` function)."""
    d = {
        'request': 'smtpd_access_policy',
        'protocol_state': 'RCPT',
        'protocol_name': 'SMTP',
        'client_address': tdata.client_address,
        'reverse_client_name': 'mail.external.com',
        'instance': '123.456.7',
        'sender': tdata.ext_user,
        'recipient': tdata.user,
        'sasl_username': '',
    }

    d.update(**kw)
    return d


def make_policy(**kw):
    return Policy.from_dict(kw)


def get_record(db_dir, key):
    with TrackingStore.open(db_dir=db_dir) as store:
        return store.get(key)


def put_record(db_dir, key, record):
    with TrackingStore.open(db_dir=db_dir) as store:
        store.put(key, record)
