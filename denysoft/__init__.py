__version__ = "1.0.0"


SMTP_ACTIONS = {
    'default': 'DUNNO',
    # Temporary failure, well-behaved senders will retry later.
    'greylisting': '451 4.7.1',
}
