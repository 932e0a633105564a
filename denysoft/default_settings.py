# Log level: info, debug, warning, error.
log_level = 'info'

# Syslog server address.
# Log to local socket by default, /dev/log on Linux/OpenBSD, /var/run/log on FreeBSD.
SYSLOG_SERVER = '/dev/log'
SYSLOG_PORT = 514

# Syslog facility
SYSLOG_FACILITY = 'local5'

# Trusted IP address or networks.
# Valid formats:
#   - Single IP address: 192.168.1.1
#   - Wildcard IP range: 192.168.1.*, 192.168.*.*, 192.168.*.1
#   - IP subnet: 192.168.1.0/24
MYNETWORKS = []

# Recipient delimiters. If you have multiple delimiters, please list them all.
RECIPIENT_DELIMITERS = ['+']

# DNS Query.
# Timeout in seconds. Must be a float number.
DNS_QUERY_TIMEOUT = 3.0

# Query additional wildcard IP(v4) addresses while matching MYNETWORKS and
# greylisting whitelists. For example, for client address 'w.x.y.z', if this
# option is disabled (False), it just query 'w.x.y.*' and 'w.x.*.z'. If enabled
# (True), it will replace all possible fields by '*' as wildcard.
ENABLE_ALL_WILDCARD_IP = False

# --------------
# Required by: plugins/greylisting.py
#
# Reject reason for greylisting.
GREYLISTING_MESSAGE = 'Intentional policy rejection, please try again later'

# Greylisting mode:
#   - active: track clients and defer unknown ones.
#   - test-only: track clients in the same way, but never defer.
#   - disabled: do not run greylisting at all.
GREYLISTING_MODE = 'active'

# Directory used to store the tracking database and its lock file. If empty,
# or not writable, fallback directories under the installation directory
# (`var/db/`, `config/`) are tried in order.
GREYLISTING_DB_DIR = ''

# File name (without extension) of the tracking database.
GREYLISTING_DB_NAME = 'denysoft_greylist'

# Which parts of the triplet identify a client. Defaults to client IP
# address only.
GREYLISTING_TRACK_CLIENT_ADDRESS = True
GREYLISTING_TRACK_SENDER = False
GREYLISTING_TRACK_RECIPIENT = False

# Time (in SECONDS) a new client will be deferred. Defaults to 50 minutes.
GREYLISTING_BLACK_TIMEOUT = 3000

# Time (in SECONDS), after the black timeout, during which a retry will pass
# greylisting and whitelist the client. Defaults to 3 hours and 20 minutes.
GREYLISTING_GREY_TIMEOUT = 12000

# Time (in SECONDS) a client which passed greylisting stays whitelisted since
# its last delivery. Defaults to 36 days.
GREYLISTING_WHITE_TIMEOUT = 3110400

# Additional greylisting options, overrides settings above. Valid keys:
# remote_ip, sender, recipient, black_timeout, grey_timeout, white_timeout,
# mode.
GREYLISTING_OPTIONS = {}

# Client addresses or senders which are never greylisted.
# Valid formats:
#   - IP address: 192.168.1.1
#   - Wildcard IP range: 192.168.1.*
#   - IP subnet: 192.168.1.0/24
#   - email address: user@domain.com
#   - entire domain: @domain.com
#   - domain and all sub-domains: @.domain.com
GREYLISTING_WHITELISTS = []

# Don't greylist null sender (bounce messages, sender address verification
# probes).
GREYLISTING_BYPASS_NULL_SENDER = False

# Bypass if sender server IP address is listed in sender domain SPF DNS record.
GREYLISTING_BYPASS_SPF = False

# Don't defer in RCPT state, remember the decision and defer in DATA or
# END-OF-MESSAGE state instead. Requires the plugin be enabled in Postfix
# `smtpd_data_restrictions` or `smtpd_end_of_data_restrictions` too.
GREYLISTING_DENY_LATE = False
