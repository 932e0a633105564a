############################################################
# DO NOT TOUCH BELOW LINE.
#
# Import default settings, local settings below override them.
from denysoft.default_settings import *

############################################################
# Local settings. Please check `denysoft/default_settings.py` for all
# available settings and their default values.

# Log level: info, debug.
log_level = 'info'

# Trusted networks, never greylisted.
MYNETWORKS = []

# Store tracking data under this directory.
GREYLISTING_DB_DIR = '/var/lib/denysoft'
