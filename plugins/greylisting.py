# Purpose: Greylisting.
#
# How to use this plugin:
#
# *) Call `restriction()` with Postfix policy request attributes as keyword
#    arguments, it returns the SMTP action.
#
# *) Tune `GREYLISTING_*` settings, check `denysoft/default_settings.py` for
#    available settings and their default values.
#
# Authenticated senders, trusted clients (MYNETWORKS) and clients/senders
# listed in GREYLISTING_WHITELISTS are never greylisted.

from denysoft.logger import logger
from denysoft import SMTP_ACTIONS
from denysoft import utils, dnsspf
from denysoft.greylisting import Policy
from denysoft.greylisting import engine
import settings

# Pending deferrals when GREYLISTING_DENY_LATE is enabled, keyed by Postfix
# session instance: {instance: reason}
_deferred = {}

# Sessions which never reach DATA state are dropped, oldest first.
MAX_DEFERRED_SESSIONS = 10000


def _action_greylisting(reason):
    return SMTP_ACTIONS['greylisting'] + ' ' + settings.GREYLISTING_MESSAGE + ' (' + reason + ')'


def _is_whitelisted(client_address, sender):
    """Check client address and sender against GREYLISTING_WHITELISTS."""
    whitelists = [str(i).lower() for i in settings.GREYLISTING_WHITELISTS]
    if not whitelists:
        return False

    if utils.is_listed_client(client_address, whitelists):
        logger.info("[{}] Client IP is explicitly whitelisted for greylisting service.".format(client_address))
        return True

    if sender:
        _wl_senders = set(utils.get_policy_addresses_from_email(sender.lower())) & set(whitelists)
        # '@.' is the catch-all address of a null or invalid sender.
        _wl_senders.discard('@.')

        if _wl_senders:
            logger.info("[{}] Sender address is explicitly whitelisted for "
                        "greylisting service: {}".format(client_address, ', '.join(sorted(_wl_senders))))
            return True

    return False


def restriction(**kwargs):
    protocol_state = kwargs.get('protocol_state', 'RCPT')
    instance = kwargs.get('instance', '')

    # Deferred denial of previous RCPT state.
    if protocol_state in ['DATA', 'END-OF-MESSAGE']:
        if instance in _deferred:
            reason = _deferred.pop(instance)
            logger.debug("[{}] Apply deferred greylisting.".format(kwargs.get('client_address', '')))
            return _action_greylisting(reason)

        return SMTP_ACTIONS['default']

    # Bypass outgoing emails.
    if kwargs.get('sasl_username'):
        logger.debug('Found SASL username, bypass greylisting for outbound email.')
        return SMTP_ACTIONS['default']

    client_address = kwargs.get('client_address', '')
    if utils.is_trusted_client(client_address):
        return SMTP_ACTIONS['default']

    sender = kwargs.get('sender_without_ext')
    if sender is None:
        sender = utils.strip_mail_ext_address(kwargs.get('sender', ''))

    recipient = kwargs.get('recipient_without_ext')
    if recipient is None:
        recipient = utils.strip_mail_ext_address(kwargs.get('recipient', ''))

    if not sender and settings.GREYLISTING_BYPASS_NULL_SENDER:
        logger.debug('Bypass greylisting for null sender.')
        return SMTP_ACTIONS['default']

    if _is_whitelisted(client_address=client_address, sender=sender):
        return SMTP_ACTIONS['default']

    # Bypass if sender server is listed in SPF DNS record of sender domain.
    if settings.GREYLISTING_BYPASS_SPF and sender:
        sender_domain = sender.split('@', 1)[-1]
        if dnsspf.is_allowed_server_in_spf(sender_domain=sender_domain, ip=client_address):
            logger.info("[{}] Bypass greylisting. Sender server is listed in "
                        "SPF DNS record of sender domain "
                        "({}).".format(client_address, sender_domain))
            return SMTP_ACTIONS['default']

    verdict = engine.evaluate(client_address=client_address,
                              sender=sender,
                              recipient=recipient,
                              policy=Policy.from_settings())

    if verdict.allowed:
        return SMTP_ACTIONS['default']

    if settings.GREYLISTING_DENY_LATE and protocol_state == 'RCPT' and instance:
        logger.debug("[{}] Greylisting deferral delayed to DATA state.".format(client_address))
        while len(_deferred) >= MAX_DEFERRED_SESSIONS:
            _deferred.pop(next(iter(_deferred)))

        _deferred[instance] = verdict.reason
        return SMTP_ACTIONS['default']

    return _action_greylisting(verdict.reason)
