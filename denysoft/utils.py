import re
import time
import ipaddress
from dns import resolver  # type: ignore
from typing import List

from denysoft.logger import logger
from denysoft import regxes
import settings


def is_email(s):
    try:
        s = str(s).strip()
    except UnicodeEncodeError:
        return False

    # Not contain invalid characters and match regular expression
    if not set(s) & set(r'~!$%^*() ') and regxes.cmp_email.match(s):
        return True

    return False


# Valid IP address
def is_ipv4(s):
    if re.match(regxes.regx_ipv4, s):
        return True

    return False


def is_strict_ip(s):
    try:
        ipaddress.ip_address(s)
        return True
    except ValueError:
        return False


def is_cidr_network(s):
    try:
        ipaddress.ip_network(s)
        return True
    except ValueError:
        return False


def is_domain(s):
    s = str(s)
    if len(set(s) & set('~!#$%^&*()+\\/ ')) > 0 or '.' not in s:
        return False

    if regxes.cmp_domain.match(s):
        return True
    else:
        return False


def get_policy_addresses_from_email(mail) -> List[str]:
    """Return list of valid policy addresses from given email address.

    >>> get_policy_addresses_from_email(mail="user@sub2.sub1.com")
    ["user@sub2.sub1.com",      # full email address
         "@sub2.sub1.com",      # entire domain (without sub-domains)
        "@.sub2.sub1.com",      # entire domain with sub-domains
             "@.sub1.com",      # all sub-sub domains
                  "@.com",      # all top-level domains
                     "@.",      # catch-all
    ]
    """
    if not is_email(mail):
        return ['@.']

    (_user, _domain) = mail.split('@', 1)
    _domain_parts = _domain.split('.')

    addresses = [mail, '@' + _domain]
    for (_index, _sub) in enumerate(_domain_parts):
        _addr = '@.' + '.'.join(_domain_parts[_index:])
        addresses.append(_addr)

    addresses.append('@.')
    return addresses


def wildcard_ipv4(s):
    ips = []
    if is_ipv4(s):
        ip4 = s.split('.')

        if settings.ENABLE_ALL_WILDCARD_IP:
            ip4s = set()
            counter = 0
            for i in range(4):
                a = ip4[:]
                a[i] = '*'
                ip4s.add('.'.join(a))

                if counter < 4:
                    for j in range(4 - counter):
                        a[j+counter] = '*'
                        ip4s.add('.'.join(a))

                counter += 1
            ips += list(ip4s)
        else:
            # 11.22.33.*
            ips.append('.'.join(ip4[:3]) + '.*')
            # 11.22.*.44
            ips.append('.'.join(ip4[:2]) + '.*.' + ip4[3])

    return ips


def is_listed_client(client_address, addresses):
    """Check whether client address matches one of IP addresses, wildcard IP
    addresses or networks in `addresses`."""
    if not client_address:
        return False

    if client_address in addresses:
        return True

    if set(wildcard_ipv4(client_address)) & set(addresses):
        return True

    try:
        ip_addr = ipaddress.ip_address(client_address)
    except ValueError:
        return False

    for net in [i for i in addresses if '/' in i]:
        try:
            if ip_addr in ipaddress.ip_network(net, strict=False):
                return True
        except ValueError:
            logger.debug("Not a valid IP network: {}".format(net))

    return False


def is_trusted_client(client_address):
    if client_address in ['127.0.0.1', '::1']:
        logger.debug("Client address is trusted (localhost): {}".format(client_address))
        return True

    if is_listed_client(client_address, settings.MYNETWORKS):
        logger.debug("Client address ({}) is trusted (listed in MYNETWORKS).".format(client_address))
        return True

    return False


def pretty_left_seconds(seconds=0):
    hours = 0
    mins = 0

    # hours
    if seconds >= 3600:
        hours = seconds // 3600
        left_seconds = seconds % 3600
    else:
        left_seconds = seconds

    # minutes
    if left_seconds >= 60:
        mins = left_seconds // 60
        left_seconds = left_seconds % 60

    r = []
    if hours:
        r += ['%d hours' % hours]

    if mins:
        r += ['%d minutes' % mins]

    if left_seconds:
        r += ['%d seconds' % left_seconds]

    if r:
        return 'time left: ' + ', '.join(r)
    else:
        return ''


def get_gmttime(seconds=None):
    return time.strftime('%Y-%m-%d %H:%M:%S', time.gmtime(seconds))


def strip_mail_ext_address(mail, delimiters=None):
    """Remove '+extension' in email address.

    >>> strip_mail_ext_address('user+ext@domain.com')
    'user@domain.com'
    """

    if not is_email(mail):
        return mail

    if not delimiters:
        delimiters = settings.RECIPIENT_DELIMITERS

    (_orig_user, _domain) = mail.split('@', 1)
    for delimiter in delimiters:
        if delimiter in _orig_user:
            (_user, _ext) = _orig_user.split(delimiter, 1)
            return _user + '@' + _domain

    return mail

def get_dns_resolver():
    resv = resolver.Resolver()
    resv.timeout = settings.DNS_QUERY_TIMEOUT
    resv.lifetime = settings.DNS_QUERY_TIMEOUT

    return resv
