import ipaddress
from dns import resolver  # type: ignore
from typing import Optional, Set

from denysoft.logger import logger
from denysoft import utils

# Stop following `include:` / `redirect=` after this many SPF lookups, same
# as the DNS lookup limit in RFC 7208.
MAX_SPF_LOOKUPS = 10


def _query(resv, domain, rdtype):
    try:
        return [str(r) for r in resv.resolve(domain, rdtype)]
    except (resolver.NoAnswer, resolver.NXDOMAIN):
        logger.debug("[DNS][{}] {} -> no record".format(rdtype, domain))
    except resolver.Timeout:
        logger.info("[DNS][{}] {} -> Timeout".format(rdtype, domain))
    except Exception as e:
        logger.debug("[DNS][{}] {} -> Error: {}".format(rdtype, domain, repr(e)))

    return []


def query_a(resv, domain) -> Set[str]:
    """Return IP addresses in A and AAAA records of given domain name."""
    return set(_query(resv, domain, 'A') + _query(resv, domain, 'AAAA'))


def query_mx(resv, domain) -> Set[str]:
    """Return IP addresses of mail exchangers of given domain name."""
    ips = set()
    for r in _query(resv, domain, 'MX'):
        hostname = r.split()[-1].rstrip('.')
        if utils.is_domain(hostname):
            ips.update(query_a(resv, hostname))

    return ips


def query_spf(resv, domain) -> Optional[str]:
    """Return SPF record of given domain name."""
    for r in _query(resv, domain, 'TXT'):
        # Some SPF records contain split IP address like below:
        #   v=spf1 ... ip4:66.220.157" ".0/25 ...
        r = ''.join(v for v in r.strip('"').split('"') if not v.startswith(' '))

        if r.startswith('v=spf1'):
            return r

    return None


def parse_spf(resv, domain, spf, queried_domains=None) -> Set[str]:
    """Return IP addresses/networks allowed by SPF record `spf` of `domain`.

    `include:` and `redirect=` domains are queried recursively, each domain
    once.
    """
    ips = set()

    if queried_domains is None:
        queried_domains = set()
    queried_domains.add(domain)

    if not spf:
        return ips

    for tag in spf.split()[1:]:
        tag = tag.lstrip('+')
        v = tag.split(':', 1)[-1]

        if tag.startswith('ip4:') or tag.startswith('ip6:'):
            if utils.is_strict_ip(v) or utils.is_cidr_network(v):
                ips.add(v)
            else:
                logger.debug("[SPF][{}] invalid IP address or network: {}".format(domain, tag))
        elif tag == 'a':
            ips.update(query_a(resv, domain))
        elif tag.startswith('a:'):
            ips.update(query_a(resv, v))
        elif tag == 'mx':
            ips.update(query_mx(resv, domain))
        elif tag.startswith('mx:'):
            ips.update(query_mx(resv, v))
        elif tag.startswith('include:') or tag.startswith('redirect='):
            _domain = tag.split('=', 1)[-1] if tag.startswith('redirect=') else v

            if _domain in queried_domains:
                continue

            if len(queried_domains) >= MAX_SPF_LOOKUPS:
                logger.debug("[SPF][{}] too many lookups, skip {}".format(domain, _domain))
                continue

            ips.update(parse_spf(resv,
                                 _domain,
                                 query_spf(resv, _domain),
                                 queried_domains=queried_domains))

    return ips


def is_allowed_server_in_spf(sender_domain, ip):
    """
    Check whether given IP address is listed in SPF DNS record of given
    sender domain. Return True if exists, False if not.
    """
    if (not sender_domain) or (not ip):
        return False

    resv = utils.get_dns_resolver()

    spf = query_spf(resv, sender_domain)
    if not spf:
        logger.debug("[SPF] Domain {} does not have a valid SPF DNS record.".format(sender_domain))
        return False

    _ips = parse_spf(resv, sender_domain, spf)
    if ip in _ips:
        logger.debug("[SPF] IP {} is listed in SPF DNS record of sender domain {}.".format(ip, sender_domain))
        return True

    try:
        _ip_object = ipaddress.ip_address(ip)
    except ValueError:
        return False

    for _cidr in [i for i in _ips if '/' in i]:
        try:
            if _ip_object in ipaddress.ip_network(_cidr, strict=False):
                logger.debug("[SPF] IP ({}) is listed in SPF DNS record "
                             "of sender domain {} "
                             "(network={}).".format(ip, sender_domain, _cidr))
                return True
        except ValueError as e:
            logger.debug("[SPF] Error while checking IP {} against network {}: {}".format(ip, _cidr, repr(e)))

    logger.debug("[SPF] IP {} is NOT listed in SPF DNS record of domain {}.".format(ip, sender_domain))
    return False
