import settings
from denysoft import utils


def test_is_email():
    assert utils.is_email('user@example.com')
    assert utils.is_email('user+ext@sub.example.com')
    assert not utils.is_email('')
    assert not utils.is_email('user')
    assert not utils.is_email('user name@example.com')


def test_is_strict_ip():
    assert utils.is_strict_ip('192.168.1.1')
    assert utils.is_strict_ip('2001:db8::1')
    assert not utils.is_strict_ip('192.168.1.256')
    assert not utils.is_strict_ip('192.168.1.0/24')


def test_is_cidr_network():
    assert utils.is_cidr_network('192.168.1.0/24')
    assert utils.is_cidr_network('2001:db8::/32')
    assert not utils.is_cidr_network('example.com')


def test_is_domain():
    assert utils.is_domain('mail.example.com')
    assert not utils.is_domain('localhost')
    assert not utils.is_domain('exa mple.com')


def test_wildcard_ipv4():
    assert utils.wildcard_ipv4('11.22.33.44') == ['11.22.33.*', '11.22.*.44']
    assert utils.wildcard_ipv4('2001:db8::1') == []


def test_is_listed_client():
    addresses = ['10.0.0.1', '172.16.1.*', '192.168.0.0/16', '2001:db8::/32', 'bad/network']

    assert utils.is_listed_client('10.0.0.1', addresses)
    assert utils.is_listed_client('172.16.1.99', addresses)
    assert utils.is_listed_client('192.168.3.4', addresses)
    assert utils.is_listed_client('2001:db8::25', addresses)

    assert not utils.is_listed_client('10.0.0.2', addresses)
    assert not utils.is_listed_client('', addresses)
    assert not utils.is_listed_client('unknown', addresses)


def test_is_trusted_client(monkeypatch):
    assert utils.is_trusted_client('127.0.0.1')
    assert utils.is_trusted_client('::1')
    assert not utils.is_trusted_client('192.168.1.1')

    monkeypatch.setattr(settings, 'MYNETWORKS', ['192.168.1.0/24'])
    assert utils.is_trusted_client('192.168.1.1')


def test_get_policy_addresses_from_email():
    assert utils.get_policy_addresses_from_email('user@sub.example.com') == [
        'user@sub.example.com',
        '@sub.example.com',
        '@.sub.example.com',
        '@.example.com',
        '@.com',
        '@.',
    ]
    assert utils.get_policy_addresses_from_email('') == ['@.']


def test_strip_mail_ext_address():
    assert utils.strip_mail_ext_address('user+ext@example.com') == 'user@example.com'
    assert utils.strip_mail_ext_address('user-ext@example.com', delimiters=['-']) == 'user@example.com'
    assert utils.strip_mail_ext_address('user@example.com') == 'user@example.com'
    assert utils.strip_mail_ext_address('') == ''


def test_pretty_left_seconds():
    assert utils.pretty_left_seconds(0) == ''
    assert utils.pretty_left_seconds(45) == 'time left: 45 seconds'
    assert utils.pretty_left_seconds(1000) == 'time left: 16 minutes, 40 seconds'
    assert utils.pretty_left_seconds(3660) == 'time left: 1 hours, 1 minutes'
