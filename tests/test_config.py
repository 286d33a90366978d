"""Unit tests for the configuration module."""
import os
from unittest.mock import patch


def test_default_configuration():
    """Test that default configuration values are set correctly."""
    import importlib
    import jadnet_dns_sd.config as config_module
    importlib.reload(config_module)

    assert isinstance(config_module.DNS_SD_ADDRESSES, list)
    assert isinstance(config_module.REFRESH_INTERVAL, float)
    assert isinstance(config_module.RESOLVE_TIMEOUT, float)
    assert isinstance(config_module.STATS_INTERVAL, float)
    assert isinstance(config_module.NAMESERVERS, list)
    assert isinstance(config_module.QUERY_TIMEOUT, float)
    assert isinstance(config_module.LOG_LEVEL, str)


@patch.dict(os.environ, {
    'DNS_SD_ADDRESSES': '127.0.0.1:9090,dns+node.example.com:9100',
    'REFRESH_INTERVAL': '15',
    'RESOLVE_TIMEOUT': '0',
    'STATS_INTERVAL': '60',
    'RESOLVER': 'NameServer',
    'NAMESERVERS': '10.0.0.53,10.0.1.53:5353',
    'DNS_PROTOCOL': 'TCP',
    'QUERY_TIMEOUT': '2.5',
    'DEFAULT_PORT': '9100',
    'LOG_LEVEL': 'DEBUG',
})
def test_environment_variable_override():
    """Test that environment variables override defaults."""
    import importlib
    import jadnet_dns_sd.config as config_module
    importlib.reload(config_module)

    assert config_module.DNS_SD_ADDRESSES == ['127.0.0.1:9090', 'dns+node.example.com:9100']
    assert config_module.REFRESH_INTERVAL == 15.0
    assert config_module.RESOLVE_TIMEOUT == 0.0
    assert config_module.STATS_INTERVAL == 60.0
    assert config_module.RESOLVER == 'nameserver'
    assert config_module.NAMESERVERS == ['10.0.0.53', '10.0.1.53:5353']
    assert config_module.DNS_PROTOCOL == 'tcp'
    assert config_module.QUERY_TIMEOUT == 2.5
    assert config_module.DEFAULT_PORT == 9100
    assert config_module.LOG_LEVEL == 'DEBUG'


@patch.dict(os.environ, {'DNS_SD_ADDRESSES': ' dnssrv+_api._tcp.example.com , ,10.0.0.1:80 '})
def test_addresses_with_spaces_and_empty_items():
    """Test that address lists are trimmed and empty items dropped."""
    import importlib
    import jadnet_dns_sd.config as config_module
    importlib.reload(config_module)

    assert config_module.DNS_SD_ADDRESSES == ['dnssrv+_api._tcp.example.com', '10.0.0.1:80']


@patch.dict(os.environ, {'DEFAULT_PORT': ''})
def test_default_port_unset():
    """Test that an empty DEFAULT_PORT means no default port."""
    import importlib
    import jadnet_dns_sd.config as config_module
    importlib.reload(config_module)

    assert config_module.DEFAULT_PORT is None
