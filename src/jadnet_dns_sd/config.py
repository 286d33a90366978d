"""Configuration module for jadnet-dns-sd."""
import os
import logging

# --- Configuration ---
# DNS_SD_ADDRESSES is a comma-separated list of address specs, e.g.
# "127.0.0.1:9090,dns+node.example.com:9100,dnssrv+_api._tcp.example.com"
_addresses_env = os.getenv('DNS_SD_ADDRESSES', '')
DNS_SD_ADDRESSES = [addr.strip() for addr in _addresses_env.split(',') if addr.strip()]

REFRESH_INTERVAL = float(os.getenv('REFRESH_INTERVAL', 30))
# 0 disables the per-cycle deadline
RESOLVE_TIMEOUT = float(os.getenv('RESOLVE_TIMEOUT', 10))
STATS_INTERVAL = float(os.getenv('STATS_INTERVAL', 300))

# RESOLVER is "system" (platform resolver for A/AAAA) or "nameserver"
RESOLVER = os.getenv('RESOLVER', 'system').lower()
_nameservers_env = os.getenv('NAMESERVERS', '')
NAMESERVERS = [ns.strip() for ns in _nameservers_env.split(',') if ns.strip()]
DNS_PROTOCOL = os.getenv('DNS_PROTOCOL', 'udp').lower()
QUERY_TIMEOUT = float(os.getenv('QUERY_TIMEOUT', 4.0))

_default_port_env = os.getenv('DEFAULT_PORT', '').strip()
DEFAULT_PORT = int(_default_port_env) if _default_port_env else None

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# --- Logging Setup ---
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger("dns-sd")
