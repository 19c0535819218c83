import ipaddress
from functools import wraps
from typing import Callable, List

from flask import current_app, jsonify, request

Network = ipaddress.IPv4Network | ipaddress.IPv6Network


def parse_allowlist(raw: str | None) -> List[Network]:
    """
    Comma-separated IPs or CIDRs. Unparseable entries are skipped (and logged by
    the caller) rather than widening or breaking the list.
    """
    networks: List[Network] = []
    for item in (raw or "").split(","):
        item = item.strip()
        if not item:
            continue
        try:
            networks.append(ipaddress.ip_network(item, strict=False))
        except ValueError:
            continue
    return networks


def is_ip_allowed(ip: str | None, allowlist: List[Network]) -> bool:
    if not allowlist:
        return True
    if not ip:
        return False
    try:
        addr = ipaddress.ip_address(ip.strip())
    except ValueError:
        return False
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped:
        addr = addr.ipv4_mapped
    return any(addr in net for net in allowlist)


def require_allowed_ip(config_key: str) -> Callable:
    """
    Gate a view on the client IP. An empty list in app.config[config_key]
    allows everyone.
    """
    def decorator(fn: Callable) -> Callable:
        @wraps(fn)
        def wrapper(*args, **kwargs):
            raw = current_app.config.get(config_key) or ""
            allowlist = parse_allowlist(raw)
            if raw.strip() and not allowlist:
                current_app.logger.warning("%s has no valid entries; allowing all", config_key)
            if not is_ip_allowed(request.remote_addr, allowlist):
                current_app.logger.warning("ip_allowlist rejected %s on %s", request.remote_addr, request.path)
                return jsonify({"error": "forbidden", "code": 403}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
