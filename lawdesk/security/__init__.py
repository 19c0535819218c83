from .headers import init_security
from .ip_allowlist import is_ip_allowed, parse_allowlist, require_allowed_ip

__all__ = ["init_security", "is_ip_allowed", "parse_allowlist", "require_allowed_ip"]
