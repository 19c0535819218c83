from flask_talisman import Talisman

def init_security(app):
    """
    Production/staging security headers. The app only serves JSON (admin API
    and provider webhooks), so the CSP can stay locked down to 'self'.
    """
    csp = {
        "default-src": ["'self'"],
        "img-src":     ["'self'", "data:"],
        "frame-ancestors": ["'none'"],
        "base-uri":    ["'self'"],
        "form-action": ["'self'"],
    }

    Talisman(
        app,
        content_security_policy=csp,
        force_https=True,
        strict_transport_security=True,
        session_cookie_secure=True,
        frame_options="DENY",
        referrer_policy="strict-origin-when-cross-origin",
    )
