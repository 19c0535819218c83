from flask import Blueprint

bp = Blueprint("api", __name__, url_prefix="/api")

from . import subscriptions, integrations  # noqa: E402,F401
