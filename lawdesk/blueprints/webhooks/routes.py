import json
from flask import request, jsonify, current_app
from . import bp
from lawdesk.extensions import csrf, limiter
from lawdesk.security.ip_allowlist import require_allowed_ip
from lawdesk.services.asaas_webhooks import process_webhook

def _webhook_limit():
    return current_app.config.get("ASAAS_WEBHOOK_RATE_LIMIT") or "120 per minute"

def _received():
    return jsonify({"received": True}), 202

# ----- Asaas Webhook (payments -> subscription lifecycle) -----
@csrf.exempt
@bp.post("/asaas")
@limiter.limit(_webhook_limit)
@require_allowed_ip("ASAAS_WEBHOOK_ALLOWED_IPS")
def asaas_webhook():
    """
    Asaas -> /webhooks/asaas
    The signature covers the raw bytes, so read them before any JSON parsing.
    Always 202 {"received": true}; rejections are only visible in logs.
    """
    raw_bytes = request.get_data(cache=True, as_text=False) or b""
    try:
        payload = json.loads(raw_bytes.decode("utf-8")) if raw_bytes else {}
    except (UnicodeDecodeError, ValueError):
        current_app.logger.warning("asaas_webhook body is not valid JSON")
        return _received()

    process_webhook(
        raw_bytes,
        request.headers,
        payload if isinstance(payload, dict) else {},
        resolver=current_app.extensions["company_columns"],
    )
    return _received()
