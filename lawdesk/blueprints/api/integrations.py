from flask import current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from . import bp
from lawdesk.services.asaas_webhooks import AsaasEvent
from lawdesk.services.credentials import find_credential_secret
from lawdesk.utils.validators import parse_positive_id


def resolve_webhook_url() -> str:
    """ASAAS_WEBHOOK_PUBLIC_URL wins; otherwise derive it from the (proxied) request."""
    cfg = current_app.config
    public = (cfg.get("ASAAS_WEBHOOK_PUBLIC_URL") or "").strip()
    if public:
        return public

    path = cfg.get("ASAAS_WEBHOOK_PATH") or "/webhooks/asaas"
    proto = (request.headers.get("X-Forwarded-Proto") or request.scheme or "").split(",")[0].strip()
    host = (request.headers.get("X-Forwarded-Host") or request.headers.get("Host") or "").split(",")[0].strip()
    if host:
        return f"{proto or 'https'}://{host}{path}"
    return f"https://<SEU_BACKEND>{path}"


def _instructions(webhook_url: str) -> list[str]:
    events = ", ".join(e.value for e in AsaasEvent if e is not AsaasEvent.IGNORED)
    return [
        "1. Acesse o painel do Asaas e navegue até Configurações > Integrações > Webhooks.",
        f"2. Informe a URL {webhook_url} como destino do webhook e selecione os eventos de pagamento desejados (ex.: {events}).",
        "3. Copie o valor de webhookSecret informado abaixo e utilize-o no campo de assinatura compartilhada do Asaas.",
        "4. Salve a configuração e realize um pagamento de teste para validar o fluxo de confirmação automática.",
    ]


@bp.get("/integrations/asaas/credentials/<credential_id>/webhook")
def asaas_webhook_secret(credential_id):
    cid = parse_positive_id(credential_id)
    if cid is None:
        return jsonify({"error": "Parâmetro credentialId inválido"}), 400

    try:
        secret = find_credential_secret(cid)
    except SQLAlchemyError:
        current_app.logger.exception("GET /api/integrations/asaas/credentials/<id>/webhook failed")
        return jsonify({"error": "Erro ao recuperar o segredo do webhook"}), 500

    if not secret:
        return jsonify({"error": "Credencial não localizada ou sem segredo configurado"}), 404

    webhook_url = resolve_webhook_url()
    return jsonify({
        "credentialId": cid,
        "webhookUrl": webhook_url,
        "webhookSecret": secret,
        "instructions": _instructions(webhook_url),
    })
