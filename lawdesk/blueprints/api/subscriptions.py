from flask import current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from . import bp
from lawdesk.errors import NotFoundError, PlanNotFoundError, ValidationError
from lawdesk.extensions import db, limiter
from lawdesk.models import Company
from lawdesk.services.subscriptions import (
    SubscriptionStatus,
    create_company_subscription,
    parse_cadence,
    resolve_subscription_status_payload,
)
from lawdesk.utils.validators import parse_numeric_id, parse_start_date, parse_subscription_status


@bp.post("/subscriptions")
@limiter.limit("30/minute")
def create_subscription():
    data = request.get_json(silent=True) or {}
    company_id = parse_numeric_id(data.get("companyId"))
    plan_id = parse_numeric_id(data.get("planId"))
    status = parse_subscription_status(data.get("status")) or SubscriptionStatus.ACTIVE.value
    start_date = parse_start_date(data.get("startDate"))
    cadence = parse_cadence(data.get("cadence"))

    if company_id is None or plan_id is None or start_date is None:
        raise ValidationError("Dados inválidos para criar assinatura.")

    try:
        payload = create_company_subscription(company_id, plan_id, status, start_date, cadence)
    except PlanNotFoundError:
        current_app.logger.warning("create_subscription: unknown plan %s", plan_id)
        return jsonify({"error": "Plano informado é inválido para criar assinatura."}), 400
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(
            "api.subscriptions.create_failed",
            extra={"company_id": company_id, "plan_id": plan_id},
        )
        return jsonify({"error": "Não foi possível criar a assinatura."}), 500

    return jsonify(payload), 201


@bp.get("/companies/<int:company_id>/subscription")
def company_subscription(company_id: int):
    company = db.session.get(Company, company_id)
    if company is None:
        raise NotFoundError("Empresa não encontrada.", {"companyId": company_id})
    return jsonify(resolve_subscription_status_payload(company))
