"""
Asaas payment webhook processing.

Every outcome, accepted or rejected, is reported back to the route as a
WebhookOutcome; the route always answers 202 so provider retries never turn
business rejections into work storms. Rejections are only visible in logs.

Charge updates are last-write-wins: a redelivered event overwrites the row
with the same values.
"""
import json
from enum import Enum
from typing import Any, Mapping

from flask import current_app
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from lawdesk.errors import LawDeskError
from lawdesk.extensions import db
from lawdesk.models import AsaasCharge, FinancialFlow
from lawdesk.services import webhook_signature
from lawdesk.services.company_lookup import (
    CompanyColumnResolver,
    find_company_id_for_cliente,
    find_company_id_for_financial_flow,
)
from lawdesk.services.credentials import find_credential_secret
from lawdesk.services.subscriptions import apply_subscription_overdue, apply_subscription_payment
from lawdesk.utils.coerce import to_datetime, utcnow

PAYMENT_DATE_FIELDS = ("clientPaymentDate", "paymentDate", "confirmedDate", "creditDate", "updatedDate")

FLOW_STATUS_PAID = "pago"


class AsaasEvent(str, Enum):
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    PAYMENT_OVERDUE = "PAYMENT_OVERDUE"
    IGNORED = "IGNORED"

    @classmethod
    def parse(cls, raw: Any) -> "AsaasEvent":
        if not isinstance(raw, str):
            return cls.IGNORED
        name = raw.strip().upper()
        if name == cls.IGNORED.value:
            return cls.IGNORED
        try:
            return cls(name)
        except ValueError:
            return cls.IGNORED

    @property
    def marks_paid(self) -> bool:
        return self in (AsaasEvent.PAYMENT_RECEIVED, AsaasEvent.PAYMENT_CONFIRMED)

    @property
    def marks_overdue(self) -> bool:
        return self is AsaasEvent.PAYMENT_OVERDUE

    @property
    def default_charge_status(self) -> str:
        return {
            AsaasEvent.PAYMENT_RECEIVED: "RECEIVED",
            AsaasEvent.PAYMENT_CONFIRMED: "CONFIRMED",
            AsaasEvent.PAYMENT_OVERDUE: "OVERDUE",
        }.get(self, self.value)


class WebhookOutcome(str, Enum):
    PROCESSED = "processed"
    IGNORED_EVENT = "ignored_event"
    MISSING_CHARGE_ID = "missing_charge_id"
    CHARGE_NOT_FOUND = "charge_not_found"
    CHARGE_WITHOUT_CREDENTIAL = "charge_without_credential"
    MISSING_SECRET = "missing_secret"
    MISSING_SIGNATURE = "missing_signature"
    INVALID_SIGNATURE = "invalid_signature"
    LOOKUP_FAILED = "lookup_failed"
    PERSIST_FAILED = "persist_failed"


# ---- Payload helpers ----

def _payment(payload: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if not isinstance(payload, Mapping):
        return None
    payment = payload.get("payment")
    return payment if isinstance(payment, Mapping) else None


def extract_charge_id(payment: Mapping[str, Any] | None) -> str | None:
    if not payment:
        return None
    for key in ("id", "chargeId"):
        candidate = payment.get(key)
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def extract_payment_date(payment: Mapping[str, Any] | None):
    if not payment:
        return None
    for key in PAYMENT_DATE_FIELDS:
        candidate = payment.get(key)
        if isinstance(candidate, str):
            parsed = to_datetime(candidate)
            if parsed is not None:
                return parsed
    return None


def extract_due_date(payment: Mapping[str, Any] | None):
    if not payment or not isinstance(payment.get("dueDate"), str):
        return None
    return to_datetime(payment["dueDate"])


def extract_charge_status(event: AsaasEvent, payment: Mapping[str, Any] | None) -> str:
    status = payment.get("status") if payment else None
    if isinstance(status, str) and status.strip():
        return status.strip()
    return event.default_charge_status


def _log(level: str, outcome: WebhookOutcome, **fields):
    getattr(current_app.logger, level)(json.dumps({"event": "asaas_webhook", "outcome": outcome.value, **fields}))


# ---- Processing ----

def process_webhook(raw_body: bytes, headers: Mapping[str, str], payload: Mapping[str, Any] | None,
                    *, session=None, resolver: CompanyColumnResolver) -> WebhookOutcome:
    session = session or db.session
    raw_event = payload.get("event") if isinstance(payload, Mapping) else None
    event = AsaasEvent.parse(raw_event)

    if event is AsaasEvent.IGNORED:
        _log("info", WebhookOutcome.IGNORED_EVENT, name=raw_event if isinstance(raw_event, str) else None)
        return WebhookOutcome.IGNORED_EVENT

    payment = _payment(payload)
    charge_id = extract_charge_id(payment)
    if not charge_id:
        _log("error", WebhookOutcome.MISSING_CHARGE_ID)
        return WebhookOutcome.MISSING_CHARGE_ID

    try:
        charge = session.execute(
            select(AsaasCharge).where(AsaasCharge.asaas_charge_id == charge_id)
        ).scalar_one_or_none()
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception("asaas_webhook charge lookup failed")
        return WebhookOutcome.LOOKUP_FAILED

    if charge is None:
        _log("warning", WebhookOutcome.CHARGE_NOT_FOUND, charge=charge_id)
        return WebhookOutcome.CHARGE_NOT_FOUND

    if not charge.credential_id:
        _log("error", WebhookOutcome.CHARGE_WITHOUT_CREDENTIAL, charge=charge_id)
        return WebhookOutcome.CHARGE_WITHOUT_CREDENTIAL

    try:
        secret = find_credential_secret(charge.credential_id, session=session)
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception("asaas_webhook credential lookup failed")
        return WebhookOutcome.LOOKUP_FAILED

    if not secret:
        _log("error", WebhookOutcome.MISSING_SECRET, credential=charge.credential_id)
        return WebhookOutcome.MISSING_SECRET

    signature = webhook_signature.extract_signature(headers)
    if not signature:
        _log("error", WebhookOutcome.MISSING_SIGNATURE, charge=charge_id)
        return WebhookOutcome.MISSING_SIGNATURE

    if not webhook_signature.verify(raw_body, signature, secret):
        _log("error", WebhookOutcome.INVALID_SIGNATURE, charge=charge_id)
        return WebhookOutcome.INVALID_SIGNATURE

    status = extract_charge_status(event, payment)
    payment_date = extract_payment_date(payment) if event.marks_paid else None
    due_date = extract_due_date(payment) if event.marks_overdue else None
    financial_flow_id = charge.financial_flow_id
    cliente_id = charge.cliente_id

    try:
        session.execute(
            update(AsaasCharge)
            .where(AsaasCharge.asaas_charge_id == charge_id)
            .values(
                status=status,
                last_event=event.value,
                payload=dict(payload or {}),
                paid_at=payment_date,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session="fetch")
        )
        if financial_flow_id and event.marks_paid:
            session.execute(
                update(FinancialFlow)
                .where(FinancialFlow.id == financial_flow_id)
                .values(status=FLOW_STATUS_PAID, pagamento=payment_date or utcnow())
                .execution_options(synchronize_session="fetch")
            )
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception("asaas_webhook failed to persist charge %s", charge_id)
        return WebhookOutcome.PERSIST_FAILED

    _apply_to_company(event, financial_flow_id, cliente_id, payment_date, due_date,
                      session=session, resolver=resolver, charge_id=charge_id)

    _log("info", WebhookOutcome.PROCESSED, charge=charge_id, name=event.value, status=status)
    return WebhookOutcome.PROCESSED


def _apply_to_company(event, financial_flow_id, cliente_id, payment_date, due_date,
                      *, session, resolver, charge_id):
    """Subscription failures are logged; the charge update above already stands."""
    company_id = None
    try:
        if financial_flow_id:
            company_id = find_company_id_for_financial_flow(financial_flow_id, session=session, resolver=resolver)
        if not company_id and cliente_id is not None:
            company_id = find_company_id_for_cliente(cliente_id, session=session, resolver=resolver)
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception("asaas_webhook could not resolve company for charge %s", charge_id)
        return

    if not company_id:
        return

    try:
        if event.marks_paid:
            apply_subscription_payment(company_id, payment_date or utcnow(), session=session)
        elif event.marks_overdue:
            apply_subscription_overdue(company_id, due_date, session=session)
    except (SQLAlchemyError, LawDeskError):
        session.rollback()
        current_app.logger.exception("asaas_webhook failed to update subscription of company %s", company_id)
