"""
Subscription lifecycle for a company (tenant).

Periods are fixed day offsets from an anchor date (30 days monthly, 365 days
annual), never calendar months: stored period boundaries depend on it.
Grace runs from the end of the billing period (7 days monthly, 30 annual).
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Mapping

from flask import current_app
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError

from lawdesk.errors import LawDeskError, NotFoundError, PlanNotFoundError
from lawdesk.extensions import db
from lawdesk.models import Company, Plan
from lawdesk.utils.coerce import is_positive_amount, to_bool, to_datetime, to_int, to_iso, utcnow

TRIAL_DURATION_DAYS = 14


class Cadence(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"

    @property
    def period_days(self) -> int:
        return _PERIOD_DAYS[self]

    @property
    def grace_days(self) -> int:
        return _GRACE_DAYS[self]


_PERIOD_DAYS = {Cadence.MONTHLY: 30, Cadence.ANNUAL: 365}
_GRACE_DAYS = {Cadence.MONTHLY: 7, Cadence.ANNUAL: 30}


class SubscriptionStatus(str, Enum):
    INACTIVE = "inactive"
    PENDING = "pending"
    TRIALING = "trialing"
    ACTIVE = "active"
    GRACE_PERIOD = "grace_period"
    PAST_DUE = "past_due"


@dataclass(frozen=True)
class BillingPeriod:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class SubscriptionSnapshot:
    company_id: int
    plan_id: int | None
    cadence: Cadence | None
    trial_started_at: datetime | None
    trial_ends_at: datetime | None
    current_period_start: datetime | None
    current_period_end: datetime | None
    grace_expires_at: datetime | None
    is_active: bool | None


def parse_cadence(value: Any) -> Cadence | None:
    if isinstance(value, Cadence):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Cadence(value.strip().lower())
    except ValueError:
        return None


# ---- Pure date arithmetic ----

def calculate_trial_end(start: datetime) -> datetime:
    return start + timedelta(days=TRIAL_DURATION_DAYS)


def calculate_billing_period(start: datetime, cadence: Cadence) -> BillingPeriod:
    return BillingPeriod(start=start, end=start + timedelta(days=Cadence(cadence).period_days))


def calculate_grace_deadline(period_end: datetime, cadence: Cadence) -> datetime:
    return period_end + timedelta(days=Cadence(cadence).grace_days)


# ---- Plan / snapshot lookups ----

def resolve_plan_cadence(plan_id: int, preferred: Cadence | None = None, *, session=None) -> Cadence:
    """
    Pick the cadence a plan can actually be billed on.
    Raises PlanNotFoundError: an unknown plan at subscription time must abort the request.
    """
    session = session or db.session
    plan = session.get(Plan, plan_id)
    if plan is None:
        raise PlanNotFoundError(plan_id)

    preferred = parse_cadence(preferred)
    has_monthly = is_positive_amount(plan.valor_mensal)
    has_annual = is_positive_amount(plan.valor_anual)

    if preferred is Cadence.MONTHLY and has_monthly:
        return preferred
    if preferred is Cadence.ANNUAL and has_annual:
        return preferred
    if has_monthly and not has_annual:
        return Cadence.MONTHLY
    if has_annual and not has_monthly:
        return Cadence.ANNUAL
    return preferred or Cadence.MONTHLY


def fetch_company_subscription(company_id: int, *, session=None) -> SubscriptionSnapshot | None:
    if isinstance(company_id, bool) or not isinstance(company_id, int) or company_id <= 0:
        return None
    session = session or db.session
    company = session.get(Company, company_id)
    if company is None:
        return None
    return SubscriptionSnapshot(
        company_id=company.id,
        plan_id=to_int(company.plano),
        cadence=parse_cadence(company.subscription_cadence),
        trial_started_at=to_datetime(company.trial_started_at),
        trial_ends_at=to_datetime(company.trial_ends_at),
        current_period_start=to_datetime(company.current_period_start),
        current_period_end=to_datetime(company.current_period_end),
        grace_expires_at=to_datetime(company.grace_expires_at),
        is_active=to_bool(company.ativo),
    )


def _resolve_effective_cadence(snapshot: SubscriptionSnapshot, requested: Cadence | None, session) -> Cadence:
    requested = parse_cadence(requested)
    if requested:
        return requested
    if snapshot.cadence:
        return snapshot.cadence
    if snapshot.plan_id:
        try:
            return resolve_plan_cadence(snapshot.plan_id, None, session=session)
        except (LawDeskError, SQLAlchemyError) as exc:
            current_app.logger.warning(
                "Could not resolve cadence for plan %s of company %s: %s",
                snapshot.plan_id, snapshot.company_id, exc,
            )
    current_app.logger.warning(
        "Falling back to monthly cadence for company %s", snapshot.company_id
    )
    return Cadence.MONTHLY


# ---- Persisted transitions ----

def apply_subscription_payment(company_id: int, payment_date: datetime, cadence_hint: Cadence | None = None,
                               *, session=None) -> SubscriptionSnapshot | None:
    """
    Open a fresh billing period anchored at payment_date, clear the trial and
    reactivate the company. Same inputs always persist the same values.
    """
    paid_at = to_datetime(payment_date)
    if paid_at is None:
        return None

    session = session or db.session
    snapshot = fetch_company_subscription(company_id, session=session)
    if snapshot is None:
        return None

    cadence = _resolve_effective_cadence(snapshot, cadence_hint, session)
    period = calculate_billing_period(paid_at, cadence)
    grace = calculate_grace_deadline(period.end, cadence)

    session.execute(
        update(Company)
        .where(Company.id == snapshot.company_id)
        .values(
            current_period_start=period.start,
            current_period_end=period.end,
            grace_expires_at=grace,
            subscription_cadence=cadence.value,
            trial_started_at=None,
            trial_ends_at=None,
            ativo=True,
        )
        .execution_options(synchronize_session="fetch")
    )
    session.commit()
    return fetch_company_subscription(snapshot.company_id, session=session)


def apply_subscription_overdue(company_id: int, reference_date: datetime | None = None,
                               cadence_hint: Cadence | None = None, *, session=None) -> SubscriptionSnapshot | None:
    """
    Start the grace window from reference_date (or the stored period end, or now).
    Period end and cadence are only filled in when still NULL.
    """
    session = session or db.session
    snapshot = fetch_company_subscription(company_id, session=session)
    if snapshot is None:
        return None

    cadence = _resolve_effective_cadence(snapshot, cadence_hint, session)
    if reference_date is not None:
        base = to_datetime(reference_date)
    else:
        base = snapshot.current_period_end or utcnow()
    if base is None:
        return None

    grace = calculate_grace_deadline(base, cadence)

    session.execute(
        update(Company)
        .where(Company.id == snapshot.company_id)
        .values(
            grace_expires_at=grace,
            current_period_end=func.coalesce(Company.current_period_end, base),
            subscription_cadence=func.coalesce(Company.subscription_cadence, cadence.value),
        )
        .execution_options(synchronize_session="fetch")
    )
    session.commit()
    return fetch_company_subscription(snapshot.company_id, session=session)


def create_company_subscription(company_id: int, plan_id: int, status: str, start_date: datetime,
                                cadence: Cadence | None = None, *, session=None) -> Dict[str, Any]:
    """
    Assign a plan to a company. A trialing subscription uses the trial window as
    both its period and its grace deadline.
    Raises PlanNotFoundError / NotFoundError.
    """
    session = session or db.session
    effective = resolve_plan_cadence(plan_id, cadence, session=session)

    company = session.get(Company, company_id)
    if company is None:
        raise NotFoundError("Empresa não encontrada.", {"companyId": company_id})

    is_trialing = status == SubscriptionStatus.TRIALING.value
    start = to_datetime(start_date)
    if is_trialing:
        trial_ends_at = calculate_trial_end(start)
        period = BillingPeriod(start=start, end=trial_ends_at)
        grace = trial_ends_at
    else:
        trial_ends_at = None
        period = calculate_billing_period(start, effective)
        grace = calculate_grace_deadline(period.end, effective)

    company.plano = plan_id
    company.ativo = status in (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)
    company.datacadastro = start
    company.trial_started_at = start if is_trialing else None
    company.trial_ends_at = trial_ends_at
    company.current_period_start = period.start
    company.current_period_end = period.end
    company.grace_expires_at = grace
    company.subscription_cadence = effective.value
    session.commit()

    return {
        "id": f"subscription-{company.id}",
        "companyId": company.id,
        "planId": company.plano,
        "status": status,
        "isActive": bool(company.ativo),
        "startDate": to_iso(start),
        "cadence": effective.value,
        "trialEndsAt": to_iso(trial_ends_at),
        "currentPeriodStart": to_iso(period.start),
        "currentPeriodEnd": to_iso(period.end),
        "graceExpiresAt": to_iso(grace),
    }


# ---- Render-time status ----

_ROW_KEYS = {
    # mapping key -> Company attribute
    "empresa_plano": "plano",
    "empresa_ativo": "ativo",
    "subscription_cadence": "subscription_cadence",
    "trial_started_at": "trial_started_at",
    "trial_ends_at": "trial_ends_at",
    "current_period_start": "current_period_start",
    "current_period_end": "current_period_end",
    "grace_expires_at": "grace_expires_at",
}


def _row_values(row: Company | Mapping[str, Any]) -> Dict[str, Any]:
    if isinstance(row, Mapping):
        return {key: row.get(key) for key in _ROW_KEYS}
    return {key: getattr(row, attr, None) for key, attr in _ROW_KEYS.items()}


def resolve_subscription_status_payload(row: Company | Mapping[str, Any], now: datetime | None = None) -> Dict[str, Any]:
    """
    Status precedence, first match wins:
    inactive > trialing > active > grace_period > pending > past_due.
    Unparseable stored dates count as absent.
    """
    values = _row_values(row)
    now = to_datetime(now) or utcnow()

    plan_id = to_int(values["empresa_plano"])
    is_active = to_bool(values["empresa_ativo"])
    cadence = parse_cadence(values["subscription_cadence"])
    trial_started_at = to_datetime(values["trial_started_at"])
    trial_ends_at = to_datetime(values["trial_ends_at"])
    period_start = to_datetime(values["current_period_start"])
    period_end = to_datetime(values["current_period_end"])
    grace_expires_at = to_datetime(values["grace_expires_at"])

    started_at = period_start or trial_started_at

    if plan_id is None or is_active is False:
        status = SubscriptionStatus.INACTIVE
    elif trial_started_at and trial_ends_at and now < trial_ends_at:
        status = SubscriptionStatus.TRIALING
        started_at = trial_started_at
    elif period_start and period_end and now <= period_end:
        status = SubscriptionStatus.ACTIVE
        started_at = period_start
    elif grace_expires_at and now <= grace_expires_at:
        status = SubscriptionStatus.GRACE_PERIOD
        started_at = period_start
    elif not any((trial_ends_at, period_start, period_end, grace_expires_at)):
        status = SubscriptionStatus.PENDING
    else:
        status = SubscriptionStatus.PAST_DUE
        started_at = period_start

    return {
        "planId": plan_id,
        "status": status.value,
        "cadence": cadence.value if cadence else None,
        "startedAt": to_iso(started_at),
        "trialEndsAt": to_iso(trial_ends_at),
        "currentPeriodStart": to_iso(period_start),
        "currentPeriodEnd": to_iso(period_end),
        "graceExpiresAt": to_iso(grace_expires_at),
    }
