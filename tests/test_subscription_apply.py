import pytest
from lawdesk.errors import NotFoundError, PlanNotFoundError
from lawdesk.extensions import db
from lawdesk.models import Company, Plan
from lawdesk.services.subscriptions import (
    Cadence,
    apply_subscription_overdue,
    apply_subscription_payment,
    create_company_subscription,
    fetch_company_subscription,
)
from lawdesk.utils.coerce import to_datetime
from conftest import utc

def _company(app, company_id=7, plan=None, cadence=None, ativo=True, **fields):
    with app.app_context():
        if plan is not None:
            mensal, anual = plan
            db.session.add(Plan(id=5, nome="Escritório", valor_mensal=mensal, valor_anual=anual))
        db.session.add(Company(
            id=company_id, nome_empresa="Silva & Associados", plano=5 if plan is not None else None,
            ativo=ativo, subscription_cadence=cadence, **fields,
        ))
        db.session.commit()


def test_payment_sets_period_and_clears_trial(app):
    _company(app, plan=(99, 990), cadence="monthly",
             trial_started_at=utc(2024, 3, 1), trial_ends_at=utc(2024, 3, 15), ativo=False)
    with app.app_context():
        snap = apply_subscription_payment(7, utc(2024, 3, 10, 12))
        assert snap.current_period_start == utc(2024, 3, 10, 12)
        assert snap.current_period_end == utc(2024, 4, 9, 12)
        assert snap.grace_expires_at == utc(2024, 4, 16, 12)
        assert snap.trial_started_at is None
        assert snap.trial_ends_at is None
        assert snap.is_active is True
        assert snap.cadence is Cadence.MONTHLY

def test_payment_is_idempotent(app):
    _company(app, plan=(99, 990), cadence="annual")
    with app.app_context():
        first = apply_subscription_payment(7, utc(2024, 1, 1))
        second = apply_subscription_payment(7, utc(2024, 1, 1))
        assert first == second
        assert second.current_period_end == utc(2024, 12, 31)

def test_cadence_hint_beats_stored_cadence(app):
    _company(app, plan=(99, 990), cadence="monthly")
    with app.app_context():
        snap = apply_subscription_payment(7, utc(2024, 1, 1), Cadence.ANNUAL)
        assert snap.cadence is Cadence.ANNUAL
        assert snap.grace_expires_at == utc(2025, 1, 30)

def test_cadence_derived_from_plan_when_not_stored(app):
    _company(app, plan=(None, 990), cadence=None)
    with app.app_context():
        snap = apply_subscription_payment(7, utc(2024, 1, 1))
        assert snap.cadence is Cadence.ANNUAL
        assert snap.current_period_end == utc(2024, 12, 31)

def test_monthly_fallback_without_plan(app):
    _company(app, plan=None, cadence=None)
    with app.app_context():
        snap = apply_subscription_payment(7, "2024-01-01T00:00:00Z")
        assert snap.cadence is Cadence.MONTHLY
        assert snap.current_period_end == utc(2024, 1, 31)

def test_payment_noops(app):
    _company(app, plan=(99, None), cadence="monthly")
    with app.app_context():
        assert apply_subscription_payment(999, utc(2024, 1, 1)) is None
        assert apply_subscription_payment(7, "not a date") is None
        assert apply_subscription_payment(0, utc(2024, 1, 1)) is None
        assert fetch_company_subscription(7).current_period_end is None


def test_overdue_keeps_existing_period_end(app):
    _company(app, plan=(99, None), cadence="monthly",
             current_period_start=utc(2024, 3, 10), current_period_end=utc(2024, 4, 9))
    with app.app_context():
        snap = apply_subscription_overdue(7, utc(2024, 4, 12))
        assert snap.current_period_end == utc(2024, 4, 9)
        assert snap.grace_expires_at == utc(2024, 4, 19)

def test_overdue_without_reference_uses_stored_period_end(app):
    _company(app, plan=(None, 990), cadence="annual", current_period_end=utc(2024, 12, 31))
    with app.app_context():
        snap = apply_subscription_overdue(7)
        assert snap.grace_expires_at == utc(2025, 1, 30)

def test_overdue_fills_null_period_end_and_cadence(app):
    _company(app, plan=(99, None), cadence=None)
    with app.app_context():
        snap = apply_subscription_overdue(7, utc(2024, 4, 9))
        assert snap.current_period_end == utc(2024, 4, 9)
        assert snap.grace_expires_at == utc(2024, 4, 16)
        assert snap.cadence is Cadence.MONTHLY

def test_overdue_does_not_overwrite_stored_cadence(app):
    _company(app, plan=(99, 990), cadence="annual")
    with app.app_context():
        snap = apply_subscription_overdue(7, utc(2024, 4, 9), Cadence.MONTHLY)
        # the hint drives the grace length but never replaces a stored cadence
        assert snap.grace_expires_at == utc(2024, 4, 16)
        assert snap.cadence is Cadence.ANNUAL

def test_overdue_unknown_company(app):
    with app.app_context():
        assert apply_subscription_overdue(404, utc(2024, 4, 9)) is None


def test_create_active_subscription(app):
    _company(app, plan=(99, 990), ativo=False)
    with app.app_context():
        payload = create_company_subscription(7, 5, "active", utc(2024, 1, 31), Cadence.MONTHLY)
        assert payload == {
            "id": "subscription-7",
            "companyId": 7,
            "planId": 5,
            "status": "active",
            "isActive": True,
            "startDate": "2024-01-31T00:00:00+00:00",
            "cadence": "monthly",
            "trialEndsAt": None,
            "currentPeriodStart": "2024-01-31T00:00:00+00:00",
            "currentPeriodEnd": "2024-03-01T00:00:00+00:00",
            "graceExpiresAt": "2024-03-08T00:00:00+00:00",
        }
        company = db.session.get(Company, 7)
        assert company.ativo is True
        assert to_datetime(company.datacadastro) == utc(2024, 1, 31)

def test_create_trialing_subscription_uses_trial_window(app):
    _company(app, plan=(99, 990))
    with app.app_context():
        payload = create_company_subscription(7, 5, "trialing", utc(2024, 3, 1))
        assert payload["trialEndsAt"] == "2024-03-15T00:00:00+00:00"
        assert payload["currentPeriodEnd"] == payload["trialEndsAt"]
        assert payload["graceExpiresAt"] == payload["trialEndsAt"]
        assert payload["cadence"] == "monthly"

        snap = fetch_company_subscription(7)
        assert snap.trial_started_at == utc(2024, 3, 1)
        assert snap.trial_ends_at == utc(2024, 3, 15)

def test_create_subscription_errors(app):
    _company(app, plan=(99, 990))
    with app.app_context():
        with pytest.raises(PlanNotFoundError):
            create_company_subscription(7, 77, "active", utc(2024, 1, 1))
        with pytest.raises(NotFoundError):
            create_company_subscription(404, 5, "active", utc(2024, 1, 1))
