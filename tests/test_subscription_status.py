from lawdesk.extensions import db
from lawdesk.models import Company, Plan
from lawdesk.services.subscriptions import resolve_subscription_status_payload
from conftest import utc

NOW = utc(2024, 4, 1, 12)

def _row(**overrides):
    row = {
        "empresa_plano": 5,
        "empresa_ativo": True,
        "subscription_cadence": "monthly",
        "trial_started_at": None,
        "trial_ends_at": None,
        "current_period_start": None,
        "current_period_end": None,
        "grace_expires_at": None,
    }
    row.update(overrides)
    return row

def _status(**overrides):
    return resolve_subscription_status_payload(_row(**overrides), now=NOW)["status"]


def test_trialing_until_trial_end():
    payload = resolve_subscription_status_payload(
        _row(trial_started_at=utc(2024, 3, 25), trial_ends_at=utc(2024, 4, 8),
             current_period_start=utc(2024, 3, 25), current_period_end=utc(2024, 4, 8),
             grace_expires_at=utc(2024, 4, 8)),
        now=NOW,
    )
    assert payload["status"] == "trialing"
    assert payload["startedAt"] == "2024-03-25T00:00:00+00:00"
    assert payload["trialEndsAt"] == "2024-04-08T00:00:00+00:00"

def test_trial_end_is_exclusive():
    assert _status(trial_started_at=utc(2024, 3, 18, 12), trial_ends_at=NOW) == "past_due"

def test_active_within_period_end_inclusive():
    payload = resolve_subscription_status_payload(
        _row(current_period_start=utc(2024, 3, 10, 12), current_period_end=utc(2024, 4, 9, 12),
             grace_expires_at=utc(2024, 4, 16, 12)),
        now=NOW,
    )
    assert payload == {
        "planId": 5,
        "status": "active",
        "cadence": "monthly",
        "startedAt": "2024-03-10T12:00:00+00:00",
        "trialEndsAt": None,
        "currentPeriodStart": "2024-03-10T12:00:00+00:00",
        "currentPeriodEnd": "2024-04-09T12:00:00+00:00",
        "graceExpiresAt": "2024-04-16T12:00:00+00:00",
    }
    assert _status(current_period_start=utc(2024, 3, 2, 12), current_period_end=NOW) == "active"

def test_grace_period_after_period_end():
    assert _status(current_period_start=utc(2024, 2, 20), current_period_end=utc(2024, 3, 21),
                   grace_expires_at=utc(2024, 4, 1, 12)) == "grace_period"

def test_past_due_after_grace():
    assert _status(current_period_start=utc(2024, 1, 1), current_period_end=utc(2024, 1, 31),
                   grace_expires_at=utc(2024, 2, 7)) == "past_due"

def test_pending_when_no_dates():
    payload = resolve_subscription_status_payload(_row(), now=NOW)
    assert payload["status"] == "pending"
    assert payload["startedAt"] is None

def test_inactive_wins_over_everything():
    dates = dict(trial_started_at=utc(2024, 3, 25), trial_ends_at=utc(2024, 4, 8))
    assert _status(empresa_ativo=False, **dates) == "inactive"
    assert _status(empresa_ativo="0", **dates) == "inactive"
    assert _status(empresa_plano=None, **dates) == "inactive"

def test_string_and_malformed_dates():
    assert _status(current_period_start="2024-03-10T12:00:00Z",
                   current_period_end="2024-04-09T12:00:00Z") == "active"
    # unparseable dates count as absent
    assert _status(current_period_end="not-a-date", grace_expires_at="31/12/2024") == "pending"

def test_unknown_cadence_rendered_as_none():
    payload = resolve_subscription_status_payload(_row(subscription_cadence="weekly"), now=NOW)
    assert payload["cadence"] is None

def test_accepts_company_row(app):
    with app.app_context():
        db.session.add(Plan(id=5, nome="Escritório", valor_mensal=99))
        company = Company(
            id=3, nome_empresa="Costa Advogados", plano=5, ativo=True, subscription_cadence="annual",
            current_period_start=utc(2024, 1, 1), current_period_end=utc(2024, 12, 31),
            grace_expires_at=utc(2025, 1, 30),
        )
        db.session.add(company)
        db.session.commit()

        payload = resolve_subscription_status_payload(db.session.get(Company, 3), now=NOW)
        assert payload["status"] == "active"
        assert payload["cadence"] == "annual"
        assert payload["planId"] == 5
        assert payload["currentPeriodEnd"] == "2024-12-31T00:00:00+00:00"
