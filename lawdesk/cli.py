import json
import click
from flask import current_app
from flask.cli import with_appcontext
from lawdesk.extensions import db
from lawdesk.models import Company
from lawdesk.services.credentials import ensure_webhook_secret, find_credential_secret
from lawdesk.services.subscriptions import (
    Cadence,
    apply_subscription_payment,
    resolve_subscription_status_payload,
)
from lawdesk.utils.coerce import to_datetime

_CADENCES = [c.value for c in Cadence]

@click.group()
def asaas():
    """Asaas integration ops."""

@asaas.command("ensure-secret")
@click.option("--integration-id", type=int, required=True)
@with_appcontext
def asaas_ensure_secret(integration_id):
    secret = ensure_webhook_secret(integration_id)
    cfg = current_app.config
    url = (cfg.get("ASAAS_WEBHOOK_PUBLIC_URL") or "").strip() or (
        (cfg.get("APP_BASE_URL") or "").rstrip("/") + cfg.get("ASAAS_WEBHOOK_PATH", "/webhooks/asaas")
    )
    click.echo(f"Webhook secret ready for integration {integration_id}: {secret}")
    click.echo(f"Webhook URL: {url}")

@asaas.command("show-secret")
@click.option("--credential-id", type=int, required=True)
@with_appcontext
def asaas_show_secret(credential_id):
    secret = find_credential_secret(credential_id)
    if not secret:
        raise click.ClickException(f"Credential {credential_id} not found or without secret")
    click.echo(secret)

@click.group()
def subscriptions():
    """Company subscription ops."""

@subscriptions.command("status")
@click.option("--company-id", type=int, required=True)
@with_appcontext
def subscriptions_status(company_id):
    company = db.session.get(Company, company_id)
    if not company:
        raise click.ClickException(f"Company id {company_id} not found")
    click.echo(json.dumps(resolve_subscription_status_payload(company), indent=2))

@subscriptions.command("apply-payment")
@click.option("--company-id", type=int, required=True)
@click.option("--date", "paid_on", required=True, help="ISO-8601 payment date")
@click.option("--cadence", type=click.Choice(_CADENCES), default=None)
@with_appcontext
def subscriptions_apply_payment(company_id, paid_on, cadence):
    payment_date = to_datetime(paid_on)
    if payment_date is None:
        raise click.BadParameter(f"not an ISO-8601 date: {paid_on}", param_hint="--date")

    snapshot = apply_subscription_payment(company_id, payment_date, Cadence(cadence) if cadence else None)
    if snapshot is None:
        raise click.ClickException(f"Company id {company_id} not found")
    current_app.logger.info("manual payment applied to company %s", company_id)
    click.echo(
        f"Company {company_id}: period {snapshot.current_period_start.isoformat()} -> "
        f"{snapshot.current_period_end.isoformat()}, grace until {snapshot.grace_expires_at.isoformat()}"
    )

def register_cli(app):
    app.cli.add_command(asaas)
    app.cli.add_command(subscriptions)
