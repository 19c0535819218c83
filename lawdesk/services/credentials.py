import secrets

from sqlalchemy import func, or_, select, update

from lawdesk.extensions import db
from lawdesk.models import AsaasCredential


def generate_webhook_secret() -> str:
    return secrets.token_hex(32)


def _insert_ignore_conflict(session, values: dict):
    """INSERT ... ON CONFLICT (integration_api_key_id) DO NOTHING, per dialect."""
    dialect_name = session.get_bind().dialect.name
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as _insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as _insert
    else:
        raise RuntimeError(f"Unsupported database dialect for credential upsert: {dialect_name}")
    stmt = _insert(AsaasCredential).values(**values).on_conflict_do_nothing(
        index_elements=["integration_api_key_id"]
    )
    return session.execute(stmt)


def _stored_secret(session, integration_id: int) -> str:
    return session.execute(
        select(AsaasCredential.webhook_secret).where(AsaasCredential.integration_api_key_id == integration_id)
    ).scalar_one()


def ensure_webhook_secret(integration_id: int, *, session=None) -> str:
    """
    Make sure the credential for an integration carries a webhook secret and
    return it. Concurrent first-use callers race on the INSERT (no row yet) or
    on the conditional UPDATE (row with a blank secret); exactly one secret
    wins and the losers read it back.
    """
    session = session or db.session
    cred = session.execute(
        select(AsaasCredential).where(AsaasCredential.integration_api_key_id == integration_id)
    ).scalar_one_or_none()

    if cred is not None:
        current = (cred.webhook_secret or "").strip()
        if current:
            return current
        cred_id = cred.id
        session.execute(
            update(AsaasCredential)
            .where(
                AsaasCredential.id == cred_id,
                or_(AsaasCredential.webhook_secret.is_(None), func.trim(AsaasCredential.webhook_secret) == ""),
            )
            .values(webhook_secret=generate_webhook_secret())
            .execution_options(synchronize_session=False)
        )
    else:
        _insert_ignore_conflict(session, {
            "integration_api_key_id": integration_id,
            "webhook_secret": generate_webhook_secret(),
        })
    session.commit()

    return _stored_secret(session, integration_id).strip()


def find_credential_secret(credential_id: int, *, session=None) -> str | None:
    session = session or db.session
    cred = session.get(AsaasCredential, credential_id)
    if cred is None:
        return None
    secret = (cred.webhook_secret or "").strip()
    return secret or None
