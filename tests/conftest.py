import os
# Ensure the app factory picks the Testing config & SQLite memory DB
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///:memory:")

from datetime import datetime, timezone

import pytest
from lawdesk import create_app
from lawdesk.extensions import db
from lawdesk.models import AsaasCharge, AsaasCredential, Cliente, Company, FinancialFlow, Plan

@pytest.fixture(scope="session")
def app():
    app = create_app()
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
        WTF_CSRF_ENABLED=False,
        APP_ENV="test",
        ASAAS_WEBHOOK_ALLOWED_IPS="",
        ASAAS_WEBHOOK_PUBLIC_URL="",
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture()
def resolver(app):
    return app.extensions["company_columns"]

@pytest.fixture(autouse=True)
def _db_clean(app):
    # Clean BEFORE each test
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()
    app.extensions["company_columns"].reset()
    yield
    # And AFTER each test (keeps state hermetic even if a test fails mid-transaction)
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def seed_billing(app, *, company_id=7, plan_id=5, cadence="monthly", charge_id="ch_1",
                 secret="whsec_test", link="flow", **company_fields):
    """
    Plan + company + Asaas credential + charge, with the charge linked to the
    company through a financial flow (link="flow") or a client (link="cliente").
    """
    with app.app_context():
        db.session.add(Plan(id=plan_id, nome="Escritório", valor_mensal=99, valor_anual=990))
        db.session.add(Company(
            id=company_id, nome_empresa="Silva & Associados", plano=plan_id, ativo=True,
            subscription_cadence=cadence, **company_fields,
        ))
        db.session.add(AsaasCredential(id=1, integration_api_key_id=11, webhook_secret=secret))
        db.session.flush()

        flow_id = cliente_id = None
        if link == "flow":
            db.session.add(FinancialFlow(id=31, descricao="Mensalidade", valor=99, empresa_id=company_id))
            flow_id = 31
        elif link == "cliente":
            db.session.add(Cliente(id=41, nome="Maria", empresa_id=company_id))
            cliente_id = 41
        db.session.flush()

        db.session.add(AsaasCharge(
            asaas_charge_id=charge_id, credential_id=1,
            financial_flow_id=flow_id, cliente_id=cliente_id, status="PENDING",
        ))
        db.session.commit()
