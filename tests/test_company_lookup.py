from sqlalchemy import text

from lawdesk.extensions import db
from lawdesk.services.company_lookup import (
    CompanyColumnResolver,
    find_company_id_for_cliente,
    find_company_id_for_financial_flow,
)
from conftest import seed_billing

def test_resolves_company_through_flow_and_cliente(app, resolver):
    seed_billing(app, link="flow")
    with app.app_context():
        assert find_company_id_for_financial_flow(31, resolver=resolver) == 7
        assert find_company_id_for_financial_flow("31", resolver=resolver) == 7
        assert find_company_id_for_financial_flow(999, resolver=resolver) is None
        assert find_company_id_for_financial_flow("abc", resolver=resolver) is None
        assert find_company_id_for_cliente(41, resolver=resolver) is None

def test_column_probe_is_cached_until_reset(app):
    resolver = CompanyColumnResolver()
    with app.app_context():
        assert resolver.column_for("financial_flows") == "empresa_id"
        assert resolver.column_for("no_such_table") is None

        db.session.execute(text("CREATE TABLE legacy_clientes (id INTEGER PRIMARY KEY, idempresa INTEGER)"))
        db.session.commit()
        try:
            assert resolver.column_for("legacy_clientes") == "idempresa"
            db.session.execute(text("DROP TABLE legacy_clientes"))
            db.session.execute(text("CREATE TABLE legacy_clientes (id INTEGER PRIMARY KEY, empresa INTEGER)"))
            db.session.commit()
            # cached answer survives a schema change
            assert resolver.column_for("legacy_clientes") == "idempresa"
            resolver.reset()
            assert resolver.column_for("legacy_clientes") == "empresa"
        finally:
            db.session.execute(text("DROP TABLE IF EXISTS legacy_clientes"))
            db.session.commit()

def test_candidate_order_is_respected(app):
    with app.app_context():
        db.session.execute(text(
            "CREATE TABLE legacy_flows (id INTEGER PRIMARY KEY, idempresa INTEGER, empresa INTEGER)"
        ))
        db.session.commit()
        try:
            assert CompanyColumnResolver().column_for("legacy_flows") == "empresa"
            assert CompanyColumnResolver(("idempresa", "empresa")).column_for("legacy_flows") == "idempresa"
        finally:
            db.session.execute(text("DROP TABLE IF EXISTS legacy_flows"))
            db.session.commit()

def test_missing_company_column_means_no_company(app):
    seed_billing(app, link="cliente")
    resolver = CompanyColumnResolver(candidates=("tenant_id",))
    with app.app_context():
        assert find_company_id_for_cliente(41, resolver=resolver) is None
