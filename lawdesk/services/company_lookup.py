"""
Resolve the owning company of a financial flow or client.

Older databases name the company foreign key `empresa` or `idempresa` instead
of `empresa_id`. The column is discovered once per resolver by inspecting the
schema; the resolver lives on the app (app.extensions["company_columns"]) and
tests build their own.
"""
from typing import Dict, Iterable

from sqlalchemy import inspect as sa_inspect, text
from sqlalchemy.exc import NoSuchTableError

from lawdesk.extensions import db
from lawdesk.utils.coerce import to_int
from lawdesk.utils.validators import parse_numeric_id

COMPANY_COLUMN_CANDIDATES = ("empresa", "empresa_id", "idempresa")

FINANCIAL_FLOWS_TABLE = "financial_flows"
CLIENTES_TABLE = "clientes"


class CompanyColumnResolver:
    def __init__(self, candidates: Iterable[str] = COMPANY_COLUMN_CANDIDATES):
        self._candidates = tuple(candidates)
        self._cache: Dict[str, str | None] = {}

    def column_for(self, table_name: str, *, session=None) -> str | None:
        if table_name in self._cache:
            return self._cache[table_name]

        session = session or db.session
        inspector = sa_inspect(session.get_bind())
        try:
            names = {col["name"] for col in inspector.get_columns(table_name)}
        except NoSuchTableError:
            names = set()

        column = next((c for c in self._candidates if c in names), None)
        self._cache[table_name] = column
        return column

    def reset(self) -> None:
        self._cache.clear()


def _lookup_company(table_name: str, row_id: int, *, session, resolver: CompanyColumnResolver) -> int | None:
    session = session or db.session
    column = resolver.column_for(table_name, session=session)
    if not column:
        return None

    quote = session.get_bind().dialect.identifier_preparer.quote
    stmt = text(f"SELECT {quote(column)} AS empresa_id FROM {quote(table_name)} WHERE id = :row_id LIMIT 1")
    row = session.execute(stmt, {"row_id": row_id}).first()
    if row is None:
        return None
    return to_int(row.empresa_id)


def find_company_id_for_financial_flow(financial_flow_id, *, session=None,
                                       resolver: CompanyColumnResolver) -> int | None:
    flow_id = parse_numeric_id(financial_flow_id)
    if flow_id is None:
        return None
    return _lookup_company(FINANCIAL_FLOWS_TABLE, flow_id, session=session, resolver=resolver)


def find_company_id_for_cliente(cliente_id, *, session=None, resolver: CompanyColumnResolver) -> int | None:
    cid = parse_numeric_id(cliente_id)
    if cid is None:
        return None
    return _lookup_company(CLIENTES_TABLE, cid, session=session, resolver=resolver)
