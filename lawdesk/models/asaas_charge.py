from sqlalchemy import func
from sqlalchemy.dialects.postgresql import JSONB
from lawdesk.extensions import db

class AsaasCharge(db.Model):
    __tablename__ = "asaas_charges"

    id = db.Column(db.Integer, primary_key=True)
    asaas_charge_id = db.Column(db.String(64), nullable=False, unique=True, index=True)

    credential_id = db.Column(db.Integer, db.ForeignKey("asaas_credentials.id", ondelete="SET NULL"), nullable=True, index=True)
    financial_flow_id = db.Column(db.Integer, db.ForeignKey("financial_flows.id", ondelete="SET NULL"), nullable=True)
    cliente_id = db.Column(db.Integer, db.ForeignKey("clientes.id", ondelete="SET NULL"), nullable=True)

    status = db.Column(db.String(32), nullable=False, server_default=db.text("'PENDING'"), index=True)
    last_event = db.Column(db.String(64), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    # Raw provider payload, stored verbatim for audit
    payload = db.Column(db.JSON().with_variant(JSONB, "postgresql"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<AsaasCharge id={self.id} asaas_charge_id={self.asaas_charge_id!r} status={self.status!r}>"
