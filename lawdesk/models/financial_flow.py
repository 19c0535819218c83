from sqlalchemy import func
from lawdesk.extensions import db

class FinancialFlow(db.Model):
    __tablename__ = "financial_flows"

    id = db.Column(db.Integer, primary_key=True)
    descricao = db.Column(db.String(255), nullable=True)
    valor = db.Column(db.Numeric(12, 2), nullable=True)
    status = db.Column(db.String(32), nullable=False, server_default=db.text("'pendente'"))
    pagamento = db.Column(db.DateTime(timezone=True), nullable=True)
    empresa_id = db.Column(db.Integer, db.ForeignKey("empresas.id", ondelete="CASCADE"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<FinancialFlow id={self.id} status={self.status!r}>"
