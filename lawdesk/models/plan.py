from sqlalchemy import func
from lawdesk.extensions import db

class Plan(db.Model):
    __tablename__ = "planos"

    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(255), nullable=False)
    # Either tier may be NULL/0 when the plan is only sold on the other cadence
    valor_mensal = db.Column(db.Numeric(12, 2), nullable=True)
    valor_anual = db.Column(db.Numeric(12, 2), nullable=True)
    ativo = db.Column(db.Boolean, nullable=False, server_default=db.text("true"))

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<Plan id={self.id} nome={self.nome!r}>"
