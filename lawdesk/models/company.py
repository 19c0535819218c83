from sqlalchemy import CheckConstraint, func
from lawdesk.extensions import db

class Company(db.Model):
    """Tenant (law firm). Subscription windows live directly on this row."""
    __tablename__ = "empresas"

    id = db.Column(db.Integer, primary_key=True)
    nome_empresa = db.Column(db.String(255), nullable=False)
    plano = db.Column(db.Integer, db.ForeignKey("planos.id", ondelete="SET NULL"), nullable=True, index=True)
    ativo = db.Column(db.Boolean, nullable=False, server_default=db.text("true"))
    datacadastro = db.Column(db.DateTime(timezone=True), nullable=True)

    trial_started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    trial_ends_at = db.Column(db.DateTime(timezone=True), nullable=True)
    current_period_start = db.Column(db.DateTime(timezone=True), nullable=True)
    current_period_end = db.Column(db.DateTime(timezone=True), nullable=True, index=True)
    grace_expires_at = db.Column(db.DateTime(timezone=True), nullable=True)
    subscription_cadence = db.Column(db.String(16), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "subscription_cadence IS NULL OR subscription_cadence IN ('monthly', 'annual')",
            name="ck_empresas_subscription_cadence",
        ),
    )

    def __repr__(self) -> str:
        return f"<Company id={self.id} plano={self.plano} ativo={self.ativo} cadence={self.subscription_cadence!r}>"
