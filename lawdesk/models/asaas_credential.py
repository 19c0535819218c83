from sqlalchemy import func
from lawdesk.extensions import db

class AsaasCredential(db.Model):
    __tablename__ = "asaas_credentials"

    id = db.Column(db.Integer, primary_key=True)
    integration_api_key_id = db.Column(db.Integer, nullable=False, unique=True, index=True)
    webhook_secret = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        # never render the secret
        return f"<AsaasCredential id={self.id} integration_api_key_id={self.integration_api_key_id}>"
