"""
Domain exceptions.

Raised by the service layer; the JSON API maps them to status codes in
create_app(). Webhook processing never lets them reach the provider.
"""
from typing import Any, Dict, Optional


class LawDeskError(Exception):
    """Base exception for all billing/subscription errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(LawDeskError):
    """User input is malformed (bad id, enum value or date)."""

    status_code = 400


class NotFoundError(LawDeskError):
    status_code = 404


class PlanNotFoundError(LawDeskError):
    """The plan referenced at subscription time does not exist."""

    status_code = 400

    def __init__(self, plan_id: int):
        super().__init__("Plano informado não foi encontrado.", {"planId": plan_id})
        self.plan_id = plan_id
