from .plan import Plan
from .company import Company
from .cliente import Cliente
from .financial_flow import FinancialFlow
from .asaas_credential import AsaasCredential
from .asaas_charge import AsaasCharge

__all__ = [
    "Plan",
    "Company",
    "Cliente",
    "FinancialFlow",
    "AsaasCredential",
    "AsaasCharge",
]
