from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

DEFAULT_ACCOUNT = "likhtman"
DEFAULT_DEAL_URL_TEMPLATE = "https://{account}.megaplan.ru/deals/{deal_id}/card/"
DEFAULT_EXPENSES_TOTAL_FIELD = "Category1000061CustomFieldRashodiSummaItogo"
DEFAULT_LOGISTICS_FINAL_COST = "$.Category1000084CustomFieldFinalnayaStoimost.valueInMain"
DEFAULT_SUPPLIERS_FINAL_COST = "$.Category1000083CustomFieldFinalnayaStoimost.valueInMain"


def _setting(name: str, default: str) -> str:
    # Empty strings count as unset, same as the Functions portal leaving a value blank.
    return (os.getenv(name) or default).strip()


@dataclass(frozen=True)
class FieldMap:
    """Custom-field specifiers for one expense deal (plain ids or `$.` paths)."""

    status: str = "1001"
    category: str = "1002"
    brand: str = "1003"
    contractor: str = "1004"
    payment_type: str = "1005"
    amount: str = "1006"
    additional_cost: str = "1007"
    final_cost: str = "1008"
    fair_cost: str = "1009"
    currency: str = "1010"


@dataclass(frozen=True)
class ProgramFields:
    """Which field holds the final cost for each expense program."""

    logistics_id: str = "36"
    logistics_path: str = DEFAULT_LOGISTICS_FINAL_COST
    suppliers_id: str = "35"
    suppliers_path: str = DEFAULT_SUPPLIERS_FINAL_COST

    def path_for(self, program_id: Optional[str]) -> Optional[str]:
        if program_id == self.logistics_id:
            return self.logistics_path
        if program_id == self.suppliers_id:
            return self.suppliers_path
        return None


@dataclass(frozen=True)
class Settings:
    account: str = DEFAULT_ACCOUNT
    api_url: str = f"https://{DEFAULT_ACCOUNT}.megaplan.ru/api/v3"
    bearer_token: str = ""
    login: str = ""
    password: str = ""
    timeout_seconds: float = 30.0
    deal_url_template: str = DEFAULT_DEAL_URL_TEMPLATE
    fields: FieldMap = field(default_factory=FieldMap)
    programs: ProgramFields = field(default_factory=ProgramFields)
    expenses_total_field: str = DEFAULT_EXPENSES_TOTAL_FIELD
    write_back_method: str = "POST"
    gotenberg_url: str = "http://localhost:3001"
    pdf_timeout_seconds: float = 30.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.bearer_token or (self.login and self.password))

    def describe(self) -> Dict[str, object]:
        """Non-secret summary for the health endpoint."""
        return {
            "megaplanAccount": self.account or "not configured",
            "hasBearerToken": bool(self.bearer_token),
            "hasLogin": bool(self.login),
            "hasPassword": bool(self.password),
            "hasCredentials": self.has_credentials,
            "gotenbergUrl": self.gotenberg_url,
        }


def _float_setting(name: str, default: float) -> float:
    raw = _setting(name, "")
    try:
        parsed = float(raw) if raw else default
    except ValueError:
        parsed = default
    return parsed if parsed > 0 else default


def load_settings() -> Settings:
    """
    Build the process-wide Settings from the environment.
    Credentials are not validated here; the Megaplan client refuses to start without them.
    """
    account = _setting("MEGAPLAN_ACCOUNT", DEFAULT_ACCOUNT)
    method = _setting("WRITE_BACK_METHOD", "POST").upper()
    return Settings(
        account=account,
        api_url=_setting("MEGAPLAN_API_URL", f"https://{account}.megaplan.ru/api/v3").rstrip("/"),
        bearer_token=_setting("MEGAPLAN_BEARER_TOKEN", ""),
        login=_setting("MEGAPLAN_LOGIN", ""),
        password=os.getenv("MEGAPLAN_PASSWORD") or "",
        timeout_seconds=_float_setting("MEGAPLAN_TIMEOUT_SECONDS", 30.0),
        deal_url_template=_setting("MEGAPLAN_DEAL_URL_TEMPLATE", DEFAULT_DEAL_URL_TEMPLATE),
        fields=FieldMap(
            status=_setting("FIELD_STATUS", "1001"),
            category=_setting("FIELD_CATEGORY", "1002"),
            brand=_setting("FIELD_BRAND", "1003"),
            contractor=_setting("FIELD_CONTRACTOR", "1004"),
            payment_type=_setting("FIELD_PAYMENT_TYPE", "1005"),
            amount=_setting("FIELD_AMOUNT", "1006"),
            additional_cost=_setting("FIELD_ADDITIONAL_COST", "1007"),
            final_cost=_setting("FIELD_FINAL_COST", "1008"),
            fair_cost=_setting("FIELD_FAIR_COST", "1009"),
            currency=_setting("FIELD_CURRENCY", "1010"),
        ),
        programs=ProgramFields(
            logistics_id=_setting("PROGRAM_LOGISTICS_ID", "36"),
            logistics_path=_setting("FIELD_LOGISTICS_FINAL_COST", DEFAULT_LOGISTICS_FINAL_COST),
            suppliers_id=_setting("PROGRAM_SUPPLIERS_ID", "35"),
            suppliers_path=_setting("FIELD_SUPPLIERS_FINAL_COST", DEFAULT_SUPPLIERS_FINAL_COST),
        ),
        expenses_total_field=_setting("FIELD_EXPENSES_TOTAL", DEFAULT_EXPENSES_TOTAL_FIELD),
        write_back_method=method if method in {"POST", "PUT"} else "POST",
        gotenberg_url=_setting("GOTENBERG_URL", "http://localhost:3001").rstrip("/"),
        pdf_timeout_seconds=_float_setting("GOTENBERG_TIMEOUT_SECONDS", 30.0),
    )
