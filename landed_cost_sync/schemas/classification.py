"""
Classification schemas — HS classification request and response models.

Request models serialize to the classification API's camelCase params.
The response model normalizes status values and exposes the routing
predicates used by the sync service.
Version: 1.0.0
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from landed_cost_sync.core.constants.sync import AUTH_ERROR_CODES

STATUS_PENDING = "pending"
STATUS_CLASSIFIED = "classified"
STATUS_CANNOT_BE_CLASSIFIED = "cannot_be_classified"
STATUS_ERROR = "error"


class HSItem(BaseModel):
    """Item block of a classification request."""
    company_id: str
    item_code: str
    summary: str
    description: str = ""
    item_group: str = ""
    parent_code: Optional[str] = None
    classification_parameters: List[Dict[str, str]] = Field(default_factory=list)

    def to_api_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "companyId": self.company_id,
            "itemCode": self.item_code,
            "summary": self.summary,
            "description": self.description,
            "itemGroup": self.item_group,
            "classificationParameters": self.classification_parameters,
        }
        if self.parent_code:
            params["parentCode"] = self.parent_code
        return params


class ClassificationRequest(BaseModel):
    """HS classification request for one item and destination country."""
    country_of_destination: str
    item: HSItem
    classification_id: Optional[str] = None

    def to_api_params(self) -> Dict[str, Any]:
        return {
            "countryOfDestination": self.country_of_destination,
            "item": self.item.to_api_params(),
        }


class ErrorDetail(BaseModel):
    number: Optional[int] = None
    code: str = ""
    message: str = ""
    description: str = ""


class ClassificationResponse(BaseModel):
    """Parsed classification API response."""
    status: str = STATUS_ERROR
    id: Optional[str] = None
    country_of_destination: Optional[str] = None
    hs_code: Optional[str] = None
    resolution: Optional[str] = None
    error_code: Optional[str] = None
    errors: List[ErrorDetail] = Field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ClassificationResponse":
        """Build from a raw API body, collecting errors from the error block."""
        data = data or {}
        error = data.get("error") or {}
        details = [ErrorDetail(**d) for d in error.get("details") or [] if isinstance(d, dict)]
        error_code = error.get("code")
        if error_code and not details:
            details = [ErrorDetail(code=error_code, message=error.get("message", ""))]

        status = str(data.get("status") or "").lower()
        if details:
            status = STATUS_ERROR

        return cls(
            status=status or STATUS_ERROR,
            id=data.get("id"),
            country_of_destination=data.get("countryOfDestination"),
            hs_code=data.get("hsCode"),
            resolution=data.get("resolution"),
            error_code=error_code,
            errors=details,
        )

    @classmethod
    def from_error(cls, code: str, message: str) -> "ClassificationResponse":
        return cls(status=STATUS_ERROR, error_code=code, errors=[ErrorDetail(code=code, message=message)])

    @property
    def has_errors(self) -> bool:
        return self.status == STATUS_ERROR or bool(self.errors)

    @property
    def has_auth_error(self) -> bool:
        codes = {e.code for e in self.errors}
        if self.error_code:
            codes.add(self.error_code)
        return bool(codes & AUTH_ERROR_CODES)

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING

    @property
    def is_classified(self) -> bool:
        return self.status == STATUS_CLASSIFIED

    @property
    def cannot_be_classified(self) -> bool:
        return self.status == STATUS_CANNOT_BE_CLASSIFIED

    @property
    def error_message(self) -> str:
        return "; ".join(
            f"{e.code}: {e.message or e.description}".strip(": ") for e in self.errors
        ) or "Unknown classification error"
