"""
Claim domain models.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from claims_adjudication.domain.enums import ClaimStatus


class Claim(BaseModel):
    """A submitted claim. Only ``status`` changes after adjudication."""

    claim_id: int
    member_id: int
    provider_id: Optional[int] = None

    amount: Decimal = Field(..., ge=0)

    service_category: str = Field(default="general", max_length=50)
    service_code: Optional[str] = Field(None, max_length=20)
    diagnosis_codes: list[str] = Field(default_factory=list)

    service_date: date
    submission_date: date

    is_pre_authorized: bool = False
    pre_auth_number: Optional[str] = None
    has_referral: bool = False
    referral_number: Optional[str] = None

    # Units consumed against a sub-limit (e.g. ICU days)
    limit_category: Optional[str] = None
    quantity: Decimal = Field(default=Decimal("1"), ge=0)

    status: ClaimStatus = ClaimStatus.SUBMITTED
