"""
Member domain models.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from claims_adjudication.domain.enums import EmployeeGrade, Gender


class Member(BaseModel):
    """A covered member."""

    member_id: int
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    date_of_birth: date
    gender: Gender = Gender.OTHER

    company_id: Optional[int] = None
    employee_id: Optional[str] = None
    employee_grade: Optional[EmployeeGrade] = None

    enrollment_date: Optional[date] = None

    @property
    def is_corporate(self) -> bool:
        return self.company_id is not None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class PremiumStatus(BaseModel):
    """Premium payment position of a member, supplied by billing."""

    member_id: int
    paid_through_date: Optional[date] = None
    last_payment_date: Optional[date] = None
