"""
Utility modules for the claims adjudication engine.

Provides:
- Date arithmetic (ages, benefit years, reset dates)
- Decimal money helpers
- Structured logging configuration
"""

from claims_adjudication.utils.time_conversion import (
    add_days,
    add_months,
    get_age,
    get_benefit_year_start,
    get_benefit_year_end,
    get_next_reset_date,
    is_within,
)
from claims_adjudication.utils.money import (
    ZERO,
    HUNDRED,
    to_decimal,
    round_money,
    percentage_of,
    clamp,
    max_or_zero,
)
from claims_adjudication.utils.logging import (
    configure_logging,
    get_logger,
    AdjudicationLogger,
)

__all__ = [
    # Time conversion
    "add_days",
    "add_months",
    "get_age",
    "get_benefit_year_start",
    "get_benefit_year_end",
    "get_next_reset_date",
    "is_within",
    # Money
    "ZERO",
    "HUNDRED",
    "to_decimal",
    "round_money",
    "percentage_of",
    "clamp",
    "max_or_zero",
    # Logging
    "configure_logging",
    "get_logger",
    "AdjudicationLogger",
]
