"""
Structured logging configuration for the claims adjudication engine.

Uses structlog for structured, contextual logging.
"""

import logging
import sys
from decimal import Decimal
from typing import Any

import structlog


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    include_timestamp: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output logs as JSON
        include_timestamp: If True, include timestamp in logs
    """
    # Set up standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    # Configure processors
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_output:
        processors.append(structlog.processors.JSONRenderer(default=str))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (optional)

    Returns:
        Bound structlog logger
    """
    return structlog.get_logger(name)


class AdjudicationLogger:
    """
    Specialized logger for adjudication events.

    Provides convenience methods for the events emitted while a claim moves
    through the pipeline.

    Usage:
        logger = AdjudicationLogger(claim_id=42, member_id=7)
        logger.stage_completed("limit_check", elapsed_ms=1.2)
        logger.claim_adjudicated("APPROVED", approved_amount=Decimal("800.00"))
    """

    def __init__(self, claim_id: int, member_id: int | None = None):
        """
        Initialize the adjudication logger.

        Args:
            claim_id: Claim being adjudicated
            member_id: Member the claim belongs to, once known
        """
        self.claim_id = claim_id
        self._logger = structlog.get_logger().bind(claim_id=claim_id)
        if member_id is not None:
            self._logger = self._logger.bind(member_id=member_id)

    def bind(self, **kwargs: Any) -> "AdjudicationLogger":
        """Bind additional context to the logger."""
        self._logger = self._logger.bind(**kwargs)
        return self

    # Pipeline events
    def adjudication_started(self, **kwargs: Any) -> None:
        """Log the start of an adjudication."""
        self._logger.debug("adjudication_started", **kwargs)

    def stage_completed(self, stage: str, elapsed_ms: float, **kwargs: Any) -> None:
        """Log completion of a pipeline stage."""
        self._logger.debug(
            "adjudication_stage_completed",
            stage=stage,
            elapsed_ms=round(elapsed_ms, 3),
            **kwargs,
        )

    def eligibility_failed(self, reasons: list[str], **kwargs: Any) -> None:
        """Log an eligibility denial."""
        self._logger.info("eligibility_failed", reasons=reasons, **kwargs)

    def claim_adjudicated(
        self,
        decision: str,
        approved_amount: Decimal,
        **kwargs: Any,
    ) -> None:
        """Log the final decision."""
        self._logger.info(
            "claim_adjudicated",
            decision=decision,
            approved_amount=str(approved_amount),
            **kwargs,
        )

    def utilization_updated(self, benefit_id: int, amount: Decimal, **kwargs: Any) -> None:
        """Log a benefit utilization update."""
        self._logger.debug(
            "benefit_utilization_updated",
            benefit_id=benefit_id,
            amount=str(amount),
            **kwargs,
        )

    # Error events
    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error."""
        self._logger.error(message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning."""
        self._logger.warning(message, **kwargs)
