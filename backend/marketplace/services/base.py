# backend/marketplace/services/base.py
"""
Base Service Pattern for the vendor marketplace.

Provides common functionality for all service classes including:
- Transaction management
- Logging
- Performance monitoring
"""

from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


@dataclass
class OperationStats:
    """Running latency and outcome totals for one measured operation."""

    calls: int = 0
    failures: int = 0
    total_seconds: float = 0.0
    fastest: Optional[float] = None
    slowest: float = 0.0

    def observe(self, elapsed: float, success: bool) -> None:
        self.calls += 1
        self.total_seconds += elapsed
        self.fastest = elapsed if self.fastest is None else min(self.fastest, elapsed)
        self.slowest = max(self.slowest, elapsed)
        if not success:
            self.failures += 1

    def summary(self) -> Dict[str, Any]:
        succeeded = self.calls - self.failures
        return {
            "count": self.calls,
            "avg_time": self.total_seconds / self.calls,
            "min_time": self.fastest,
            "max_time": self.slowest,
            "success_rate": succeeded / self.calls,
            "success_count": succeeded,
            "failure_count": self.failures,
        }


class BaseService:
    """
    Base class for all service layer components.

    Subclasses receive the request-scoped session and own the transaction
    boundary; repositories only flush.
    """

    _class_metrics: Dict[str, Dict[str, OperationStats]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Commits when the block exits normally and rolls back on any
        exception. SQLAlchemy errors surface as ServiceException; everything
        else propagates unchanged.
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}")
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator timing a service method and recording its outcome.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, request):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                started = time.perf_counter()
                error_type: Optional[str] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    self._observe_operation(
                        operation_name, time.perf_counter() - started, error_type
                    )

            wrapper._operation_name = operation_name  # type: ignore[attr-defined]
            return cast(F, wrapper)

        return decorator

    def _observe_operation(
        self, operation: str, elapsed: float, error_type: Optional[str]
    ) -> None:
        self._record_metric(operation, elapsed, error_type is None)
        if elapsed > SLOW_OPERATION_SECONDS:
            self.logger.warning(f"Slow operation detected: {operation} took {elapsed:.2f}s")
        try:
            prometheus_metrics.record_service_operation(
                service=self.__class__.__name__,
                operation=operation,
                duration=elapsed,
                status="error" if error_type else "success",
                error_type=error_type,
            )
        except Exception as metrics_error:
            # Metrics must never break the operation
            self.logger.debug(f"Metrics recording failed: {metrics_error}")

    def log_operation(self, operation: str, **context: Any) -> None:
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        per_class = BaseService._class_metrics.setdefault(self.__class__.__name__, {})
        per_class.setdefault(operation, OperationStats()).observe(elapsed, success)

    def get_metrics(self) -> Dict[str, Any]:
        """
        In-process latency summary per measured operation of this service.

        Returns:
            Mapping of operation name to count, timing and success figures
        """
        per_class = BaseService._class_metrics.get(self.__class__.__name__, {})
        return {name: stats.summary() for name, stats in per_class.items() if stats.calls}

    def reset_metrics(self) -> None:
        BaseService._class_metrics.pop(self.__class__.__name__, None)
