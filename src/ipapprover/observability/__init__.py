"""Observability package.

Logging and metrics for the approver operator.
"""

from ipapprover.observability.logging import LogContext, configure_logging, get_logger

__all__ = ["LogContext", "configure_logging", "get_logger"]
