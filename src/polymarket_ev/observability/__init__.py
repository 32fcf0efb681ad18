"""Observability: structured logging."""

from polymarket_ev.observability.logging import get_logger, setup_logging

__all__ = ["setup_logging", "get_logger"]
