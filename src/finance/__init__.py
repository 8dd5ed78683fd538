"""Condominium finance: health scoring and statement import."""

from finance.health import FinancialHealth, compute_health, window_start

__all__ = ["FinancialHealth", "compute_health", "window_start"]
