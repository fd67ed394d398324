"""Health module."""

from .monitor import HealthMonitor, IHealthMonitor

__all__ = ["HealthMonitor", "IHealthMonitor"]
