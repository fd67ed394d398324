"""Traffic simulator for the agent core API."""

from .sim import ISim, Sim

__all__ = ["ISim", "Sim"]
