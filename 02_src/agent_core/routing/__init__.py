"""Routing module."""

from .queue import RoutingQueue
from .router import IMessageRouter, MessageRouter

__all__ = ["IMessageRouter", "MessageRouter", "RoutingQueue"]
