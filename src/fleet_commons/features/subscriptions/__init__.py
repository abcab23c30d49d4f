"""Subscription feature for fleet-commons."""

from .entities import SubscriptionHandle
from .services import SubscriptionCallback, SubscriptionRegistry

__all__ = ["SubscriptionHandle", "SubscriptionCallback", "SubscriptionRegistry"]
