"""Subscription services."""

from .subscription_registry import SubscriptionCallback, SubscriptionRegistry

__all__ = ["SubscriptionCallback", "SubscriptionRegistry"]
