"""Subscription entities."""

from .subscription_handle import SubscriptionHandle

__all__ = ["SubscriptionHandle"]
