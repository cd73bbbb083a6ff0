"""State/store layer.

This package owns the only mutable shared state in the process: which
chats are subscribed to which locations.
"""

from weatherpush.state.store import SubscriptionStore

__all__ = ["SubscriptionStore"]
