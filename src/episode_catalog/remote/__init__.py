"""
Remote catalog access

GraphQL queries and mutations over HTTP, subscriptions over websocket.
"""
from episode_catalog.remote.client import RemoteCatalogClient
from episode_catalog.remote.subscriptions import (
    SUBSCRIPTIONS,
    SubscriptionForwarder,
    SubscriptionTopic,
    SubscriptionStream,
    subscription_streams,
)

__all__ = [
    "RemoteCatalogClient",
    "SUBSCRIPTIONS",
    "SubscriptionForwarder",
    "SubscriptionTopic",
    "SubscriptionStream",
    "subscription_streams",
]
