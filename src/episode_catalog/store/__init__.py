"""
Offline store

In-memory fallback for the remote catalog.
"""
from episode_catalog.store.offline_store import OfflineRecordStore
from episode_catalog.store.seed import default_episodes, popular_episodes, popular_shows

__all__ = ["OfflineRecordStore", "default_episodes", "popular_episodes", "popular_shows"]
