"""
Episode Catalog

Resilient data access for an episode manager: a remote GraphQL catalog
with automatic fallback to an in-memory offline store, and change
broadcasting across independent views.
"""

__version__ = "1.0.0"
