"""
Consumer bindings

Independent views that read through the catalog service and react to
change events and selection changes on their own.
"""
from episode_catalog.consumers.base import ConsumerBinding, write_notice
from episode_catalog.consumers.debounce import Debouncer
from episode_catalog.consumers.detail_view import NOT_FOUND_MESSAGE, EpisodeDetailView
from episode_catalog.consumers.list_view import EMPTY_MESSAGE, EpisodeListView
from episode_catalog.consumers.metadata_view import MetadataView
from episode_catalog.consumers.popular_view import (
    POPULAR_EMPTY_MESSAGE,
    PopularEpisodesView,
    PopularItem,
)
from episode_catalog.consumers.request_token import RequestGate
from episode_catalog.consumers.selection import SelectionState

__all__ = [
    "ConsumerBinding",
    "write_notice",
    "Debouncer",
    "RequestGate",
    "SelectionState",
    "EpisodeListView",
    "EpisodeDetailView",
    "MetadataView",
    "PopularEpisodesView",
    "PopularItem",
    "EMPTY_MESSAGE",
    "NOT_FOUND_MESSAGE",
    "POPULAR_EMPTY_MESSAGE",
]
