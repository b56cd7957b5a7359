"""
Services

EpisodeCatalogService: resilient episode reads/writes
MetadataLookupClient: best-effort show and episode enrichment
"""
from episode_catalog.services.catalog_service import EpisodeCatalogService
from episode_catalog.services.metadata_service import MetadataLookupClient

__all__ = ["EpisodeCatalogService", "MetadataLookupClient"]
