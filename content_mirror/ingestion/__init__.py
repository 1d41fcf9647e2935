"""Upstream clients for fetching content from the remote repository"""

from content_mirror.ingestion.contentful_client import ContentfulClient, UpstreamClient

__all__ = ["ContentfulClient", "UpstreamClient"]
