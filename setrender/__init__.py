"""Helpers for rendering GitOpsSets: artifact fetching, local repository access and YAML output."""

__version__ = "0.1.0"
__all__ = ["fetcher", "local_client", "output"]