"""Classify a stored resource location into a whiteboard resource type."""

from __future__ import annotations

from urllib.parse import urlsplit

from cloud_convert.models.convert import ResourceType

DYNAMIC_SUFFIXES = (".pptx",)


def determine_type(resource: str | None) -> ResourceType:
    """Return DYNAMIC for slide decks rendered as animated pages, else STATIC.

    Total over any input: unknown or missing suffixes fall back to STATIC.
    """
    if not resource:
        return ResourceType.STATIC
    try:
        path = urlsplit(str(resource)).path
    except ValueError:
        path = str(resource)
    if path.lower().endswith(DYNAMIC_SUFFIXES):
        return ResourceType.DYNAMIC
    return ResourceType.STATIC


__all__ = ["DYNAMIC_SUFFIXES", "determine_type"]
