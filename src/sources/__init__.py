"""Upstream image sources."""

from sources.base import ImageProvider, ImageSource, ProviderChain
from sources.providers import (
    LorcastProvider,
    RavensburgerCatalogProvider,
    UrlTemplateProvider,
    build_image_source,
)

__all__ = [
    "ImageProvider",
    "ImageSource",
    "LorcastProvider",
    "ProviderChain",
    "RavensburgerCatalogProvider",
    "UrlTemplateProvider",
    "build_image_source",
]
