"""Concrete image providers.

- ``ravensburger``: per-language catalog JSON mapping set/number to image URLs
- ``lorcast``: per-set Lorcast card dumps
- ``dreamborn``: plain URL template on the Dreamborn CDN
"""

from __future__ import annotations

import json
import re
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from core.logging import get_logger
from errors import ConfigurationError, NotFoundError
from inventory.model import CardKey
from net.network import RetryConfig, fetch_bytes
from sources.base import ImageProvider, ProviderChain

logger = get_logger(__name__)

_CATALOG_SECTIONS = ("characters", "actions", "items", "locations")
_IDENTIFIER_RE = re.compile(r"^(\d+)/")


class HttpProvider(ImageProvider):
    """Shared HTTP plumbing for providers that end up downloading a URL."""

    def __init__(
        self,
        retry: Optional[RetryConfig] = None,
        session: Optional[Any] = None,
        user_agent: str = "CardImagePipeline/1.0",
    ):
        self.retry = retry or RetryConfig()
        self.session = session
        self.user_agent = user_agent

    def download(self, url: str) -> bytes:
        return fetch_bytes(
            url, config=self.retry, session=self.session, user_agent=self.user_agent
        )


class UrlTemplateProvider(HttpProvider):
    """Provider whose image URL is a template over the card key.

    Placeholders: ``{language}``, ``{language_lower}``, ``{set}``,
    ``{number}`` (zero-padded) and ``{number_unpadded}``.
    """

    def __init__(self, name: str, template: str, **kwargs):
        super().__init__(**kwargs)
        self.name = name
        self.template = template

    def url_for(self, card_key: CardKey) -> str:
        try:
            return self.template.format(
                language=card_key.language,
                language_lower=card_key.language.lower(),
                set=card_key.set_id,
                number=card_key.card_number,
                number_unpadded=card_key.card_number.lstrip("0") or "0",
            )
        except (KeyError, IndexError) as exc:
            raise ConfigurationError(
                f"Bad URL template for {self.name}: {self.template}"
            ) from exc

    def fetch(self, card_key: CardKey) -> bytes:
        return self.download(self.url_for(card_key))


class _JsonIndexProvider(HttpProvider):
    """Provider backed by local JSON files, loaded once per key and cached."""

    def __init__(self, directory: Path, **kwargs):
        super().__init__(**kwargs)
        self.directory = Path(directory)
        self._cache: Dict[str, Dict[tuple, str]] = {}
        self._lock = threading.Lock()

    def _index(self, key: str) -> Dict[tuple, str]:
        with self._lock:
            if key not in self._cache:
                self._cache[key] = self._load_index(key)
            return self._cache[key]

    def _read_json(self, path: Path) -> Optional[Any]:
        if not path.exists():
            logger.debug("{}: no data file at {}", self.name, path)
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("{}: cannot read {}: {}", self.name, path, exc)
            return None

    def _load_index(self, key: str) -> Dict[tuple, str]:
        raise NotImplementedError


class RavensburgerCatalogProvider(_JsonIndexProvider):
    """Look cards up in the official per-language catalog export.

    Only the "Regular" variant of each card is used.
    """

    name = "ravensburger"

    def _load_index(self, language: str) -> Dict[tuple, str]:
        catalog = self._read_json(self.directory / f"{language.lower()}.json")
        index: Dict[tuple, str] = {}
        if not isinstance(catalog, dict) or not isinstance(catalog.get("cards"), dict):
            return index

        for section in _CATALOG_SECTIONS:
            for card in catalog["cards"].get(section) or []:
                set_id = _set_from_card_sets(card.get("card_sets") or [])
                number = _number_from_identifier(card.get("card_identifier") or "")
                if not set_id or not number:
                    continue
                for variant in card.get("variants") or []:
                    if variant.get("variant_id") == "Regular" and variant.get(
                        "detail_image_url"
                    ):
                        index.setdefault((set_id, number), variant["detail_image_url"])
                        break

        logger.debug("{}: indexed {} cards for {}", self.name, len(index), language)
        return index

    def fetch(self, card_key: CardKey) -> bytes:
        url = self._index(card_key.language).get((card_key.set_id, card_key.card_number))
        if url is None:
            raise NotFoundError(f"{card_key} not in {card_key.language} catalog")
        return self.download(url)


class LorcastProvider(_JsonIndexProvider):
    """Look cards up in Lorcast set dumps (``{set}.json``)."""

    name = "lorcast"

    def _load_index(self, set_id: str) -> Dict[tuple, str]:
        cards = self._read_json(self.directory / f"{set_id}.json")
        index: Dict[tuple, str] = {}
        if not isinstance(cards, list):
            return index

        for card in cards:
            try:
                number = str(card["collector_number"]).lstrip("0")
                language = str(card["lang"]).upper()
                url = card["image_uris"]["digital"]["large"]
            except (KeyError, TypeError):
                continue
            index.setdefault((number, language), url)
        return index

    def fetch(self, card_key: CardKey) -> bytes:
        number = card_key.card_number.lstrip("0")
        url = self._index(card_key.set_id).get((number, card_key.language))
        if url is None:
            raise NotFoundError(f"{card_key} not in Lorcast set {card_key.set_id}")
        return self.download(url)


def _set_from_card_sets(card_sets) -> Optional[str]:
    if not card_sets:
        return None
    first = str(card_sets[0])
    if first.startswith("set") and first[3:].isdigit():
        return first[3:].zfill(3)
    return None


def _number_from_identifier(identifier: str) -> Optional[str]:
    match = _IDENTIFIER_RE.match(identifier)
    return match.group(1).zfill(3) if match else None


def build_image_source(settings, session: Optional[Any] = None) -> ProviderChain:
    """Build the provider chain named by ``settings.providers``."""
    http = {
        "retry": RetryConfig.from_settings(settings),
        "session": session,
        "user_agent": settings.user_agent,
    }
    factories = {
        "ravensburger": lambda: RavensburgerCatalogProvider(settings.catalogs_dir, **http),
        "lorcast": lambda: LorcastProvider(settings.lorcast_dir, **http),
        "dreamborn": lambda: UrlTemplateProvider(
            "dreamborn", settings.dreamborn_url_template, **http
        ),
    }

    providers = []
    for name in settings.providers:
        if name not in factories:
            raise ConfigurationError(
                f"Unknown provider: {name}. Must be one of {sorted(factories)}"
            )
        providers.append(factories[name]())

    if not providers:
        raise ConfigurationError("At least one image provider is required")
    return ProviderChain(providers)
