"""Image source interface and the provider fallback chain."""

from typing import List, Protocol, Sequence

from core.logging import get_logger
from errors import NetworkError, NotFoundError
from inventory.model import CardKey

logger = get_logger(__name__)


class ImageSource(Protocol):
    """Anything that can fetch raw image bytes for a card.

    Raises NotFoundError when the card does not exist for that language,
    NetworkError for transport failures.
    """

    def fetch(self, card_key: CardKey) -> bytes: ...


class ImageProvider:
    """A single named upstream (CDN, catalog API)."""

    name = "provider"

    def fetch(self, card_key: CardKey) -> bytes:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class ProviderChain:
    """Try providers in priority order and return the first image found."""

    def __init__(self, providers: Sequence[ImageProvider]):
        self.providers: List[ImageProvider] = list(providers)

    @property
    def names(self) -> List[str]:
        return [provider.name for provider in self.providers]

    def fetch(self, card_key: CardKey) -> bytes:
        not_found = []
        failures = []

        for provider in self.providers:
            try:
                data = provider.fetch(card_key)
            except NotFoundError as exc:
                logger.debug("{}: {} has no image ({})", card_key, provider.name, exc)
                not_found.append(provider.name)
                continue
            except NetworkError as exc:
                logger.warning("{}: {} failed: {}", card_key, provider.name, exc)
                failures.append(f"{provider.name}: {exc}")
                continue

            logger.debug(
                "{}: fetched {} bytes from {}", card_key, len(data), provider.name
            )
            return data

        if failures:
            raise NetworkError(
                f"No provider delivered {card_key}: " + "; ".join(failures)
            )
        raise NotFoundError(
            f"Card {card_key} not found in {', '.join(not_found) or 'any provider'}"
        )
