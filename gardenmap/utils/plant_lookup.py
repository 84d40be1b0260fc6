"""Plant catalog search across Wikipedia, Perenual and Trefle.

Each provider builds a request URL, fetches JSON through an injectable
``fetch_json`` callable and converts the response with a pure parsing
function, so the parsing is testable without network access.
"""

from __future__ import annotations

import json
import urllib.request
from typing import Any, Callable, Iterable, Optional, Sequence
from urllib.parse import quote, urlencode

from loguru import logger

from gardenmap.core.models import ExternalReference

USER_AGENT = "GardenMapper/1.0"
REQUEST_TIMEOUT = 10.0
MIN_QUERY_LENGTH = 2

WIKIPEDIA_API = "https://en.wikipedia.org/w/api.php"
PERENUAL_API = "https://perenual.com/api/species-list"
TREFLE_API = "https://trefle.io/api/v1/plants/search"

FetchJson = Callable[[str], Any]


def urllib_fetch_json(url: str) -> Any:
    """GET ``url`` and decode the JSON body."""
    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    with urllib.request.urlopen(request, timeout=REQUEST_TIMEOUT) as response:
        return json.loads(response.read().decode("utf-8"))


# ----------------------------------------------------------------------
# Response parsing
# ----------------------------------------------------------------------


def references_from_wikipedia(payload: dict) -> list[ExternalReference]:
    """Convert a Wikipedia prefix-search response, ordered by search rank."""
    pages = list(((payload or {}).get("query") or {}).get("pages", {}).values())
    pages.sort(key=lambda page: page.get("index", 0))
    references = []
    for page in pages:
        title = str(page.get("title") or "")
        if not title:
            continue
        thumbnail = page.get("thumbnail") or {}
        references.append(
            ExternalReference(
                source="wikipedia",
                display_name=title,
                scientific_name="Wikipedia Entry",
                image_url=thumbnail.get("source"),
                info_url=f"https://en.wikipedia.org/wiki/{quote(title.replace(' ', '_'))}",
                extra={"id": page.get("pageid"), "description": page.get("extract")},
            )
        )
    return references


def _first(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else None
    return value


def references_from_perenual(payload: dict) -> list[ExternalReference]:
    references = []
    for plant in (payload or {}).get("data") or []:
        scientific = _first(plant.get("scientific_name"))
        display_name = plant.get("common_name") or scientific
        if not display_name:
            continue
        image = plant.get("default_image") or {}
        references.append(
            ExternalReference(
                source="perenual",
                display_name=str(display_name),
                scientific_name=scientific,
                image_url=image.get("small_url"),
                info_url=(
                    "https://perenual.com/plant-species-database-search-finder/"
                    f"species/{plant.get('id')}"
                ),
                extra={"id": plant.get("id")},
            )
        )
    return references


def references_from_trefle(payload: dict) -> list[ExternalReference]:
    references = []
    for plant in (payload or {}).get("data") or []:
        scientific = plant.get("scientific_name")
        display_name = plant.get("common_name") or scientific
        if not display_name:
            continue
        slug = plant.get("slug")
        references.append(
            ExternalReference(
                source="trefle",
                display_name=str(display_name),
                scientific_name=scientific,
                image_url=plant.get("image_url"),
                info_url=f"https://trefle.io/api/v1/plants/{slug}" if slug else None,
                extra={"id": plant.get("id")},
            )
        )
    return references


# ----------------------------------------------------------------------
# Providers
# ----------------------------------------------------------------------


class WikipediaProvider:
    """Wikipedia prefix search; needs no credentials."""

    name = "wikipedia"
    limit = 5

    def enabled(self) -> bool:
        return True

    def url_for(self, query: str) -> str:
        params = {
            "action": "query",
            "generator": "prefixsearch",
            "gpssearch": query,
            "gpslimit": self.limit,
            "prop": "pageimages|extracts",
            "exintro": 1,
            "explaintext": 1,
            "exchars": 200,
            "piprop": "thumbnail",
            "pithumbsize": 300,
            "format": "json",
        }
        return f"{WIKIPEDIA_API}?{urlencode(params)}"

    def parse(self, payload: dict) -> list[ExternalReference]:
        return references_from_wikipedia(payload)


class PerenualProvider:
    """Perenual species list; disabled without an API key."""

    name = "perenual"
    limit = 3

    def __init__(self, api_key: str = "") -> None:
        self.api_key = api_key

    def enabled(self) -> bool:
        return bool(self.api_key)

    def url_for(self, query: str) -> str:
        return f"{PERENUAL_API}?{urlencode({'key': self.api_key, 'q': query})}"

    def parse(self, payload: dict) -> list[ExternalReference]:
        return references_from_perenual(payload)


class TrefleProvider:
    """Trefle plant search; disabled without an access token."""

    name = "trefle"
    limit = 3

    def __init__(self, token: str = "") -> None:
        self.token = token

    def enabled(self) -> bool:
        return bool(self.token)

    def url_for(self, query: str) -> str:
        return f"{TREFLE_API}?{urlencode({'token': self.token, 'q': query})}"

    def parse(self, payload: dict) -> list[ExternalReference]:
        return references_from_trefle(payload)


def default_providers(perenual_key: str = "", trefle_token: str = "") -> list:
    return [WikipediaProvider(), PerenualProvider(perenual_key), TrefleProvider(trefle_token)]


class PlantSearch:
    """Query several plant catalogs and merge their results in order.

    Parameters
    ----------
    providers : Iterable
        Providers with ``name``, ``limit``, ``enabled()``, ``url_for()`` and
        ``parse()``.
    fetch_json : Callable[[str], Any], optional
        Transport used for every request, by default :func:`urllib_fetch_json`.
    """

    def __init__(
        self,
        providers: Optional[Iterable] = None,
        fetch_json: Optional[FetchJson] = None,
    ) -> None:
        self.providers: Sequence = list(providers) if providers is not None else default_providers()
        self._fetch_json = fetch_json or urllib_fetch_json

    def search(self, query: str) -> list[ExternalReference]:
        """Return merged references; short queries return ``[]``.

        A provider that fails is logged and skipped so the others still
        contribute results.
        """
        clean_query = (query or "").strip()
        if len(clean_query) < MIN_QUERY_LENGTH:
            return []
        results: list[ExternalReference] = []
        for provider in self.providers:
            if not provider.enabled():
                continue
            try:
                payload = self._fetch_json(provider.url_for(clean_query))
                found = provider.parse(payload)
            except Exception as exc:
                logger.warning(f"{provider.name} search failed for '{clean_query}': {exc}")
                continue
            results.extend(found[: provider.limit])
        logger.debug(f"Plant search '{clean_query}' returned {len(results)} result(s)")
        return results
