"""
Paginated JSON:API fetcher with include fallback.

One routine serves every resource in the catalog: pages are requested until a
short page comes back, and when Productive rejects the ``include`` parameter
the same page is retried with the next, smaller include set.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from ..config import PAGE_SIZE
from .errors import (
    FetchError,
    FetchFailed,
    IncludeRejected,
    InvalidResponseFormat,
    ProductiveAPIError,
)
from .included import merge_included
from .relationship_stats import compute_relationship_stats, log_relationship_stats
from .resources import ResourceSpec

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Outcome of fetching one resource type."""

    resource: str
    success: bool
    data: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[FetchError] = None
    pages: int = 0
    include: str = ""
    relationship_stats: Dict[str, int] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.data)


def next_fallback(ladder: Sequence[Tuple[str, ...]], position: int, current: str) -> Optional[int]:
    """Index of the first ladder entry after ``position`` that changes the include string."""
    for index in range(position + 1, len(ladder)):
        if ",".join(ladder[index]) != current:
            return index
    return None


class ResourceFetcher:
    """Fetches complete resource collections from Productive."""

    def __init__(self, client, page_size: int = PAGE_SIZE, *, logger: Optional[logging.Logger] = None):
        """
        Args:
            client: Anything with ``get(path, params) -> dict`` (normally ProductiveClient)
            page_size: Default ``page[size]``
            logger: Optional progress reporter; defaults to a module child logger
        """
        self.client = client
        self.page_size = page_size
        self.logger = logger or logging.getLogger(f"{__name__}.fetch")

    def fetch(self, spec: ResourceSpec, page_size: Optional[int] = None) -> FetchResult:
        """
        Fetch every page of ``spec``.

        Args:
            spec: Resource configuration
            page_size: Override for the fetcher's page size

        Returns:
            FetchResult with the accumulated resources in API order, or
            ``success=False`` and a terminal error
        """
        page_size = page_size or self.page_size
        ladder = spec.ladder
        position = -1
        include = ",".join(spec.includes)
        page = 1
        resources: List[Dict[str, Any]] = []

        self.logger.info(f"Fetching {spec.name} from Productive API...")

        while True:
            try:
                data = self._fetch_page(spec, page, page_size, include)
            except IncludeRejected as e:
                position = next_fallback(ladder, position, include)
                if position is None:
                    self.logger.error(f"Failed to fetch {spec.name} on page {page}: {e.message}")
                    return self._failed(spec, FetchFailed(page, e.message), page, include)
                include = ",".join(ladder[position])
                self.logger.warning(
                    f"Include rejected for {spec.name}; retrying page {page} with include='{include}'"
                )
                continue
            except InvalidResponseFormat as e:
                self.logger.error(f"Invalid response format for {spec.name} on page {page}")
                return self._failed(spec, e, page, include)
            except FetchError as e:
                self.logger.error(f"Failed to fetch {spec.name} on page {page}: {e.message}")
                return self._failed(spec, FetchFailed(page, e.message), page, include)

            resources.extend(data)
            self.logger.info(f"Fetched {len(data)} {spec.name} from page {page}")

            if len(data) < page_size:
                break
            page += 1

        self.logger.info(f"Successfully fetched {len(resources)} {spec.name}")
        stats = compute_relationship_stats(resources, spec.includes)
        log_relationship_stats(stats, len(resources), spec.name.replace("_", " ").capitalize(), self.logger)

        return FetchResult(
            resource=spec.name,
            success=True,
            data=resources,
            pages=page,
            include=include,
            relationship_stats=stats,
        )

    def _fetch_page(self, spec: ResourceSpec, page: int, page_size: int, include: str) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "page[number]": page,
            "page[size]": page_size,
        }
        if include:
            params["include"] = include
        if spec.sort:
            params["sort"] = spec.sort

        try:
            body = self.client.get(spec.path, params)
        except ProductiveAPIError as e:
            message = str(e)
            if "include" in message:
                raise IncludeRejected(page, message, include) from e
            raise FetchError(page, message) from e
        except ValueError as e:
            # 2xx with a body that is not JSON (proxy or maintenance page)
            raise InvalidResponseFormat(page) from e
        except requests.RequestException as e:
            raise FetchError(page, f"Request failed: {e}") from e

        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise InvalidResponseFormat(page)

        return merge_included(body, body["data"], self.logger)

    def _failed(self, spec: ResourceSpec, error: FetchError, page: int, include: str) -> FetchResult:
        return FetchResult(resource=spec.name, success=False, error=error, pages=page, include=include)
