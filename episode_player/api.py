"""Catalog API client: episode metadata, watch history and sources."""

import os
from typing import Any

import requests

from .config import Config
from .models import EpisodeMetadata, PriorProgress, ProgressReport


class CatalogError(RuntimeError):
    """The catalog answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CatalogClient:
    """Thin wrapper over the catalog's JSON endpoints.

    Only the calls the player needs are covered: content with its episode
    list, prior progress, progress reports and episode sources.
    """

    def __init__(self, config: Config | None = None, base_url: str | None = None, token: str | None = None):
        self.config = config or Config()
        self.base_url = (base_url or self.config.api_url).rstrip("/")
        self._token = token or os.getenv("EPISODE_PLAYER_API_TOKEN")
        self._session: requests.Session | None = None

    @property
    def session(self) -> requests.Session:
        """Get a session carrying the bearer token, if any."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["Accept"] = "application/json"
            if self._token:
                self._session.headers["Authorization"] = f"Bearer {self._token}"
        return self._session

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _check(self, res: requests.Response, what: str) -> None:
        if res.status_code not in (200, 201, 204):
            raise CatalogError(f"{what} failed: {res.status_code} - {res.text}", res.status_code)

    def get_content(self, content_id: str) -> dict[str, Any]:
        """Fetch a content entry together with its episodes."""
        res = self.session.get(self._url(f"/api/content/{content_id}"), timeout=self.config.request_timeout)
        self._check(res, "Content request")
        return res.json()

    def get_episode(self, content_id: str, episode_id: str) -> EpisodeMetadata:
        """Fetch one episode; neighbours come from the content's episode order."""
        content = self.get_content(content_id)
        episodes = sorted(content.get("episodes") or [], key=lambda ep: ep.get("number") or 0)

        for index, episode in enumerate(episodes):
            if str(episode.get("id")) != str(episode_id):
                continue
            previous_id = str(episodes[index - 1]["id"]) if index > 0 else None
            next_id = str(episodes[index + 1]["id"]) if index < len(episodes) - 1 else None
            metadata = EpisodeMetadata.from_api(content_id, episode, previous_id, next_id)
            if not metadata.thumbnail_url:
                metadata.thumbnail_url = content.get("backdropUrl")
            return metadata

        raise CatalogError(f"Episode {episode_id} not found in content {content_id}", 404)

    def get_prior_progress(self, content_id: str, episode_id: str) -> PriorProgress | None:
        """Last reported position for an episode, or None."""
        res = self.session.get(
            self._url(f"/api/history/{content_id}/{episode_id}"),
            timeout=self.config.request_timeout,
        )
        if res.status_code == 404:
            return None
        self._check(res, "History request")
        if not res.content:
            return None
        return PriorProgress.from_api(res.json())

    def report_progress(self, report: ProgressReport) -> None:
        """Upsert the watch-history row for an episode."""
        res = self.session.post(
            self._url("/api/history"),
            json=report.to_payload(),
            timeout=self.config.request_timeout,
        )
        self._check(res, "Progress report")

    def get_episode_sources(self, episode_id: str) -> list[dict[str, Any]]:
        """Alternative sources registered for an episode."""
        res = self.session.get(
            self._url(f"/api/episodes/{episode_id}/sources"),
            timeout=self.config.request_timeout,
        )
        self._check(res, "Sources request")
        return res.json() or []
