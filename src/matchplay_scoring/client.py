"""
matchplay_scoring.client — HTTP scoring backend
===============================================

REST implementation of the scoring repository on top of ``requests``.
Blocking HTTP calls run in a worker thread so the session's event loop
keeps polling and heartbeating while a request is in flight.

Usage:
    repo = ApiScoringRepository("https://api.example.com", token="...")
    view = await repo.get_scoring_view("match-1")
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from .errors import BusinessRuleError, NetworkError, NotMatchPlayerError
from .types import Leaderboard, MatchSummary, ScoreData, ScoringView

logger = logging.getLogger("matchplay_scoring.client")

DEFAULT_TIMEOUT_SECONDS = 10

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiScoringRepository:
    """Scoring backend reached over the REST API."""

    def __init__(self, base_url: str, token: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.http.headers.update({"Accept": "application/json"})
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"

    async def get_scoring_view(self, match_id: str) -> ScoringView:
        path = f"/api/v1/matches/{match_id}/scoring-view"
        return _parse(ScoringView, await self._call("GET", path), path)

    async def submit_hole_score(self, match_id: str, hole_number: int,
                                score_data: ScoreData) -> ScoringView:
        path = f"/api/v1/matches/{match_id}/scores/holes/{hole_number}"
        data = await self._call("POST", path, body=score_data.model_dump())
        return _parse(ScoringView, data, path)

    async def submit_scorecard(self, match_id: str) -> MatchSummary:
        path = f"/api/v1/matches/{match_id}/scorecard/submit"
        return _parse(MatchSummary, await self._call("POST", path, body={}), path)

    async def concede_match(self, match_id: str, conceding_team: str,
                            reason: Optional[str]) -> Dict[str, Any]:
        # The status endpoint answers with the match status, not a full view
        body = {"action": "concede", "conceding_team": conceding_team}
        if reason:
            body["reason"] = reason
        return await self._call("PUT", f"/api/v1/matches/{match_id}/status", body=body)

    async def get_leaderboard(self, competition_id: str) -> Leaderboard:
        path = f"/api/v1/competitions/{competition_id}/leaderboard"
        return _parse(Leaderboard, await self._call("GET", path), path)

    async def _call(self, method: str, path: str,
                    body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await asyncio.to_thread(self._request, method, path, body)

    def _request(self, method: str, path: str,
                 body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Perform one request and map failures onto the error taxonomy.

        Raises:
            NetworkError: connection failure, timeout or 5xx
            NotMatchPlayerError: 403
            BusinessRuleError: any other 4xx
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.debug("%s %s failed: %s", method, url, e)
            raise NetworkError(f"{method} {path} failed: {e}", context={"url": url}) from e

        if response.status_code >= 500:
            raise NetworkError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code, context={"url": url},
            )
        if response.status_code >= 400:
            detail = _error_detail(response)
            error_cls = NotMatchPlayerError if response.status_code == 403 else BusinessRuleError
            raise error_cls(detail, status_code=response.status_code, context={"url": url})

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"{method} {path} returned invalid JSON", context={"url": url}) from e


def _parse(model: Type[ModelT], data: Any, path: str) -> ModelT:
    """Validate a response body; a malformed body counts as a failed call."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise NetworkError(
            f"{path} returned a malformed {model.__name__}",
            context={"path": path, "errors": e.error_count()},
        ) from e


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        return str(payload.get("detail") or payload.get("message") or payload)
    return str(payload)
