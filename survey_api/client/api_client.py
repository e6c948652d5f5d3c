"""
Async API client for the survey backend.

Every action talks to the API and commits its result to a ``Store``::

    store = Store(MemoryTokenStorage())
    async with SurveyClient("http://127.0.0.1:8000", store) as client:
        await client.login({"email": "ana@x.com", "password": "Abcdef1!"})
        await client.get_surveys()
        print(store.state.surveys)
"""

import logging
from typing import Any, Dict, Optional

import httpx

from survey_api.client.store import (
    LOGOUT,
    SET_CURRENT_SURVEY,
    SET_CURRENT_SURVEY_LOADING,
    SET_SURVEYS,
    SET_SURVEYS_LOADING,
    SET_USER,
    Action,
    Store,
)

logger = logging.getLogger(__name__)


class SurveyClient:
    def __init__(
        self,
        base_url: str,
        store: Store,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.store = store
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            transport=transport,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        token = self.store.state.token
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = await self._client.request(
            method, url, headers=self._headers(), **kwargs
        )
        response.raise_for_status()
        return response

    # ==================== Auth ====================
    async def register(self, user: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", "/register", json=user)
        data = response.json()
        self.store.dispatch(Action(SET_USER, data))
        return data

    async def login(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", "/login", json=credentials)
        data = response.json()
        self.store.dispatch(Action(SET_USER, data))
        return data

    async def logout(self) -> Dict[str, Any]:
        response = await self._request("POST", "/logout")
        self.store.dispatch(Action(LOGOUT))
        return response.json()

    # ==================== Surveys ====================
    async def get_surveys(self, page: int = 1) -> Dict[str, Any]:
        self.store.dispatch(Action(SET_SURVEYS_LOADING, True))
        try:
            response = await self._request("GET", "/survey", params={"page": page})
        finally:
            self.store.dispatch(Action(SET_SURVEYS_LOADING, False))
        data = response.json()
        self.store.dispatch(Action(SET_SURVEYS, data))
        return data

    async def get_survey(self, survey_id: int) -> Dict[str, Any]:
        self.store.dispatch(Action(SET_CURRENT_SURVEY_LOADING, True))
        try:
            response = await self._request("GET", f"/survey/{survey_id}")
        finally:
            self.store.dispatch(Action(SET_CURRENT_SURVEY_LOADING, False))
        data = response.json()
        self.store.dispatch(Action(SET_CURRENT_SURVEY, data["data"]))
        return data

    async def save_survey(self, survey: Dict[str, Any]) -> Dict[str, Any]:
        # image_url is output only, a new image goes in as data URI under "image"
        payload = {k: v for k, v in survey.items() if k != "image_url"}
        survey_id = payload.pop("id", None)
        if survey_id:
            response = await self._request("PUT", f"/survey/{survey_id}", json=payload)
        else:
            response = await self._request("POST", "/survey", json=payload)
        data = response.json()
        self.store.dispatch(Action(SET_CURRENT_SURVEY, data["data"]))
        return data

    async def delete_survey(self, survey_id: int) -> None:
        await self._request("DELETE", f"/survey/{survey_id}")
        logger.debug("Deleted survey %s", survey_id)
