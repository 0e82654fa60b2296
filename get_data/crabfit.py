"""
Crab Fit 호환 이벤트 API 모듈
"""

import base64
import logging
from datetime import date, datetime
from typing import Optional, Union
from urllib.parse import quote, urlparse

import requests

from codec import decode
from config import API_URL, REQUEST_TIMEOUT, WINDOW_WEEKS
from expand import expand
from schemas import Event, EventData, Person

logger = logging.getLogger(__name__)


def event_id_from_url(url: str) -> str:
    """
    이벤트 링크 또는 ID 에서 이벤트 ID 를 꺼냅니다.

    "https://crab.fit/team-sync-123456" → "team-sync-123456"
    """
    value = url.strip()
    if "://" in value:
        value = urlparse(value).path
    event_id = value.strip("/").split("/")[-1]
    if not event_id:
        raise ValueError(f"이벤트 ID 를 찾을 수 없음: {url!r}")
    return event_id


def _auth_header(password: Optional[str]) -> dict[str, str]:
    if not password:
        return {}
    encoded = base64.b64encode(password.encode("utf-8")).decode("ascii")
    return {"Authorization": f"Bearer {encoded}"}


def _check_tokens(tokens: list[str]) -> list[str]:
    """전송 전에 토큰 형식을 확인합니다. 잘못되면 MalformedToken."""
    for token in tokens:
        decode(token)
    return list(tokens)


# =============================================================================
# 응답 정규화
# =============================================================================

def _parse_event(raw: dict) -> Event:
    try:
        return {
            "id": raw["id"],
            "name": raw.get("name") or "",
            "times": list(raw["times"]),
            "timezone": raw["timezone"],
            "created_at": int(raw["created_at"]),
        }
    except (KeyError, TypeError) as ex:
        raise ValueError(f"이벤트 응답 형식이 올바르지 않음: {ex}") from ex


def _parse_person(raw: dict) -> Person:
    try:
        return {
            "name": raw["name"],
            "availability": list(raw["availability"]),
        }
    except (KeyError, TypeError) as ex:
        raise ValueError(f"참가자 응답 형식이 올바르지 않음: {ex}") from ex


# =============================================================================
# API 클라이언트
# =============================================================================

class CrabFitClient:
    """이벤트/참가자 저장소 API. 세션을 주입할 수 있습니다."""

    def __init__(
        self,
        base_url: str = API_URL,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, json=None, password: Optional[str] = None):
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json", **_auth_header(password)}
        if json is not None:
            headers["Content-Type"] = "application/json"
        logger.debug("%s %s", method, url)
        response = self.session.request(
            method, url, headers=headers, json=json, timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def get_event(self, event_id: str) -> Event:
        return _parse_event(self._request("GET", f"/event/{quote(event_id)}"))

    def get_people(self, event_id: str) -> list[Person]:
        raw = self._request("GET", f"/event/{quote(event_id)}/people")
        return [_parse_person(p) for p in raw]

    def get_person(self, event_id: str, name: str, password: Optional[str] = None) -> Person:
        raw = self._request(
            "GET", f"/event/{quote(event_id)}/people/{quote(name)}", password=password,
        )
        return _parse_person(raw)

    def create_event(self, times: list[str], timezone: str, name: Optional[str] = None) -> Event:
        """이벤트를 만듭니다. times 는 날짜 토큰 또는 요일 토큰 목록."""
        payload = {"times": _check_tokens(times), "timezone": timezone}
        if name:
            payload["name"] = name
        return _parse_event(self._request("POST", "/event", json=payload))

    def update_person(
        self,
        event_id: str,
        name: str,
        availability: list[str],
        password: Optional[str] = None,
    ) -> Person:
        """참가자의 가능 시간을 덮어씁니다."""
        raw = self._request(
            "PATCH",
            f"/event/{quote(event_id)}/people/{quote(name)}",
            json={"availability": _check_tokens(availability)},
            password=password,
        )
        return _parse_person(raw)


def get_event_data(
    url: str,
    now: Union[date, datetime],
    client: Optional[CrabFitClient] = None,
    window_weeks: int = WINDOW_WEEKS,
    strict: bool = False,
) -> EventData:
    """
    이벤트 링크에서 이벤트, 참가자, 펼친 시각 목록을 한 번에 가져옵니다.

    Args:
        url: 이벤트 URL 또는 ID
        now: 요일 이벤트를 펼칠 기준 날짜
        client: API 클라이언트 (기본값: 설정의 API_URL)
        window_weeks: 요일 이벤트를 펼칠 추가 주 수
        strict: 저장소에 잘못된 토큰이 있을 때 예외를 낼지 여부

    Returns:
        EventData: {"event", "people", "instants"}
    """
    client = client or CrabFitClient()
    event_id = event_id_from_url(url)

    event = client.get_event(event_id)
    people = client.get_people(event_id)
    instants = expand(event["times"], now, window_weeks=window_weeks, strict=strict)

    return {
        "event": event,
        "people": people,
        "instants": instants,
    }
