"""
타임슬롯 토큰 펼치기 모듈

날짜 토큰과 요일 토큰이 섞인 목록을 실제 UTC 시각 목록으로 바꿉니다.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Union

from codec import MalformedToken, decode, format_slot, slot_to_datetime, weekday_index
from config import WINDOW_WEEKS
from schemas import ExpandedInstant, WeekdaySlot

logger = logging.getLogger(__name__)


def _today(now: Union[date, datetime]) -> date:
    """기준 시각 → UTC 기준 날짜"""
    if isinstance(now, datetime):
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.date()
    return now


def project_weekday(slot: WeekdaySlot, today: date, window_weeks: int) -> list[datetime]:
    """
    요일 슬롯을 today 이후 가장 가까운 해당 요일(오늘 포함)부터
    window_weeks 주 뒤까지 매주 하나씩 펼칩니다.

    Returns:
        window_weeks + 1 개의 UTC datetime
    """
    offset = (slot["weekday"] - weekday_index(today)) % 7
    first = today + timedelta(days=offset)

    instants = []
    for week in range(window_weeks + 1):
        day = first + timedelta(weeks=week)
        instants.append(datetime(
            day.year, day.month, day.day,
            slot["hour"], slot["minute"],
            tzinfo=timezone.utc,
        ))
    return instants


def expand(
    tokens: Iterable[str],
    now: Union[date, datetime],
    window_weeks: int = WINDOW_WEEKS,
    strict: bool = True,
) -> list[ExpandedInstant]:
    """
    토큰 목록을 중복 없는 오름차순 시각 목록으로 펼칩니다.

    Args:
        tokens: 날짜/요일 토큰 목록
        now: 기준 날짜 (요일 토큰 계산용). 시스템 시계를 직접 읽지 않습니다.
        window_weeks: 첫 번째 발생 이후 추가로 펼칠 주 수
        strict: True 면 잘못된 토큰에서 MalformedToken 을 그대로 던지고,
                False 면 경고 로그를 남기고 건너뜁니다.

    Returns:
        [{"token": "0900-15112025", "instant": datetime(...)}, ...]
    """
    if window_weeks < 0:
        raise ValueError(f"window_weeks 는 0 이상이어야 합니다: {window_weeks}")

    today = _today(now)
    found: dict[datetime, str] = {}

    for token in tokens:
        try:
            slot = decode(token)
        except MalformedToken:
            if strict:
                raise
            logger.warning("잘못된 토큰 건너뜀: %r", token)
            continue

        if slot["kind"] == "date":
            instants = [slot_to_datetime(slot)]
        else:
            instants = project_weekday(slot, today, window_weeks)

        # 같은 시각이면 하나로 합침 (토큰 문자열이 아니라 시각 기준)
        for instant in instants:
            if instant not in found:
                found[instant] = format_slot({
                    "kind": "date",
                    "hour": instant.hour,
                    "minute": instant.minute,
                    "day": instant.day,
                    "month": instant.month,
                    "year": instant.year,
                })

    return [{"token": found[instant], "instant": instant} for instant in sorted(found)]


def expand_times(tokens: Iterable[str], now: Union[date, datetime], **kwargs) -> list[str]:
    """expand 결과에서 토큰 문자열만 꺼냅니다."""
    return [item["token"] for item in expand(tokens, now, **kwargs)]
