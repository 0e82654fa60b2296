"""
이벤트 생성용 타임슬롯 토큰 만들기
"""

import re
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Iterable

from codec import encode, resolve_timezone, weekday_index

_CLOCK = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")


def parse_clock(text: str) -> tuple[int, int]:
    """
    "9:00 AM", "12:30 PM", "17:00" 같은 문자열을 (시, 분)으로 바꿉니다.
    """
    match = _CLOCK.match(text)
    if not match:
        raise ValueError(f"시각 형식을 읽을 수 없음: {text!r}")

    hour, minute = int(match.group(1)), int(match.group(2))
    period = (match.group(3) or "").upper()
    if period:
        if not 1 <= hour <= 12:
            raise ValueError(f"12시간제 시(hour) 범위 초과: {text!r}")
        if period == "PM" and hour != 12:
            hour += 12
        if period == "AM" and hour == 12:
            hour = 0
    if hour > 23 or minute > 59:
        raise ValueError(f"시각 범위 초과: {text!r}")
    return hour, minute


def _local_window(day: date, start_time: str, end_time: str, slot_minutes: int) -> list[datetime]:
    """하루 안의 [시작, 종료) 구간을 slot_minutes 간격의 naive 현지 시각으로 나눕니다."""
    if slot_minutes not in (15, 30, 60):
        raise ValueError(f"slot_minutes 는 15, 30, 60 중 하나여야 합니다: {slot_minutes}")

    start_h, start_m = parse_clock(start_time)
    end_h, end_m = parse_clock(end_time)

    current = datetime.combine(day, time(start_h, start_m))
    end = datetime.combine(day, time(end_h, end_m))
    if (end_h, end_m) == (0, 0):
        # 종료가 자정(12:00 AM)이면 그날 끝까지
        end += timedelta(days=1)
    elif end <= current:
        raise ValueError(f"종료 시각이 시작 시각보다 늦어야 합니다: {start_time!r} ~ {end_time!r}")

    slots = []
    while current < end:
        slots.append(current)
        current += timedelta(minutes=slot_minutes)
    return slots


def generate_time_slots(
    dates: Iterable[date],
    start_time: str,
    end_time: str,
    timezone: str = "UTC",
    slot_minutes: int = 60,
) -> list[str]:
    """
    날짜와 시간 범위로 날짜 토큰(HHmm-DDMMYYYY)을 만듭니다.

    Args:
        dates: 후보 날짜들 (이벤트 시간대 기준)
        start_time: 시작 시각 (예: "9:00 AM")
        end_time: 종료 시각 (예: "5:00 PM"), 포함하지 않음
        timezone: 이벤트 IANA 시간대
        slot_minutes: 슬롯 간격 (15, 30, 60)

    Returns:
        중복 없는 UTC 기준 토큰 리스트 (시간순)
    """
    tz = resolve_timezone(timezone)
    found: dict[datetime, str] = {}
    for day in dates:
        for local in _local_window(day, start_time, end_time, slot_minutes):
            utc = local.replace(tzinfo=tz).astimezone(dt_timezone.utc)
            found.setdefault(utc, encode(utc))
    return [found[k] for k in sorted(found)]


def generate_weekday_slots(
    weekdays: Iterable[int],
    start_time: str,
    end_time: str,
    reference: date,
    timezone: str = "UTC",
    slot_minutes: int = 60,
) -> list[str]:
    """
    반복 요일(0=일요일)과 시간 범위로 요일 토큰(HHmm-d)을 만듭니다.

    현지 시각을 UTC 로 바꿀 때는 reference 가 속한 주(일요일 시작)의
    해당 요일 날짜를 기준으로 오프셋을 계산합니다. UTC 로 바뀌면서
    요일이 달라질 수 있습니다.
    """
    tz = resolve_timezone(timezone)
    week_start = reference - timedelta(days=weekday_index(reference))

    tokens: list[str] = []
    seen = set()
    for weekday in sorted(set(weekdays)):
        if not 0 <= weekday <= 6:
            raise ValueError(f"요일은 0(일요일)~6(토요일) 이어야 합니다: {weekday}")
        day = week_start + timedelta(days=weekday)
        for local in _local_window(day, start_time, end_time, slot_minutes):
            token = encode(local.replace(tzinfo=tz), use_specific_date=False)
            if token not in seen:
                seen.add(token)
                tokens.append(token)
    return tokens
