"""
타임슬롯 토큰 인코딩/디코딩 모듈

토큰 형식 (모두 UTC 기준):
    HHmm-DDMMYYYY  특정 날짜 (13자)
    HHmm-d         반복 요일 (6자, 0=일요일 … 6=토요일)
"""

import re
from datetime import date, datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from schemas import Slot, SpecificDateSlot, WeekdaySlot

ALLOWED_MINUTES = (0, 15, 30, 45)

_DATE_TOKEN = re.compile(r"^(\d{2})(\d{2})-(\d{2})(\d{2})(\d{4})$", re.ASCII)
_WEEKDAY_TOKEN = re.compile(r"^(\d{2})(\d{2})-(\d)$", re.ASCII)


class MalformedToken(ValueError):
    """두 가지 토큰 형식 어디에도 맞지 않는 문자열."""

    def __init__(self, token, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"잘못된 타임슬롯 토큰 {token!r}: {reason}")


def resolve_timezone(name: str):
    """IANA 시간대 이름을 tzinfo 로 변환합니다."""
    if name in ("UTC", "utc", "Z"):
        return dt_timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as ex:
        raise ValueError(f"알 수 없는 시간대: {name!r}") from ex


def weekday_index(d: date) -> int:
    """date → 요일 번호 (0=일요일)."""
    return d.isoweekday() % 7


# =============================================================================
# 인코딩
# =============================================================================

def _check_clock(token, hour: int, minute: int) -> None:
    if not 0 <= hour <= 23:
        raise MalformedToken(token, f"시(hour) 범위 초과: {hour}")
    if minute not in ALLOWED_MINUTES:
        raise MalformedToken(token, f"15분 단위가 아닌 분(minute): {minute}")


def format_slot(slot: Slot) -> str:
    """
    슬롯 딕셔너리를 토큰 문자열로 바꿉니다. decode 의 역함수입니다.
    """
    hour, minute = slot["hour"], slot["minute"]
    _check_clock(slot, hour, minute)

    if slot["kind"] == "date":
        try:
            date(slot["year"], slot["month"], slot["day"])
        except ValueError as ex:
            raise MalformedToken(slot, str(ex)) from ex
        return f"{hour:02d}{minute:02d}-{slot['day']:02d}{slot['month']:02d}{slot['year']:04d}"

    if not 0 <= slot["weekday"] <= 6:
        raise MalformedToken(slot, f"요일 범위 초과: {slot['weekday']}")
    return f"{hour:02d}{minute:02d}-{slot['weekday']}"


def encode(instant: datetime, timezone: str = "UTC", use_specific_date: bool = True) -> str:
    """
    시각을 토큰으로 인코딩합니다.

    Args:
        instant: 인코딩할 시각. naive 이면 timezone 의 현지 시각으로 간주
        timezone: naive 시각을 해석할 IANA 시간대
        use_specific_date: True 면 날짜 토큰, False 면 요일 토큰

    Returns:
        UTC 기준 토큰 문자열
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=resolve_timezone(timezone))
    utc = instant.astimezone(dt_timezone.utc)

    if utc.second or utc.microsecond:
        raise MalformedToken(instant.isoformat(), "초 단위 값이 있는 시각")

    if use_specific_date:
        slot: Slot = {
            "kind": "date",
            "hour": utc.hour,
            "minute": utc.minute,
            "day": utc.day,
            "month": utc.month,
            "year": utc.year,
        }
    else:
        slot = {
            "kind": "weekday",
            "hour": utc.hour,
            "minute": utc.minute,
            "weekday": weekday_index(utc.date()),
        }
    return format_slot(slot)


# =============================================================================
# 디코딩
# =============================================================================

def decode(token: str) -> Slot:
    """
    토큰을 슬롯 딕셔너리로 디코딩합니다.

    Raises:
        MalformedToken: 형식, 시/분 범위, 달력 날짜 중 하나라도 맞지 않을 때
    """
    if not isinstance(token, str):
        raise MalformedToken(token, "문자열이 아님")

    if len(token) == 13:
        match = _DATE_TOKEN.match(token)
        if not match:
            raise MalformedToken(token, "HHmm-DDMMYYYY 형식이 아님")
        hour, minute, day, month, year = (int(g) for g in match.groups())
        _check_clock(token, hour, minute)
        try:
            date(year, month, day)
        except ValueError as ex:
            raise MalformedToken(token, f"존재하지 않는 날짜 ({ex})") from ex
        specific: SpecificDateSlot = {
            "kind": "date",
            "hour": hour,
            "minute": minute,
            "day": day,
            "month": month,
            "year": year,
        }
        return specific

    if len(token) == 6:
        match = _WEEKDAY_TOKEN.match(token)
        if not match:
            raise MalformedToken(token, "HHmm-d 형식이 아님")
        hour, minute, weekday = (int(g) for g in match.groups())
        _check_clock(token, hour, minute)
        if weekday > 6:
            raise MalformedToken(token, f"요일 범위 초과: {weekday}")
        recurring: WeekdaySlot = {
            "kind": "weekday",
            "hour": hour,
            "minute": minute,
            "weekday": weekday,
        }
        return recurring

    raise MalformedToken(token, f"길이가 13 또는 6이 아님 ({len(token)})")


def slot_to_datetime(slot: SpecificDateSlot) -> datetime:
    """날짜 슬롯 → UTC aware datetime."""
    return datetime(
        slot["year"], slot["month"], slot["day"],
        slot["hour"], slot["minute"],
        tzinfo=dt_timezone.utc,
    )


def token_to_datetime(token: str) -> datetime:
    """날짜 토큰 → UTC aware datetime. 요일 토큰은 날짜가 없으므로 거부합니다."""
    slot = decode(token)
    if slot["kind"] != "date":
        raise MalformedToken(token, "날짜 토큰이 필요하지만 요일 토큰임")
    return slot_to_datetime(slot)
