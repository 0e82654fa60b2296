import logging
from datetime import datetime, timedelta
from typing import Generator, Iterable, Union

from codec import MalformedToken, decode, format_slot, weekday_index
from schemas import Availability, AvailabilityResult, ExpandedInstant, Person
from table import as_instants

logger = logging.getLogger(__name__)


# =============================================================================
# 참가자 가능 시간 정리
# =============================================================================

def _person_keys(person: Person, strict: bool = True) -> tuple[set[str], set[tuple[int, int, int]]]:
    """
    한 사람의 가능 토큰을 (날짜 토큰 집합, (요일, 시, 분) 집합)으로 나눕니다.

    날짜 토큰은 디코딩 후 다시 인코딩해서 표준 형태로 맞춥니다.
    잘못된 토큰이면 strict 일 때 MalformedToken 이 그대로 올라가고,
    아니면 경고 로그를 남기고 건너뜁니다.
    """
    specific: set[str] = set()
    recurring: set[tuple[int, int, int]] = set()

    for token in person["availability"]:
        try:
            slot = decode(token)
        except MalformedToken:
            if strict:
                raise
            logger.warning("%s 의 잘못된 토큰 건너뜀: %r", person["name"], token)
            continue
        if slot["kind"] == "date":
            specific.add(format_slot(slot))
        else:
            recurring.add((slot["weekday"], slot["hour"], slot["minute"]))

    return specific, recurring


def _is_free(keys: tuple[set[str], set[tuple[int, int, int]]], item: ExpandedInstant) -> bool:
    specific, recurring = keys
    if item["token"] in specific:
        return True
    if not recurring:
        return False
    instant = item["instant"]
    return (weekday_index(instant.date()), instant.hour, instant.minute) in recurring


# =============================================================================
# 1. 시간대별 집계
# =============================================================================

def aggregate(
    instants: Iterable[Union[ExpandedInstant, str]],
    people: list[Person],
    strict: bool = True,
) -> AvailabilityResult:
    """
    시간대마다 가능한 사람 목록과 전체 최소/최대 인원을 계산합니다.

    요일 토큰으로 표시한 사람도 펼친 날짜 시각과 비교하므로
    날짜 토큰으로 표시한 사람과 같은 칸에 잡힙니다.

    Args:
        instants: expand() 결과 (또는 날짜 토큰 문자열)
        people: [{"name": ..., "availability": [...]}, ...]
        strict: False 면 참가자의 잘못된 토큰을 건너뜁니다

    Returns:
        {"per_instant": [{"token", "instant", "people"}, ...], "min": int, "max": int}
    """
    keyed = [(person["name"], _person_keys(person, strict)) for person in people]

    per_instant: list[Availability] = []
    for item in as_instants(instants):
        names = [name for name, keys in keyed if _is_free(keys, item)]
        per_instant.append({
            "token": item["token"],
            "instant": item["instant"],
            "people": names,
        })

    counts = [len(a["people"]) for a in per_instant]
    return {
        "per_instant": per_instant,
        "min": min(counts, default=0),
        "max": max(counts, default=0),
    }


def availability_by_token(result: AvailabilityResult) -> dict[str, list[str]]:
    """{토큰: [가능한 사람들]} 형태로 바꿉니다. 그리드 칸과 맞출 때 사용합니다."""
    return {a["token"]: a["people"] for a in result["per_instant"]}


# =============================================================================
# 2. 선택한 인원 전원 가능 시간
# =============================================================================

def find_available_times(
    result: AvailabilityResult,
    participants: list[str],
) -> Generator[datetime, None, None]:
    """
    특정 참가자들이 모두 가능한 시각을 찾습니다.
    """
    participant_set = set(participants)
    for availability in result["per_instant"]:
        if participant_set.issubset(availability["people"]):
            yield availability["instant"]


def merge_consecutive_slots(
    slots: list[datetime],
    slot_minutes: int = 15,
    min_duration_minutes: int = 0
) -> list[tuple[datetime, datetime]]:
    """
    연속된 시간 슬롯들을 묶어서 (시작, 종료) 튜플 리스트로 반환합니다.

    Args:
        slots: datetime 리스트
        slot_minutes: 슬롯 간격 (분)
        min_duration_minutes: 최소 연속 시간 (분). 이보다 짧은 범위는 제외

    Returns:
        [(시작시간, 종료시간), ...] 형태의 리스트
    """
    if not slots:
        return []

    sorted_slots = sorted(slots)
    step = timedelta(minutes=slot_minutes)
    merged = []

    start = end = sorted_slots[0]
    for slot in sorted_slots[1:]:
        if slot - end == step:
            end = slot
        else:
            merged.append((start, end + step))
            start = end = slot
    merged.append((start, end + step))

    if min_duration_minutes > 0:
        min_duration = timedelta(minutes=min_duration_minutes)
        merged = [(s, e) for s, e in merged if (e - s) >= min_duration]

    return merged


def slot_minutes_of(instants: Iterable[Union[ExpandedInstant, str]]) -> int:
    """
    시각 목록의 슬롯 간격(분)을 추정합니다. 인접 시각 차이 중 가장 작은 값,
    알 수 없으면 60분.
    """
    times = sorted(item["instant"] for item in as_instants(instants))
    gaps = [
        int((b - a).total_seconds() // 60)
        for a, b in zip(times, times[1:])
    ]
    gaps = [g for g in gaps if g > 0]
    return min(gaps, default=60)
