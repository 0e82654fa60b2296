"""
히트맵 그리드(표) 구성 모듈

열 = 날짜, 행 = 시각. 해당 날짜에 그 시각 슬롯이 없으면 칸은 None 입니다.
"""

from datetime import date, datetime, time
from typing import Iterable, Optional, Union

from babel.dates import format_date, format_time

from codec import resolve_timezone, token_to_datetime
from schemas import ExpandedInstant, GridCell, GridColumn, GridRow, GridTable

TIME_PATTERNS = {
    "12h": "h:mm a",
    "24h": "HH:mm",
}


def as_instants(instants: Iterable[Union[ExpandedInstant, str]]) -> list[ExpandedInstant]:
    """
    토큰 문자열이 섞여 있으면 ExpandedInstant 로 맞춰줍니다.
    같은 시각은 처음 것 하나만 남기고 시간순으로 정렬합니다.
    """
    found: dict[datetime, ExpandedInstant] = {}
    for item in instants:
        if isinstance(item, str):
            item = {"token": item, "instant": token_to_datetime(item)}
        found.setdefault(item["instant"], item)
    return [found[instant] for instant in sorted(found)]


def format_time_label(t: time, locale: str, time_format: str) -> str:
    """시각 라벨. 12h → '9:00 AM', 24h → '09:00'"""
    try:
        pattern = TIME_PATTERNS[time_format]
    except KeyError:
        raise ValueError(f"지원하지 않는 시간 형식: {time_format!r} (12h 또는 24h)") from None
    return format_time(t, pattern, locale=locale)


def build_table(
    instants: Iterable[Union[ExpandedInstant, str]],
    locale: str = "en",
    time_format: str = "12h",
    timezone: str = "UTC",
) -> GridTable:
    """
    펼친 시각 목록으로 날짜 × 시각 표를 만듭니다.

    Args:
        instants: expand() 결과 (또는 날짜 토큰 문자열)
        locale: 라벨 로케일 (예: "en", "ko", "de_DE")
        time_format: "12h" | "24h"
        timezone: 표시용 IANA 시간대

    Returns:
        {"columns": [...], "rows": [...]}. 빈 입력이면 둘 다 빈 리스트
    """
    if time_format not in TIME_PATTERNS:
        raise ValueError(f"지원하지 않는 시간 형식: {time_format!r} (12h 또는 24h)")
    tz = resolve_timezone(timezone)

    # (현지 날짜, (현지 시각, fold)) → 토큰
    # time 비교는 fold 를 무시하므로 서머타임 해제 때 반복되는 시각은 fold 로 구분
    lookup: dict[tuple[date, tuple[time, int]], str] = {}
    zone_names: dict[tuple[time, int], str] = {}
    for item in as_instants(instants):
        local: datetime = item["instant"].astimezone(tz)
        clock = local.time().replace(second=0, microsecond=0, fold=0)
        row_key = (clock, local.fold)
        lookup[(local.date(), row_key)] = item["token"]
        zone_names.setdefault(row_key, local.tzname() or "")

    if not lookup:
        return {"columns": [], "rows": []}

    dates = sorted({d for d, _ in lookup})
    row_keys = sorted({k for _, k in lookup})
    repeated = {clock for clock, fold in row_keys if fold}

    has_gap = any((b - a).days > 1 for a, b in zip(dates, dates[1:]))

    rows: list[Optional[GridRow]] = []
    keys: list[Optional[tuple[time, int]]] = []
    if has_gap:
        rows.append(None)
        keys.append(None)
    for clock, fold in row_keys:
        label = format_time_label(clock, locale, time_format)
        if clock in repeated:
            label = f"{label} ({zone_names[(clock, fold)]})"
        rows.append({"time": clock.replace(fold=fold), "label": label})
        keys.append((clock, fold))

    show_date = len(dates) > 1
    columns: list[GridColumn] = []
    previous = None
    for d in dates:
        cells: list[Optional[GridCell]] = []
        for row, key in zip(rows, keys):
            token = lookup.get((d, key)) if key else None
            if token is None:
                cells.append(None)
                continue
            cells.append({
                "token": token,
                "label": row["label"],
                "minute": row["time"].minute,
            })

        columns.append({
            "date": d,
            "date_label": format_date(d, "MMM d", locale=locale) if show_date else None,
            "weekday_label": format_date(d, "EEE", locale=locale),
            "gap_before": previous is not None and (d - previous).days > 1,
            "cells": cells,
        })
        previous = d

    return {"columns": columns, "rows": rows}
