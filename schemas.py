from datetime import date, datetime, time
from typing import TypedDict, List, Literal, Optional, Union


class SpecificDateSlot(TypedDict):
    kind: Literal["date"]
    hour: int
    minute: int
    day: int
    month: int
    year: int


class WeekdaySlot(TypedDict):
    kind: Literal["weekday"]
    hour: int
    minute: int
    weekday: int                             # 0=일요일 … 6=토요일


Slot = Union[SpecificDateSlot, WeekdaySlot]


class ExpandedInstant(TypedDict):
    token: str                               # HHmm-DDMMYYYY (UTC)
    instant: datetime                        # UTC aware datetime


class GridRow(TypedDict):
    time: time                               # 표시 시간대 기준 시각
    label: str


class GridCell(TypedDict):
    token: str
    label: str
    minute: int                              # 0 / 15 / 30 / 45


class GridColumn(TypedDict):
    date: date
    date_label: Optional[str]                # 날짜가 하나뿐이면 None
    weekday_label: str
    gap_before: bool                         # 이전 열과 하루 이상 떨어져 있음
    cells: List[Optional[GridCell]]          # rows 와 같은 길이


class GridTable(TypedDict):
    columns: List[GridColumn]
    rows: List[Optional[GridRow]]            # None = 구분용 빈 행


class Person(TypedDict):
    name: str
    availability: List[str]


class Availability(TypedDict):
    token: str
    instant: datetime
    people: List[str]                        # 입력 순서 유지


class AvailabilityResult(TypedDict):
    per_instant: List[Availability]
    min: int
    max: int


class Event(TypedDict):
    id: str
    name: str
    times: List[str]
    timezone: str
    created_at: int


class EventData(TypedDict):
    event: Event
    people: List[Person]
    instants: List[ExpandedInstant]
