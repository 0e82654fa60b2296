"""
히트맵 HTML 렌더링
"""

from html import escape
from typing import Iterable

from analyze import availability_by_token
from schemas import AvailabilityResult, GridTable

BASE_COLOR = "14, 165, 233"


def heatmap_opacity(count: int, low: int, high: int) -> float:
    """인원 수 → 칸 투명도 (0.1 ~ 0.5). 최소 == 최대면 0.1 고정."""
    if high == low:
        return 0.1
    return 0.1 + ((count - low) / (high - low)) * 0.4


def initials(name: str) -> str:
    """'Kim Minji' → 'KM'"""
    return "".join(part[0] for part in name.split() if part).upper()[:2]


def _people_badges(people: list[str], limit: int = 4) -> str:
    badges = [f'<span class="badge">{escape(initials(p))}</span>' for p in people[:limit]]
    if len(people) > limit:
        badges.append(f'<span class="badge">+{len(people) - limit}</span>')
    return "".join(badges)


def render_grid_html(
    table: GridTable,
    result: AvailabilityResult,
    selected: Iterable[str] = (),
) -> str:
    """
    그리드와 집계 결과를 HTML 표로 그립니다.

    Args:
        table: build_table() 결과
        result: aggregate() 결과
        selected: 강조할 토큰들

    Returns:
        <table> HTML 문자열. 빈 그리드면 빈 문자열
    """
    if not table["columns"]:
        return ""

    by_token = availability_by_token(result)
    selected = set(selected)
    low, high = result["min"], result["max"]

    lines = ['<table class="heatmap">', "<thead><tr><th></th>"]
    for column in table["columns"]:
        gap = ' class="gap"' if column["gap_before"] else ""
        date_label = (
            f'<div class="date">{escape(column["date_label"])}</div>'
            if column["date_label"] else ""
        )
        lines.append(f'<th{gap}>{date_label}<div class="weekday">{escape(column["weekday_label"])}</div></th>')
    lines.append("</tr></thead><tbody>")

    for row_index, row in enumerate(table["rows"]):
        if row is None:
            lines.append(f'<tr class="spacer"><td colspan="{len(table["columns"]) + 1}"></td></tr>')
            continue

        lines.append(f'<tr><th class="time">{escape(row["label"])}</th>')
        for column in table["columns"]:
            cell = column["cells"][row_index]
            if cell is None:
                lines.append('<td class="empty"></td>')
                continue

            people = by_token.get(cell["token"], [])
            if cell["token"] in selected:
                color = f"rgb({BASE_COLOR})"
            else:
                color = f"rgba({BASE_COLOR}, {heatmap_opacity(len(people), low, high):.2f})"
            title = cell["label"] + (f" - {', '.join(people)}" if people else "")
            style = f"background-color: {color};"
            if cell["minute"] == 30:
                style += " border-top-style: dotted;"
            elif cell["minute"] != 0:
                style += " border-top-color: transparent;"
            lines.append(
                f'<td style="{style}" title="{escape(title)}">{_people_badges(people)}</td>'
            )
        lines.append("</tr>")

    lines.append("</tbody></table>")
    return "\n".join(lines)
