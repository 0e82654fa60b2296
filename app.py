import logging
from collections import defaultdict
from datetime import date, datetime, timezone as dt_timezone

import streamlit as st

from analyze import (
    aggregate,
    find_available_times,
    merge_consecutive_slots,
    slot_minutes_of,
)
from codec import resolve_timezone
from config import DEFAULT_LOCALE, DEFAULT_TIME_FORMAT, WINDOW_WEEKS
from get_data.crabfit import get_event_data
from heatmap import render_grid_html
from table import build_table

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="모임 시간 찾기", page_icon="📅", layout="wide")

GRID_CSS = """
<style>
table.heatmap { border-collapse: collapse; }
table.heatmap th, table.heatmap td { border: 1px solid rgba(0,0,0,0.08); min-width: 72px; height: 36px; }
table.heatmap th.gap { border-left: 6px solid transparent; }
table.heatmap th.time { text-align: right; padding-right: 8px; font-weight: normal; }
table.heatmap td.empty { background: rgba(200,200,200,0.3); }
table.heatmap tr.spacer td { height: 10px; border: none; }
table.heatmap .badge { font-size: 10px; font-weight: 600; color: #0369a1; background: rgba(255,255,255,0.8);
                       border-radius: 3px; padding: 0 2px; margin: 0 1px; }
table.heatmap .date { font-size: 11px; color: #555; }
</style>
"""


# =============================================================================
# 텍스트 출력 생성 함수
# =============================================================================
def format_time_range(start: datetime, end: datetime, tz) -> str:
    """시간 범위를 보기 좋게 포맷팅합니다."""
    start, end = start.astimezone(tz), end.astimezone(tz)
    hours, remainder = divmod(int((end - start).total_seconds()), 3600)
    minutes = remainder // 60

    duration_str = ""
    if hours > 0:
        duration_str += f"{hours}시간"
    if minutes > 0:
        duration_str += f" {minutes}분" if hours > 0 else f"{minutes}분"

    return f"{start.strftime('%H:%M')} ~ {end.strftime('%H:%M')} ({duration_str.strip()})"


def group_ranges_by_date(ranges: list[tuple[datetime, datetime]], tz) -> dict[str, list[str]]:
    """시간 범위들을 현지 날짜별로 묶습니다."""
    grouped = defaultdict(list)
    for start, end in ranges:
        grouped[start.astimezone(tz).strftime("%Y-%m-%d")].append(format_time_range(start, end, tz))
    return dict(sorted(grouped.items()))


# =============================================================================
# 캐싱된 데이터 로드 함수 (같은 URL은 캐시 사용)
# =============================================================================
@st.cache_data(show_spinner=False, ttl=3600)  # 1시간 캐시
def load_event(url: str, today: date):
    return get_event_data(url, today, window_weeks=WINDOW_WEEKS)


st.title("📅 모임 시간 찾기")

# =============================================================================
# 상단: URL 입력
# =============================================================================
col1, col2 = st.columns([4, 1])
with col1:
    url = st.text_input(
        "🔗 이벤트 링크",
        placeholder="이벤트 링크 또는 ID 를 붙여넣으세요",
        label_visibility="collapsed",
    )
with col2:
    load_button = st.button("불러오기", type="primary", use_container_width=True)

if "data" not in st.session_state:
    st.session_state.data = None

if load_button and url:
    with st.spinner("데이터 불러오는 중..."):
        try:
            # 기준 날짜는 UTC
            st.session_state.data = load_event(url, datetime.now(dt_timezone.utc).date())
            st.success(f"✅ '{st.session_state.data['event']['name']}' 로드 완료!")
        except Exception as e:
            logging.getLogger(__name__).exception("이벤트 로드 실패: %s", url)
            st.error(f"❌ 오류: {e}")

# =============================================================================
# 메인 UI
# =============================================================================
if st.session_state.data:
    data = st.session_state.data
    event = data["event"]

    with st.sidebar:
        st.subheader("⚙️ 표시 설정")
        locale = st.text_input("로케일", value=DEFAULT_LOCALE)
        time_format = st.radio(
            "시간 형식", ["12h", "24h"],
            index=0 if DEFAULT_TIME_FORMAT == "12h" else 1,
            horizontal=True,
        )
        timezone = st.text_input("시간대", value=event["timezone"])

    try:
        tz = resolve_timezone(timezone)
    except ValueError as e:
        st.error(f"❌ {e}")
        st.stop()

    st.divider()

    names = [p["name"] for p in data["people"]]
    selected = st.multiselect("👥 참여 인원 선택", options=names, default=names)
    people = [p for p in data["people"] if p["name"] in selected]

    if not data["instants"]:
        st.info("후보 시간이 없습니다.")
        st.stop()

    table = build_table(data["instants"], locale=locale, time_format=time_format, timezone=timezone)
    result = aggregate(data["instants"], people, strict=False)

    st.caption("진할수록 가능한 사람이 많은 시간입니다. 칸에 마우스를 올리면 이름이 보여요.")
    st.markdown(GRID_CSS + render_grid_html(table, result), unsafe_allow_html=True)

    if selected:
        st.divider()
        slots = list(find_available_times(result, selected))
        ranges = merge_consecutive_slots(slots, slot_minutes_of(data["instants"]))
        grouped = group_ranges_by_date(ranges, tz)

        if grouped:
            st.success(f"✅ {len(selected)}명 전원 가능한 시간대")
            for day, times in grouped.items():
                with st.expander(f"📅 {day}", expanded=True):
                    for t in times:
                        st.write(f"  🕐 {t}")
        else:
            st.warning("😢 전원 가능한 시간이 없습니다!")

else:
    st.info("이벤트 링크를 붙여넣고 불러오기를 눌러주세요~")
