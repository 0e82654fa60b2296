"""
환경 변수 기반 설정값
"""

import logging
import os

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

# 작업 디렉터리의 .env 를 먼저 읽음 (이미 설정된 환경 변수는 덮어쓰지 않음)
load_dotenv(find_dotenv(usecwd=True))


def _env_number(name: str, default, cast=int):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("%s=%r 값을 숫자로 읽을 수 없어 기본값 %r 사용", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s=%r 는 양수가 아니라 기본값 %r 사용", name, raw, default)
        return default
    return value


API_URL = os.getenv("HAPPYCAL_API_URL", "https://api.crab.fit").rstrip("/")
REQUEST_TIMEOUT = _env_number("HAPPYCAL_TIMEOUT", 10.0, float)  # 초
WINDOW_WEEKS = _env_number("HAPPYCAL_WINDOW_WEEKS", 2)          # 요일 이벤트 펼치는 기간 (주)
DEFAULT_LOCALE = os.getenv("HAPPYCAL_LOCALE", "en")
DEFAULT_TIME_FORMAT = os.getenv("HAPPYCAL_TIME_FORMAT", "12h")
