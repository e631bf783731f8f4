"""대시보드 숫자/시각 표시 형식."""

from datetime import datetime

_SUFFIXES = (
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)


def format_count(value: int) -> str:
    """천 단위 구분 기호를 넣은 정수 문자열. 예: 1234567 → '1,234,567'"""
    return f"{value:,}"


def format_number(value: int) -> str:
    """
    큰 수를 K/M/B 접미사와 소수점 한 자리로 줄여 표시합니다.

    Examples:
        >>> format_number(999)
        '999'
        >>> format_number(1_234_000)
        '1.2M'
    """
    for threshold, suffix in _SUFFIXES:
        if value >= threshold:
            return f"{value / threshold:.1f}{suffix}"
    return format_count(value)


def format_timestamp(value: datetime) -> str:
    """스냅샷 생성 시각을 로컬 시간대 기준 'YYYY-MM-DD HH:MM:SS'로 표시합니다."""
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")
