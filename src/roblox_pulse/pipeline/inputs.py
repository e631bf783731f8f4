import json
from pathlib import Path

from loguru import logger

from roblox_pulse.pipeline.exceptions import InvalidGameListError


def load_place_ids(path: Path) -> list[int]:
    """
    추적할 place ID 목록을 JSON 파일에서 읽습니다.

    파일은 정수(또는 숫자 문자열) 배열이어야 합니다. 예: [920587237, "2753915549"]

    Args:
        path: place ID 목록 파일 경로

    Returns:
        list[int]: 파일에 적힌 순서대로의 place ID 목록

    Raises:
        InvalidGameListError: 파일이 없거나, 형식이 잘못되었거나, 비어 있는 경우
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise InvalidGameListError(f"게임 목록 파일을 읽을 수 없습니다: {path} ({e})") from e

    if not isinstance(raw, list):
        raise InvalidGameListError(f"게임 목록은 JSON 배열이어야 합니다: {path}")

    place_ids: list[int] = []
    for value in raw:
        if isinstance(value, bool) or not isinstance(value, int | str):
            raise InvalidGameListError(f"잘못된 place ID: {value!r}")
        if isinstance(value, str) and not value.strip().isdigit():
            raise InvalidGameListError(f"잘못된 place ID: {value!r}")
        place_ids.append(int(value))

    if not place_ids:
        raise InvalidGameListError(f"게임 목록이 비어 있습니다: {path}")

    logger.debug(f"게임 목록 로드 완료: {path} (place {len(place_ids)}개)")
    return place_ids
