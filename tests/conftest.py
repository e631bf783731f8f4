import os
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from dotenv import load_dotenv

from roblox_pulse.pipeline.interfaces import SnapshotStore
from roblox_pulse.pipeline.models import (
    GameRecord,
    IdentifierMap,
    GameIdentifierPair,
    Snapshot,
    StatRecord,
    ThumbnailRecord,
)

# .env 파일을 먼저 로드하여 실제 환경 변수 설정
load_dotenv(override=False)

# .env에 값이 없는 경우에만 테스트용 기본값 설정
os.environ.setdefault("SNAPSHOT_BACKEND", "local")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))


def build_response(payload: Any = None, status_code: int = 200) -> Mock:
    """httpx.Response 흉내를 내는 Mock. 4xx/5xx면 raise_for_status가 HTTPStatusError를 던집니다."""
    response = Mock(status_code=status_code)
    response.json = Mock(return_value=payload)
    if status_code >= 400:
        response.raise_for_status = Mock(
            side_effect=httpx.HTTPStatusError(
                f"HTTP {status_code} Error",
                request=Mock(),
                response=Mock(status_code=status_code),
            )
        )
    else:
        response.raise_for_status = Mock(return_value=None)
    return response


@pytest.fixture
def make_response() -> Callable[..., Mock]:
    """응답 Mock 생성 함수"""
    return build_response


@pytest.fixture
def mock_client(mocker) -> AsyncMock:
    """httpx.AsyncClient의 기본 Mock"""
    mock = mocker.AsyncMock()
    # raise_for_status가 에러를 내지 않도록 기본 설정
    mock.get.return_value = build_response({"data": []})
    return mock


@pytest.fixture
def mock_store(mocker) -> AsyncMock:
    """SnapshotStore 인터페이스의 기본 Mock"""
    return mocker.AsyncMock(spec=SnapshotStore)


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2025, 11, 11, 10, 0, 0, tzinfo=UTC)


@pytest.fixture
def sample_id_map() -> IdentifierMap:
    return IdentifierMap.from_pairs(
        [
            GameIdentifierPair(place_id=111, universe_id=1001),
            GameIdentifierPair(place_id=222, universe_id=1002),
        ]
    )


@pytest.fixture
def sample_stats() -> list[StatRecord]:
    return [
        StatRecord(1001, "Game A", 50, 500, "first"),
        StatRecord(1002, "Game B", 10, 9000, "second"),
    ]


@pytest.fixture
def sample_thumbnails() -> list[ThumbnailRecord]:
    return [ThumbnailRecord(1001, "img-a")]


@pytest.fixture
def sample_snapshot(fixed_time: datetime) -> Snapshot:
    return Snapshot(
        generated_at=fixed_time,
        total_active=60,
        total_visits=9500,
        games=(
            GameRecord(1001, 111, "Game A", 50, 500, "img-a", "first"),
            GameRecord(1002, 222, "Game B", 10, 9000, None, "second"),
        ),
    )


@pytest.fixture
def games_file(tmp_path: Path) -> Path:
    path = tmp_path / "games.json"
    path.write_text("[111, 222]", encoding="utf-8")
    return path
