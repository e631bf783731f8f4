import asyncio
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from roblox_pulse.pipeline.exceptions import MalformedResponseError
from roblox_pulse.pipeline.extractors import (
    BaseRobloxExtractor,
    GameStatsExtractor,
    GameThumbnailExtractor,
    fetch_datasets,
)
from roblox_pulse.pipeline.interfaces import DatasetExtractor
from roblox_pulse.pipeline.models import StatRecord, ThumbnailRecord


def mock_response(payload):
    return Mock(raise_for_status=lambda: None, json=lambda: payload)


def error_response(status_code: int = 500):
    response = Mock()
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        f"HTTP {status_code} Error", request=Mock(), response=Mock(status_code=status_code)
    )
    return response


STATS_PAYLOAD = {
    "data": [
        {
            "id": 1001,
            "rootPlaceId": 111,
            "name": "Game A",
            "description": "first",
            "playing": 50,
            "visits": 500,
        },
        {
            "id": 1002,
            "rootPlaceId": 222,
            "name": "Game B",
            "description": None,
            "playing": None,
            "visits": 9000,
        },
    ]
}

THUMBNAILS_PAYLOAD = {
    "data": [
        {"targetId": 1001, "state": "Completed", "imageUrl": "img-a"},
        {"targetId": 1002, "state": "Blocked", "imageUrl": ""},
    ]
}


def test_base_extractor_is_abstract(mock_client: AsyncMock):
    """
    BaseRobloxExtractor가 추상 속성이나 메서드를 구현하지 않으면
    TypeError를 발생시키는지 테스트합니다.
    """

    class IncompleteExtractor(BaseRobloxExtractor):
        pass

    with pytest.raises(TypeError):
        IncompleteExtractor(client=mock_client)


def test_extractors_conform_to_interface():
    assert issubclass(GameStatsExtractor, DatasetExtractor)
    assert issubclass(GameThumbnailExtractor, DatasetExtractor)


@pytest.mark.asyncio
async def test_stats_extractor_parses_records(mock_client: AsyncMock):
    """
    GameStatsExtractor가 universe ID를 콤마로 묶어 한 번에 요청하고
    응답 순서대로 StatRecord를 반환하는지 테스트합니다.
    """
    mock_client.get.return_value = mock_response(STATS_PAYLOAD)
    extractor = GameStatsExtractor(client=mock_client)

    records = await extractor.fetch([1001, 1002])

    mock_client.get.assert_awaited_once_with(
        "https://games.roblox.com/v1/games",
        params={"universeIds": "1001,1002"},
    )
    assert records == [
        StatRecord(1001, "Game A", 50, 500, "first"),
        StatRecord(1002, "Game B", None, 9000, None),
    ]


@pytest.mark.asyncio
async def test_thumbnail_extractor_sends_presentation_params(mock_client: AsyncMock):
    """
    썸네일 요청에 크기/형식/원형 여부/누락 정책 파라미터가 포함되는지,
    imageUrl이 비어 있는 항목은 제외되는지 테스트합니다.
    """
    mock_client.get.return_value = mock_response(THUMBNAILS_PAYLOAD)
    extractor = GameThumbnailExtractor(client=mock_client)

    records = await extractor.fetch([1001, 1002])

    _, kwargs = mock_client.get.call_args
    assert kwargs["params"] == {
        "universeIds": "1001,1002",
        "returnPolicy": "PlaceHolder",
        "size": "512x512",
        "format": "Png",
        "isCircular": "false",
    }
    assert records == [ThumbnailRecord(1001, "img-a")]


@pytest.mark.asyncio
async def test_extractor_splits_requests_by_chunk_size(mock_client: AsyncMock):
    """chunk_size가 설정되면 universe ID를 나눠 순차 요청하고 결과를 이어붙입니다."""
    mock_client.get.side_effect = [
        mock_response({"data": [{"id": 1, "name": "a", "playing": 1, "visits": 1}]}),
        mock_response({"data": [{"id": 3, "name": "c", "playing": 3, "visits": 3}]}),
    ]
    extractor = GameStatsExtractor(client=mock_client, chunk_size=2)

    records = await extractor.fetch([1, 2, 3])

    assert mock_client.get.call_count == 2
    sent = [call.kwargs["params"]["universeIds"] for call in mock_client.get.call_args_list]
    assert sent == ["1,2", "3"]
    assert [r.universe_id for r in records] == [1, 3]


@pytest.mark.asyncio
async def test_extractor_propagates_http_error(mock_client: AsyncMock):
    mock_client.get.return_value = error_response(500)
    extractor = GameStatsExtractor(client=mock_client)

    with pytest.raises(httpx.HTTPStatusError, match="HTTP 500 Error"):
        await extractor.fetch([1])

    mock_client.get.assert_called_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"data": None},
        [],
        {"data": [{"name": "no id"}]},
        {"data": [{"id": "not-a-number"}]},
    ],
)
async def test_stats_extractor_rejects_malformed_payload(
    mock_client: AsyncMock, payload
):
    mock_client.get.return_value = mock_response(payload)
    extractor = GameStatsExtractor(client=mock_client)

    with pytest.raises(MalformedResponseError):
        await extractor.fetch([1])


@pytest.mark.asyncio
async def test_fetch_datasets_returns_both_datasets(mock_client: AsyncMock):
    async def fake_get(url, params=None, **kwargs):
        if "thumbnails" in url:
            return mock_response(THUMBNAILS_PAYLOAD)
        return mock_response(STATS_PAYLOAD)

    mock_client.get.side_effect = fake_get

    stats, thumbnails = await fetch_datasets(
        GameStatsExtractor(client=mock_client),
        GameThumbnailExtractor(client=mock_client),
        [1001, 1002],
    )

    assert [s.universe_id for s in stats] == [1001, 1002]
    assert thumbnails == [ThumbnailRecord(1001, "img-a")]


@pytest.mark.asyncio
async def test_fetch_datasets_fails_when_thumbnails_fail(mock_client: AsyncMock):
    """
    통계 요청이 성공해도 썸네일 요청이 실패하면 전체 추출 단계가 실패해야 합니다.

    Verifies:
        - ExceptionGroup으로 래핑된 HTTPStatusError가 발생하는지 확인
    """

    async def fake_get(url, params=None, **kwargs):
        if "thumbnails" in url:
            return error_response(503)
        return mock_response(STATS_PAYLOAD)

    mock_client.get.side_effect = fake_get

    with pytest.raises(ExceptionGroup) as exc_info:
        await fetch_datasets(
            GameStatsExtractor(client=mock_client),
            GameThumbnailExtractor(client=mock_client),
            [1001, 1002],
        )

    http_errors = [
        exc
        for exc in exc_info.value.exceptions
        if isinstance(exc, httpx.HTTPStatusError)
    ]
    assert len(http_errors) == 1
    assert "HTTP 503 Error" in str(http_errors[0])


@pytest.mark.asyncio
async def test_fetch_datasets_cancels_sibling_on_failure(mocker):
    """한쪽이 실패하면 아직 진행 중인 다른 요청은 기다리지 않고 취소됩니다."""
    sibling_cancelled = asyncio.Event()

    async def slow_fetch(universe_ids):
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            sibling_cancelled.set()
            raise
        return []

    stats_extractor = mocker.AsyncMock(spec=DatasetExtractor)
    stats_extractor.fetch.side_effect = slow_fetch
    thumbnail_extractor = mocker.AsyncMock(spec=DatasetExtractor)
    thumbnail_extractor.fetch.side_effect = httpx.ConnectError("boom")

    with pytest.raises(ExceptionGroup):
        await asyncio.wait_for(
            fetch_datasets(stats_extractor, thumbnail_extractor, [1]), timeout=5
        )

    assert sibling_cancelled.is_set()
