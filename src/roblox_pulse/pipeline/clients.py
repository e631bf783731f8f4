from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import aioboto3
import httpx
from loguru import logger

from roblox_pulse.config import settings


@asynccontextmanager
async def create_http_client(
    timeout_seconds: float | None = None,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Roblox API 호출에 사용할 비동기 HTTP 클라이언트를 생성하고 세션을 관리합니다.

    Args:
        timeout_seconds: 요청별 타임아웃 (기본값: settings.request_timeout_seconds)

    Yields:
        httpx.AsyncClient: 타임아웃이 설정된 HTTP 클라이언트
    """
    logger.info("HTTPX AsyncClient 세션 생성...")
    timeout = httpx.Timeout(timeout_seconds or settings.request_timeout_seconds)
    headers = {"Accept": "application/json", "User-Agent": "roblox-pulse/0.1"}

    async with httpx.AsyncClient(timeout=timeout, headers=headers) as http_client:
        try:
            yield http_client
        finally:
            logger.info("HTTP 클라이언트 세션 종료...")


@asynccontextmanager
async def create_aws_clients() -> AsyncGenerator[tuple[Any, Any], None]:
    """
    스냅샷 저장에 필요한 S3, CloudFront 비동기 클라이언트를 생성합니다.

    Yields:
        tuple[Any, Any]: (S3 클라이언트, CloudFront 클라이언트)
    """
    logger.info("aioboto3 세션 생성...")
    region = settings.aws_default_region
    session = aioboto3.Session(region_name=region)

    async with (
        session.client("s3", region_name=region) as s3_client,
        session.client("cloudfront", region_name=region) as cloudfront_client,
    ):
        try:
            yield s3_client, cloudfront_client
        finally:
            logger.info("AWS 클라이언트 세션 종료...")
