import os
import stat
import tempfile
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from botocore.exceptions import ClientError
from loguru import logger

from roblox_pulse.config import Settings
from roblox_pulse.pipeline.clients import create_aws_clients
from roblox_pulse.pipeline.exceptions import SnapshotNotFoundError
from roblox_pulse.pipeline.interfaces import SnapshotStore
from roblox_pulse.pipeline.models import Snapshot

DEFAULT_FILE_MODE = 0o644


class LocalSnapshotStore(SnapshotStore):
    """
    로컬 JSON 파일 기반 SnapshotStore 구현체.

    저장 시 같은 디렉토리에 임시 파일을 쓴 뒤 교체하므로,
    읽는 쪽은 이전 스냅샷 또는 새 스냅샷 중 하나만 보게 됩니다.
    """

    def __init__(self, path: Path) -> None:
        """
        Args:
            path: 스냅샷 파일 경로 (예: data.json)
        """
        self._path = path

    async def save(self, snapshot: Snapshot) -> None:
        body = snapshot.to_json()
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(body)
            # mkstemp은 0600으로 만들므로 기존 권한(없으면 0644)을 맞춰 줌
            os.chmod(temp_path, self._file_mode())
            os.replace(temp_path, self._path)
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise

        logger.success(
            f"스냅샷 저장 완료: {self._path} (게임 {len(snapshot.games)}개)"
        )

    def _file_mode(self) -> int:
        try:
            return stat.S_IMODE(self._path.stat().st_mode)
        except FileNotFoundError:
            return DEFAULT_FILE_MODE

    async def load(self) -> Snapshot:
        try:
            body = self._path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise SnapshotNotFoundError(f"스냅샷 파일이 없습니다: {self._path}") from e

        snapshot = Snapshot.from_json(body)
        logger.debug(
            f"스냅샷 로드 완료: {self._path} (생성 시각: {snapshot.generated_at.isoformat()})"
        )
        return snapshot


class S3SnapshotStore(SnapshotStore):
    """
    S3 기반 SnapshotStore 구현체.

    스냅샷을 단일 S3 JSON 객체로 관리합니다. 저장할 때마다 객체를 통째로 덮어쓰며,
    CloudFront 배포 ID가 주어지면 해당 경로의 캐시 무효화를 요청합니다.

    파일 형식 예시 (data.json):
    {
        "generatedAt": "2025-11-11T10:00:00+00:00",
        "totalActive": 342000,
        "totalVisits": 98000000000,
        "games": [...]
    }
    """

    def __init__(
        self,
        client: Any,
        bucket_name: str,
        key: str = "data.json",
        cloudfront_client: Any = None,
        cloudfront_distribution_id: str | None = None,
    ) -> None:
        """
        Args:
            client: aioboto3 S3 클라이언트
            bucket_name: S3 버킷 이름
            key: 스냅샷 객체 키 (기본: "data.json")
            cloudfront_client: aioboto3 CloudFront 클라이언트 (선택)
            cloudfront_distribution_id: 캐시를 무효화할 배포 ID (선택)
        """
        self._client = client
        self._bucket_name = bucket_name
        self._key = key
        self._cloudfront_client = cloudfront_client
        self._cloudfront_distribution_id = cloudfront_distribution_id

    async def save(self, snapshot: Snapshot) -> None:
        """
        스냅샷을 S3에 저장합니다.

        Raises:
            Exception: S3 저장 실패 시 예외 발생
        """
        try:
            await self._client.put_object(
                Bucket=self._bucket_name,
                Key=self._key,
                Body=snapshot.to_json(),
                ContentType="application/json",
                CacheControl="no-cache, max-age=0",
            )
        except Exception as e:
            logger.error(f"스냅샷 저장 실패: s3://{self._bucket_name}/{self._key} - {e}")
            raise

        logger.success(
            f"스냅샷 저장 완료: s3://{self._bucket_name}/{self._key} "
            f"(게임 {len(snapshot.games)}개)"
        )
        await self._invalidate_cache()

    async def load(self) -> Snapshot:
        """
        S3에서 스냅샷을 조회합니다.

        Raises:
            SnapshotNotFoundError: 스냅샷 객체가 없는 경우
        """
        try:
            response = await self._client.get_object(
                Bucket=self._bucket_name, Key=self._key
            )
            body = await response["Body"].read()
        except ClientError as e:
            if e.response["Error"]["Code"] == "NoSuchKey":
                raise SnapshotNotFoundError(
                    f"스냅샷 객체가 없습니다: s3://{self._bucket_name}/{self._key}"
                ) from e
            logger.error(f"S3 스냅샷 조회 중 오류 발생: {e}")
            raise

        return Snapshot.from_json(body)

    async def _invalidate_cache(self) -> None:
        if not self._cloudfront_distribution_id or self._cloudfront_client is None:
            logger.debug("CloudFront Distribution ID가 없어 캐시 무효화를 건너뜁니다.")
            return

        path = f"/{self._key.lstrip('/')}"
        try:
            await self._cloudfront_client.create_invalidation(
                DistributionId=self._cloudfront_distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": 1, "Items": [path]},
                    "CallerReference": str(uuid.uuid4()),
                },
            )
            logger.success(f"CloudFront 캐시 무효화 요청 완료: {path}")
        except Exception as e:
            # 스냅샷은 이미 저장됨
            logger.error(f"CloudFront 캐시 무효화 중 오류 발생: {e}")


@asynccontextmanager
async def open_snapshot_store(config: Settings) -> AsyncGenerator[SnapshotStore, None]:
    """
    설정에 맞는 SnapshotStore를 생성합니다.

    Args:
        config: 애플리케이션 설정

    Yields:
        SnapshotStore: local 또는 s3 저장소

    Raises:
        ValueError: s3 저장소인데 버킷 이름이 없는 경우
    """
    if config.snapshot_backend == "local":
        yield LocalSnapshotStore(path=config.snapshot_path)
        return

    if not config.s3_bucket_name:
        raise ValueError("snapshot_backend=s3 에는 S3_BUCKET_NAME 설정이 필요합니다.")

    async with create_aws_clients() as (s3_client, cloudfront_client):
        yield S3SnapshotStore(
            client=s3_client,
            bucket_name=config.s3_bucket_name,
            key=config.snapshot_s3_key,
            cloudfront_client=cloudfront_client,
            cloudfront_distribution_id=config.cloudfront_distribution_id,
        )
