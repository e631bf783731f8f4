"""Configuration management for the Roblox Pulse pipeline.

이 파일은 환경 변수를 타입 안전하게 관리합니다.
Pydantic을 사용해서 자동으로 .env 파일을 읽고 검증합니다.

사용법:
    from roblox_pulse.config import settings

    # settings 객체를 통해 환경 변수 접근
    games_file = settings.games_file
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):  # type: ignore[misc]
    """
    애플리케이션 설정 클래스.

    .env 파일의 환경 변수를 자동으로 로드하고 타입 검증합니다.
    Roblox 공개 API는 인증이 필요 없으므로 모든 필드에 기본값이 있습니다.
    """

    # 환경 설정 (선택, 기본값 있음)
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # 입력 / 스냅샷 위치
    games_file: Path = Field(
        default=Path("games.json"), description="추적할 place ID 목록 JSON 파일"
    )
    snapshot_backend: Literal["local", "s3"] = Field(
        default="local", description="스냅샷 저장소 종류"
    )
    snapshot_path: Path = Field(
        default=Path("data.json"), description="로컬 스냅샷 파일 경로"
    )
    snapshot_s3_key: str = Field(default="data.json", description="S3 스냅샷 키")

    # HTTP 호출 설정
    request_timeout_seconds: PositiveFloat = Field(
        default=10.0, description="Roblox API 요청별 타임아웃(초)"
    )
    rate_limit_requests_per_second: PositiveFloat = Field(
        default=10.0, description="Roblox API 초당 요청 수 제한"
    )
    max_concurrency: PositiveInt = Field(
        default=8, description="동시에 진행할 수 있는 최대 요청 수"
    )
    lookup_max_attempts: PositiveInt = Field(
        default=3, description="universe ID 조회 재시도 포함 최대 시도 횟수"
    )
    fetch_chunk_size: PositiveInt | None = Field(
        default=None,
        description="통계/썸네일 배치 요청당 최대 universe ID 수 (None이면 단일 요청)",
    )

    # 대시보드 설정
    placeholder_image_url: str = Field(
        default="https://via.placeholder.com/420x236?text=No+Image",
        description="썸네일이 없을 때 사용할 이미지 URL",
    )

    # AWS 설정 (snapshot_backend == "s3"일 때 사용)
    aws_default_region: str = Field(
        default="ap-northeast-2", description="AWS Default Region"
    )
    aws_access_key_id: str | None = Field(default=None, description="AWS Access Key ID")
    aws_secret_access_key: str | None = Field(
        default=None, description="AWS Secret Access Key"
    )
    s3_bucket_name: str | None = Field(
        default=None, description="S3 Bucket Name for the snapshot"
    )
    cloudfront_distribution_id: str | None = Field(
        default=None, description="CloudFront Distribution ID"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )


# 전역 settings 인스턴스 (import해서 사용)
settings = Settings()
