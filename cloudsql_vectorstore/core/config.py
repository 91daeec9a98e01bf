# -*- coding: utf-8 -*-
"""
커넥터의 모든 설정을 중앙에서 관리하는 모듈입니다.

이 파일의 주요 역할:
1.  **설정 소스 정의**: `config.yml`, 환경 변수, `.env` 파일 등 다양한 소스에서 설정을 읽어옵니다.
2.  **계층적 설정 모델링**: Pydantic 모델을 사용하여 `app`, `database`, `embedding`, `vector_store` 설정을 구조화합니다.
3.  **타입 안정성 보장**: 잘못된 설정 값(예: 지원하지 않는 거리 전략)은 로드 시점에 거부됩니다.
4.  **동적 설정 값 계산**: 개별 접속 정보를 조합하여 asyncpg 드라이버용 데이터베이스 URL을 생성합니다.
5.  **설정 캐싱**: `@lru_cache`를 사용하여 설정 객체를 한 번만 로드하고 재사용합니다.
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional, Tuple, Type

import yaml
from pydantic import BaseModel, Field, computed_field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from sqlalchemy.engine import URL

# get_settings()가 호출되기 전에 로거가 필요할 수 있으므로, 기본 로거를 여기서 설정합니다.
logger = logging.getLogger(__name__)

ASYNC_DRIVER = "postgresql+asyncpg"


@lru_cache
def get_settings() -> "Settings":
    """
    커넥터 전체에서 사용될 설정 객체를 반환합니다.

    최초 호출 시 설정 객체를 생성하고, 이후의 모든 호출에서는 캐시된 동일한 객체를 반환합니다.

    Returns:
        Settings: 모든 설정이 포함된 Pydantic 모델 객체
    """
    logger.info("설정 객체를 초기화합니다...")
    settings = Settings()
    logger.debug(
        f"로드된 데이터베이스 호스트: {settings.database.host}:{settings.database.port}"
    )
    logger.debug(f"로드된 벡터 테이블: {settings.vector_store.table_name}")
    return settings


# --- 1. YAML 로더 함수 ---
def yaml_config_settings_source() -> dict[str, Any]:
    """
    프로젝트 루트의 'config.yml' 파일을 읽어 Pydantic 설정 소스로 사용합니다.

    Returns:
        dict[str, Any]: YAML 파일의 내용. 파일이 없으면 빈 딕셔너리를 반환합니다.
    """
    config_path = Path(__file__).parent.parent.parent / "config.yml"
    logger.debug(f"'config.yml' 파일 경로: {config_path}")
    if not config_path.exists():
        logger.debug("'config.yml' 파일이 없습니다. 기본값과 환경 변수만 사용합니다.")
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_content = yaml.safe_load(f)
            if yaml_content:
                logger.info("'config.yml' 파일에서 설정을 성공적으로 로드했습니다.")
                return yaml_content
            logger.warning("'config.yml' 파일이 비어 있습니다.")
            return {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"'config.yml' 파일 로드 중 오류 발생: {e}", exc_info=True)
        return {}


# --- 2. 계층적 설정을 위한 중첩 Pydantic 모델 ---


class AppSettings(BaseModel):
    """로깅 설정"""

    log_level: str = Field(
        "INFO", description="로그 레벨 (DEBUG, INFO, WARNING, ERROR)"
    )
    log_format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="로그 출력 형식",
    )


class DatabaseSettings(BaseModel):
    """PostgreSQL 접속 및 커넥션 풀 설정"""

    url: Optional[str] = Field(
        None,
        description="전체 접속 URL. 지정하면 host/user 등 개별 항목보다 우선합니다.",
    )
    host: str = Field("localhost", description="PostgreSQL 호스트 주소")
    port: int = Field(5432, description="PostgreSQL 포트 번호")
    database: str = Field("postgres", description="데이터베이스 이름")
    user: Optional[str] = Field(None, description="PostgreSQL 사용자 이름")
    password: Optional[str] = Field(None, description="PostgreSQL 비밀번호")

    pool_size: int = Field(5, description="커넥션 풀의 기본 크기")
    max_overflow: int = Field(10, description="풀 크기를 초과해 열 수 있는 연결 수")
    pool_timeout: float = Field(
        30.0, description="풀에서 연결을 얻기까지 기다리는 최대 시간(초)"
    )
    pool_recycle: int = Field(
        1800, description="연결을 재생성하기 전 최대 수명(초). -1이면 비활성화"
    )
    command_timeout: Optional[float] = Field(
        60.0, description="단일 쿼리 실행 제한 시간(초, asyncpg)"
    )
    echo: bool = Field(False, description="실행되는 모든 SQL을 로깅할지 여부")

    @computed_field(return_type=str)
    @property
    def DATABASE_URL(self) -> str:
        """
        SQLAlchemy 비동기(asyncpg) 드라이버용 데이터베이스 URL을 생성합니다.
        사용자 이름과 비밀번호의 특수 문자(`@`, `:`, `/` 등)는 URL 인코딩됩니다.
        """
        if self.url:
            return self.url
        logger.debug(
            f"비동기 데이터베이스 URL 생성: {ASYNC_DRIVER}://...@{self.host}:***/..."
        )
        return URL.create(
            ASYNC_DRIVER,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        ).render_as_string(hide_password=False)


class EmbeddingSettings(BaseModel):
    """텍스트 임베딩 모델에 대한 설정"""

    provider: Literal["ollama", "openai"] = Field(
        "ollama", description="임베딩 모델 제공자"
    )
    model_name: str = Field(
        "nomic-embed-text", description="사용할 임베딩 모델명"
    )
    api_base: Optional[str] = Field(
        None, description="임베딩 API의 기본 URL (Ollama 등)"
    )


class VectorStoreSettings(BaseModel):
    """벡터 테이블 스키마와 검색 기본값에 대한 설정"""

    table_name: str = Field("vector_store", description="벡터 테이블 이름")
    schema_name: str = Field("public", description="벡터 테이블이 속한 스키마")
    vector_size: int = Field(768, description="임베딩 벡터의 차원 수")
    id_column: str = Field("langchain_id", description="ID 컬럼 이름")
    content_column: str = Field("content", description="본문 컬럼 이름")
    embedding_column: str = Field("embedding", description="벡터 컬럼 이름")
    metadata_json_column: Optional[str] = Field(
        "langchain_metadata",
        description="추가 메타데이터를 JSON으로 저장할 컬럼. 빈 문자열이면 사용하지 않습니다.",
    )
    distance_strategy: Literal["cosine", "euclidean", "inner_product"] = Field(
        "cosine", description="검색과 인덱스에 사용할 거리 함수"
    )
    k: int = Field(4, ge=1, description="검색 결과 기본 개수")
    fetch_k: int = Field(20, ge=1, description="MMR 재순위화 전 후보 개수")
    lambda_mult: float = Field(
        0.5, ge=0.0, le=1.0, description="MMR 관련성/다양성 균형 (1: 관련성만)"
    )


# --- 3. 메인 Settings 클래스 ---


class Settings(BaseSettings):
    """
    모든 설정을 통합 관리하는 Pydantic BaseSettings 클래스입니다.
    초기 인자, 환경 변수, .env 파일, YAML, 기본값 순서로 설정을 계층적으로 로드합니다.
    """

    # --- .env 또는 환경 변수로만 관리되어야 하는 민감 정보 ---
    OPENAI_API_KEY: Optional[str] = Field(None, description="OpenAI API 키")
    OLLAMA_BASE_URL: Optional[str] = Field(None, description="Ollama 서비스의 기본 URL")

    # --- config.yml 또는 기본값으로 관리되는 구조화된 설정 ---
    app: AppSettings = Field(default_factory=AppSettings, description="로깅 설정")
    database: DatabaseSettings = Field(
        default_factory=DatabaseSettings, description="데이터베이스 설정"
    )
    embedding: EmbeddingSettings = Field(
        default_factory=EmbeddingSettings, description="임베딩 모델 설정"
    )
    vector_store: VectorStoreSettings = Field(
        default_factory=VectorStoreSettings, description="벡터 저장소 설정"
    )

    @computed_field(return_type=str)
    @property
    def DATABASE_URL(self) -> str:
        return self.database.DATABASE_URL

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # 예: DATABASE__HOST 환경 변수로 database.host 설정
        extra="ignore",
        case_sensitive=False,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        설정 로드 우선순위를 커스터마이징합니다.
        튜플의 앞 순서가 가장 높은 우선순위를 가집니다.

        **로드 우선순위 (높은 순 -> 낮은 순):**
        1.  `init_settings`: `Settings()` 호출 시 직접 전달된 인자.
        2.  `env_settings`: 시스템 환경 변수.
        3.  `dotenv_settings`: `.env` 파일에 정의된 변수.
        4.  `config.yml` 파일.
        5.  `file_secret_settings`: Docker 시크릿과 같은 파일 기반 시크릿.
        """
        logger.debug("설정 소스 우선순위를 커스터마이징합니다.")
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_config_settings_source,
            file_secret_settings,
        )
