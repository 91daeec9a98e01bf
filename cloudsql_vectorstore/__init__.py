"""
PostgreSQL(pgvector) 기반 LangChain 호환 벡터 저장소 커넥터 패키지입니다.

이 패키지는 다음과 같은 하위 패키지로 구성됩니다:
- `core`: 설정, 로깅, 예외, SQL 구문 조립, 데이터베이스 엔진, 컴포넌트 팩토리.
- `components`: 임베딩 모델 어댑터와 벡터 저장소 구현체, 인덱스 설정.

일반적인 사용 순서는 `PostgresEngine` 생성 -> (필요 시) `init_vectorstore_table` ->
`PgVectorStore.create` 입니다.
"""

from .components.vector_stores.indexes import (
    DistanceStrategy,
    ExactNearestNeighbor,
    HNSWIndex,
    HNSWQueryOptions,
    IVFFlatIndex,
    IVFFlatQueryOptions,
)
from .components.vector_stores.pg_vector_store import PgVectorStore
from .core.config import Settings, get_settings
from .core.engine import Column, PostgresEngine
from .core.exceptions import (
    ConfigurationError,
    ConflictError,
    TransientError,
    ValidationError,
    VectorStoreError,
)

__all__ = [
    "Column",
    "ConfigurationError",
    "ConflictError",
    "DistanceStrategy",
    "ExactNearestNeighbor",
    "HNSWIndex",
    "HNSWQueryOptions",
    "IVFFlatIndex",
    "IVFFlatQueryOptions",
    "PgVectorStore",
    "PostgresEngine",
    "Settings",
    "TransientError",
    "ValidationError",
    "VectorStoreError",
    "get_settings",
]
