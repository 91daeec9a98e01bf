# -*- coding: utf-8 -*-
"""
벡터 저장소(Vector Store) 컴포넌트의 기본 인터페이스와 스키마 기술자를 정의하는 모듈입니다.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from langchain_core.documents import Document

from .indexes import DEFAULT_DISTANCE_STRATEGY, DistanceStrategy


@dataclass(frozen=True)
class VectorStoreSchema:
    """
    벡터 테이블의 이름과 각 컬럼의 역할을 기술하는 불변 객체입니다.

    `PgVectorStore.create()`가 실제 테이블과 대조하여 검증한 뒤에 만들어지므로,
    이 객체에 담긴 컬럼은 모두 테이블에 존재합니다.

    Attributes:
        schema_name: 테이블이 속한 스키마.
        table_name: 테이블 이름.
        id_column: 기본 키 컬럼.
        content_column: 문서 본문(TEXT) 컬럼.
        embedding_column: 고정 차원 벡터 컬럼.
        metadata_columns: 타입이 지정된 메타데이터 컬럼들 (테이블 선언 순서).
        metadata_json_column: 나머지 메타데이터를 담는 JSON 컬럼. None이면 사용하지 않습니다.
        distance_strategy: 검색 정렬에 사용할 거리 전략.
    """

    schema_name: str
    table_name: str
    id_column: str = "langchain_id"
    content_column: str = "content"
    embedding_column: str = "embedding"
    metadata_columns: Tuple[str, ...] = ()
    metadata_json_column: Optional[str] = "langchain_metadata"
    distance_strategy: DistanceStrategy = DEFAULT_DISTANCE_STRATEGY


class BaseVectorStore(ABC):
    """
    벡터 저장소의 기본 인터페이스를 정의하는 추상 기본 클래스입니다.

    어떤 벡터 데이터베이스를 사용하든 동일한 방식으로 문서를 저장, 검색, 삭제할 수 있도록
    모든 구현체가 따라야 할 공통 비동기 메서드를 강제합니다.
    """

    @property
    @abstractmethod
    def provider(self) -> str:
        """벡터 저장소 제공자 이름 (예: "pg_vector")."""
        pass

    @abstractmethod
    async def add_documents(
        self, documents: Sequence[Document], ids: Optional[Sequence[str]] = None
    ) -> List[str]:
        """
        문서를 임베딩하여 저장하고, 저장에 사용된 ID를 입력 순서대로 반환합니다.
        """
        pass

    @abstractmethod
    async def similarity_search(
        self, query: str, k: Optional[int] = None, filter: Optional[str] = None
    ) -> List[Document]:
        """
        쿼리와 가장 가까운 문서를 거리 순으로 최대 `k`개 반환합니다.
        """
        pass

    @abstractmethod
    async def delete(self, ids: Optional[Sequence[str]] = None) -> bool:
        """
        주어진 ID의 문서를 삭제합니다. ID가 없으면 아무것도 삭제하지 않습니다.
        """
        pass
