# -*- coding: utf-8 -*-
"""
pgvector ANN(근사 최근접 이웃) 인덱스와 거리 전략을 정의하는 모듈입니다.

- `DistanceStrategy`: 검색 정렬 연산자와 인덱스 연산자 클래스(operator class)를 함께 결정합니다.
- `HNSWIndex`, `IVFFlatIndex`: pgvector가 제공하는 두 가지 인덱스 알고리즘의 설정 값 객체입니다.
- `ExactNearestNeighbor`: 인덱스를 사용하지 않는 정확한 검색. 적용하면 기존 기본 인덱스를 삭제합니다.
- `HNSWQueryOptions`, `IVFFlatQueryOptions`: 검색 시점에 `SET LOCAL`로 적용하는 인덱스 튜닝 값.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.sql.elements import TextClause

from ...core import statements

DEFAULT_INDEX_NAME_SUFFIX = "langchainvectorindex"


class DistanceStrategy(str, enum.Enum):
    """벡터 거리 함수. 검색 정렬과 인덱스 연산자 클래스 선택에 모두 사용됩니다."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    INNER_PRODUCT = "inner_product"

    @property
    def operator(self) -> str:
        """
        거리 연산자.
        - cosine `<=>`: 0(같은 방향) ~ 2(반대 방향)
        - euclidean `<->`: 0(동일), 클수록 멂
        - inner product `<#>`: 음의 내적, 작을수록(더 음수일수록) 유사
        """
        return _OPERATORS[self]

    @property
    def index_function(self) -> str:
        return _INDEX_FUNCTIONS[self]


_OPERATORS = {
    DistanceStrategy.COSINE: "<=>",
    DistanceStrategy.EUCLIDEAN: "<->",
    DistanceStrategy.INNER_PRODUCT: "<#>",
}

_INDEX_FUNCTIONS = {
    DistanceStrategy.COSINE: "vector_cosine_ops",
    DistanceStrategy.EUCLIDEAN: "vector_l2_ops",
    DistanceStrategy.INNER_PRODUCT: "vector_ip_ops",
}

DEFAULT_DISTANCE_STRATEGY = DistanceStrategy.COSINE


@dataclass
class BaseIndex(ABC):
    """
    ANN 인덱스 설정의 공통 부모 클래스.

    Attributes:
        name: 인덱스 이름. 지정하지 않으면 `<테이블 이름>langchainvectorindex`를 사용합니다.
        index_type: `CREATE INDEX ... USING <index_type>`에 들어갈 접근 방식.
        distance_strategy: 인덱스 연산자 클래스를 결정하는 거리 전략.
        partial_indexes: 부분 인덱스 조건식. 검증 없이 `WHERE (...)`에 그대로 삽입됩니다.
        column: 인덱스를 만들 벡터 컬럼. 지정하지 않으면 저장소의 임베딩 컬럼을 사용합니다.
    """

    name: Optional[str] = None
    index_type: str = "base"
    distance_strategy: DistanceStrategy = DEFAULT_DISTANCE_STRATEGY
    partial_indexes: Optional[str] = None
    column: Optional[str] = None

    @abstractmethod
    def index_options(self) -> str:
        """`WITH (...)` 절에 들어갈 알고리즘별 튜닝 파라미터를 반환합니다."""

    def create_statement(
        self,
        schema_name: str,
        table_name: str,
        column: str,
        index_name: str,
        concurrently: bool = False,
    ) -> TextClause:
        """이 인덱스 설정을 `CREATE INDEX` 구문으로 변환합니다."""
        return statements.build_create_index(
            schema_name=schema_name,
            table_name=table_name,
            index_name=index_name,
            column=column,
            index_type=self.index_type,
            operator_class=DistanceStrategy(self.distance_strategy).index_function,
            options=self.index_options(),
            partial_indexes=self.partial_indexes,
            concurrently=concurrently,
        )


@dataclass
class ExactNearestNeighbor(BaseIndex):
    index_type: str = "exactnearestneighbor"

    def index_options(self) -> str:
        return ""


@dataclass
class HNSWIndex(BaseIndex):
    """그래프 기반 HNSW 인덱스. `m`은 노드당 최대 연결 수, `ef_construction`은 구축 시 후보 폭."""

    index_type: str = "hnsw"
    m: int = 16
    ef_construction: int = 64

    def index_options(self) -> str:
        return f"(m = {int(self.m)}, ef_construction = {int(self.ef_construction)})"


@dataclass
class IVFFlatIndex(BaseIndex):
    """클러스터 기반 IVFFlat 인덱스. `lists`는 클러스터 개수."""

    index_type: str = "ivfflat"
    lists: int = 100

    def index_options(self) -> str:
        return f"(lists = {int(self.lists)})"


@dataclass
class QueryOptions(ABC):
    @abstractmethod
    def to_string(self) -> str:
        """`SET LOCAL` 뒤에 올 `설정 = 값` 문자열을 반환합니다."""

    def to_statement(self) -> str:
        return f"SET LOCAL {self.to_string()}"


@dataclass
class HNSWQueryOptions(QueryOptions):
    ef_search: int = 40

    def to_string(self) -> str:
        return f"hnsw.ef_search = {int(self.ef_search)}"


@dataclass
class IVFFlatQueryOptions(QueryOptions):
    probes: int = 1

    def to_string(self) -> str:
        return f"ivfflat.probes = {int(self.probes)}"
