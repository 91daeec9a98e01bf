# -*- coding: utf-8 -*-
"""
PostgreSQL과 `pgvector` 확장을 사용하는 벡터 저장소의 구체적인 구현체입니다.
"""

import json
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from langchain_core.documents import Document
from pgvector import Vector

from ...core import statements
from ...core.engine import PostgresEngine
from ...core.exceptions import ConfigurationError, ConflictError, ValidationError
from ...core.logger import get_logger
from ..embeddings.base import BaseEmbeddingModel
from .base import BaseVectorStore, VectorStoreSchema
from .indexes import (
    DEFAULT_DISTANCE_STRATEGY,
    DEFAULT_INDEX_NAME_SUFFIX,
    BaseIndex,
    DistanceStrategy,
    ExactNearestNeighbor,
    QueryOptions,
)
from .utils import maximal_marginal_relevance

logger = get_logger(__name__)

DEFAULT_METADATA_JSON_COLUMN = "langchain_metadata"


def _to_vector_text(embedding: Iterable[float]) -> str:
    """임베딩을 pgvector 텍스트 표현(`[1.0,2.0,...]`)으로 변환합니다."""
    return Vector(list(embedding)).to_text()


def _from_vector_value(value: Any) -> List[float]:
    # 코덱이 등록되지 않은 asyncpg 연결에서는 vector 컬럼이 문자열로 반환됩니다.
    if isinstance(value, str):
        return Vector.from_text(value).to_list()
    return [float(v) for v in value]


class PgVectorStore(BaseVectorStore):
    """
    PostgreSQL + pgvector 기반 벡터 저장소입니다.

    인스턴스는 `create()` (또는 `from_texts()`, `from_documents()`) 팩토리를 통해서만 만들어야 합니다.
    팩토리는 생성 시점에 한 번 실제 테이블의 컬럼을 조회하여 스키마를 검증하며,
    이후의 모든 호출은 검증된 불변 스키마(`VectorStoreSchema`)만 사용합니다.
    인스턴스는 호출 간에 상태를 갖지 않으므로 여러 호출자가 동시에 사용해도 안전합니다.
    """

    def __init__(
        self,
        engine: PostgresEngine,
        embedding_model: BaseEmbeddingModel,
        schema: VectorStoreSchema,
        k: int = 4,
        fetch_k: int = 20,
        lambda_mult: float = 0.5,
        index_query_options: Optional[QueryOptions] = None,
    ):
        self._provider = "pg_vector"
        self.engine = engine
        self.embedding_model = embedding_model
        self.schema = schema
        self.k = k
        self.fetch_k = fetch_k
        self.lambda_mult = lambda_mult
        self.index_query_options = index_query_options

    @property
    def provider(self) -> str:
        return self._provider

    # ==========================================================================
    # 생성 및 스키마 검증
    # ==========================================================================

    @classmethod
    async def create(
        cls,
        engine: PostgresEngine,
        embedding_model: BaseEmbeddingModel,
        table_name: str,
        schema_name: str = "public",
        content_column: str = "content",
        embedding_column: str = "embedding",
        metadata_columns: Optional[Sequence[str]] = None,
        ignore_metadata_columns: Optional[Sequence[str]] = None,
        id_column: str = "langchain_id",
        metadata_json_column: Optional[str] = None,
        distance_strategy: DistanceStrategy = DEFAULT_DISTANCE_STRATEGY,
        k: int = 4,
        fetch_k: int = 20,
        lambda_mult: float = 0.5,
        index_query_options: Optional[QueryOptions] = None,
    ) -> "PgVectorStore":
        """
        테이블 스키마를 검증하고 `PgVectorStore` 인스턴스를 생성합니다.

        Args:
            engine (PostgresEngine): 쿼리 실행기. 수명 주기는 호출자가 관리합니다.
            embedding_model (BaseEmbeddingModel): 텍스트를 벡터로 변환할 임베딩 모델.
            table_name (str): 벡터 테이블 이름.
            schema_name (str): 테이블이 속한 스키마.
            content_column (str): 문서 본문 컬럼.
            embedding_column (str): 벡터 컬럼.
            metadata_columns (Optional[Sequence[str]]): 메타데이터로 사용할 컬럼 목록.
            ignore_metadata_columns (Optional[Sequence[str]]): 메타데이터에서 제외할 컬럼 목록.
                둘 다 지정하지 않으면 예약 컬럼을 제외한 모든 컬럼이 메타데이터가 됩니다.
            id_column (str): 기본 키 컬럼.
            metadata_json_column (Optional[str]): JSON 메타데이터 컬럼.
                None이면 `langchain_metadata` 컬럼이 있을 때만 사용하고, 빈 문자열이면 사용하지 않습니다.
            distance_strategy (DistanceStrategy): 검색 정렬에 사용할 거리 전략.
            k, fetch_k, lambda_mult: 검색 메서드의 기본값.
            index_query_options (Optional[QueryOptions]): 검색 시 적용할 인덱스 튜닝 값.

        Raises:
            ConfigurationError: 포함/제외 목록을 함께 지정했거나, 지정한 컬럼이 테이블에 없는 경우.
        """
        if metadata_columns is not None and ignore_metadata_columns is not None:
            raise ConfigurationError(
                "Can not use both metadata_columns and ignore_metadata_columns."
            )

        logger.info(f"PgVectorStore 초기화를 시작합니다... (테이블: {schema_name}.{table_name})")
        rows = await engine.execute(
            statements.build_list_columns(),
            {"schema_name": schema_name, "table_name": table_name},
        )
        columns = [row["column_name"] for row in rows]
        if not columns:
            raise ConfigurationError(f"Table {schema_name}.{table_name} does not exist.")

        for label, name in (
            ("Id", id_column),
            ("Content", content_column),
            ("Embedding", embedding_column),
        ):
            if name not in columns:
                raise ConfigurationError(f"{label} column: {name}, does not exist.")

        if metadata_json_column is None:
            json_column = (
                DEFAULT_METADATA_JSON_COLUMN if DEFAULT_METADATA_JSON_COLUMN in columns else None
            )
        elif metadata_json_column == "":
            json_column = None
        elif metadata_json_column in columns:
            json_column = metadata_json_column
        else:
            raise ConfigurationError(
                f"Metadata JSON column: {metadata_json_column}, does not exist."
            )

        reserved = {id_column, content_column, embedding_column, json_column}
        if metadata_columns is not None:
            for name in metadata_columns:
                if name not in columns:
                    raise ConfigurationError(f"Metadata column: {name}, does not exist.")
            effective_metadata = tuple(metadata_columns)
        else:
            ignored = set(ignore_metadata_columns or ())
            effective_metadata = tuple(
                name for name in columns if name not in reserved and name not in ignored
            )

        schema = VectorStoreSchema(
            schema_name=schema_name,
            table_name=table_name,
            id_column=id_column,
            content_column=content_column,
            embedding_column=embedding_column,
            metadata_columns=effective_metadata,
            metadata_json_column=json_column,
            distance_strategy=DistanceStrategy(distance_strategy),
        )
        logger.info(
            f"PgVectorStore 초기화 완료. 메타데이터 컬럼: {list(effective_metadata)}, "
            f"JSON 컬럼: {json_column}"
        )
        return cls(
            engine,
            embedding_model,
            schema,
            k=k,
            fetch_k=fetch_k,
            lambda_mult=lambda_mult,
            index_query_options=index_query_options,
        )

    @classmethod
    async def from_texts(
        cls,
        texts: Sequence[str],
        embedding_model: BaseEmbeddingModel,
        engine: PostgresEngine,
        table_name: str,
        metadatas: Optional[Sequence[Dict[str, Any]]] = None,
        ids: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> "PgVectorStore":
        """저장소를 생성하고 주어진 텍스트를 곧바로 저장합니다."""
        store = await cls.create(engine, embedding_model, table_name, **kwargs)
        await store.add_texts(texts, metadatas=metadatas, ids=ids)
        return store

    @classmethod
    async def from_documents(
        cls,
        documents: Sequence[Document],
        embedding_model: BaseEmbeddingModel,
        engine: PostgresEngine,
        table_name: str,
        ids: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> "PgVectorStore":
        """저장소를 생성하고 주어진 문서를 곧바로 저장합니다."""
        store = await cls.create(engine, embedding_model, table_name, **kwargs)
        await store.add_documents(documents, ids=ids)
        return store

    # ==========================================================================
    # 저장 / 삭제
    # ==========================================================================

    def _row_params(self, row_id: str, document: Document, vector: Sequence[float]) -> Dict[str, Any]:
        metadata = dict(document.metadata or {})
        params: Dict[str, Any] = {
            "id": row_id,
            "content": document.page_content,
            "embedding": _to_vector_text(vector),
        }
        for position, column in enumerate(self.schema.metadata_columns):
            params[statements.metadata_param_name(position)] = metadata.pop(column, None)
        # 타입 컬럼에 매핑되지 않은 키는 JSON 컬럼으로 가고, JSON 컬럼이 없으면 버려집니다.
        if self.schema.metadata_json_column:
            params["metadata_json"] = json.dumps(metadata, default=str)
        return params

    async def add_vectors(
        self,
        vectors: Sequence[Sequence[float]],
        documents: Sequence[Document],
        ids: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """
        미리 계산된 벡터와 문서를 하나의 배치 INSERT로 저장합니다.

        배치는 하나의 트랜잭션에서 실행되므로 모든 행이 저장되거나 하나도 저장되지 않습니다.

        Returns:
            List[str]: 저장에 사용된 ID 목록 (입력 순서).

        Raises:
            ValidationError: 벡터/문서 수 또는 ID/문서 수가 일치하지 않는 경우.
        """
        if len(vectors) != len(documents):
            raise ValidationError(
                "The number of vectors must match the number of documents provided."
            )
        if ids is not None and len(ids) != len(documents):
            raise ValidationError(
                "The number of ids must match the number of documents provided."
            )
        if not documents:
            return []

        row_ids = [str(uuid.uuid4()) for _ in documents] if ids is None else list(ids)
        rows = [
            self._row_params(row_id, document, vector)
            for row_id, document, vector in zip(row_ids, documents, vectors)
        ]

        insert = statements.build_insert(
            schema_name=self.schema.schema_name,
            table_name=self.schema.table_name,
            id_column=self.schema.id_column,
            content_column=self.schema.content_column,
            embedding_column=self.schema.embedding_column,
            metadata_columns=self.schema.metadata_columns,
            metadata_json_column=self.schema.metadata_json_column,
        )
        await self.engine.execute(insert, rows)
        logger.info(f"{len(rows)}개 문서를 '{self.schema.table_name}' 테이블에 저장했습니다.")
        return row_ids

    async def add_documents(
        self, documents: Sequence[Document], ids: Optional[Sequence[str]] = None
    ) -> List[str]:
        if ids is not None and len(ids) != len(documents):
            raise ValidationError(
                "The number of ids must match the number of documents provided."
            )
        if not documents:
            return []
        texts = [document.page_content for document in documents]
        vectors = await self.embedding_model.aembed_documents(texts)
        return await self.add_vectors(vectors, documents, ids=ids)

    async def add_texts(
        self,
        texts: Sequence[str],
        metadatas: Optional[Sequence[Dict[str, Any]]] = None,
        ids: Optional[Sequence[str]] = None,
    ) -> List[str]:
        if metadatas is not None and len(metadatas) != len(texts):
            raise ValidationError(
                "The number of metadatas must match the number of texts provided."
            )
        metadatas = metadatas or [{} for _ in texts]
        documents = [
            Document(page_content=text, metadata=dict(metadata))
            for text, metadata in zip(texts, metadatas)
        ]
        return await self.add_documents(documents, ids=ids)

    async def delete(self, ids: Optional[Sequence[str]] = None) -> bool:
        """
        주어진 ID의 행을 삭제합니다.

        ID가 없거나 비어 있으면 아무 구문도 실행하지 않고 False를 반환합니다 (테이블 전체 삭제는 하지 않습니다).
        존재하지 않는 ID가 섞여 있어도 오류가 아닙니다.
        """
        if not ids:
            logger.debug("삭제할 ID가 없어 delete 요청을 무시합니다.")
            return False

        stmt = statements.build_delete(
            self.schema.schema_name, self.schema.table_name, self.schema.id_column
        )
        deleted = await self.engine.execute(stmt, {"ids": list(ids)})
        logger.info(f"'{self.schema.table_name}' 테이블에서 {deleted}개 행을 삭제했습니다.")
        return True

    # ==========================================================================
    # 검색
    # ==========================================================================

    def _row_to_document(self, row: Dict[str, Any]) -> Document:
        metadata: Dict[str, Any] = {}
        json_column = self.schema.metadata_json_column
        if json_column and row.get(json_column):
            raw = row[json_column]
            metadata.update(json.loads(raw) if isinstance(raw, str) else raw)
        for column in self.schema.metadata_columns:
            metadata[column] = row.get(column)

        row_id = row.get(self.schema.id_column)
        return Document(
            id=str(row_id) if row_id is not None else None,
            page_content=row[self.schema.content_column],
            metadata=metadata,
        )

    async def _query_collection(
        self, embedding: Sequence[float], k: int, filter: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        쿼리 벡터와 가까운 순서로 최대 `k`개 행을 조회합니다.

        `filter`는 검증 없이 `WHERE` 절에 그대로 삽입됩니다.
        """
        if k < 1:
            raise ValidationError(f"k must be a positive integer, got {k}.")

        stmt = statements.build_search(
            schema_name=self.schema.schema_name,
            table_name=self.schema.table_name,
            id_column=self.schema.id_column,
            content_column=self.schema.content_column,
            embedding_column=self.schema.embedding_column,
            metadata_columns=self.schema.metadata_columns,
            metadata_json_column=self.schema.metadata_json_column,
            operator=self.schema.distance_strategy.operator,
            filter=filter,
        )
        params = {statements.QUERY_EMBEDDING_PARAM: _to_vector_text(embedding), "k": k}
        prelude = [self.index_query_options.to_statement()] if self.index_query_options else []

        logger.debug(f"벡터 검색 시작. k={k}, 필터: {filter}")
        rows = await self.engine.execute(stmt, params, prelude=prelude)
        logger.debug(f"벡터 검색 완료. {len(rows)}개의 결과를 찾았습니다.")
        return rows

    async def similarity_search_vector_with_score(
        self,
        embedding: Sequence[float],
        k: Optional[int] = None,
        filter: Optional[str] = None,
    ) -> List[Tuple[Document, float]]:
        """
        쿼리 벡터로 직접 검색하여 (문서, 거리) 쌍을 가까운 순서로 반환합니다.

        거리의 의미는 거리 전략에 따라 다릅니다. 코사인은 0(같은 방향)~2(반대 방향),
        유클리드는 0(동일)부터 커질수록 멀고, 내적은 음의 내적이므로 작을수록 유사합니다.
        """
        rows = await self._query_collection(
            embedding, self.k if k is None else k, filter
        )
        return [(self._row_to_document(row), float(row["distance"])) for row in rows]

    async def similarity_search_by_vector(
        self,
        embedding: Sequence[float],
        k: Optional[int] = None,
        filter: Optional[str] = None,
    ) -> List[Document]:
        results = await self.similarity_search_vector_with_score(embedding, k, filter)
        return [document for document, _ in results]

    async def similarity_search_with_score(
        self, query: str, k: Optional[int] = None, filter: Optional[str] = None
    ) -> List[Tuple[Document, float]]:
        embedding = await self.embedding_model.aembed_query(query)
        return await self.similarity_search_vector_with_score(embedding, k, filter)

    async def similarity_search(
        self, query: str, k: Optional[int] = None, filter: Optional[str] = None
    ) -> List[Document]:
        embedding = await self.embedding_model.aembed_query(query)
        return await self.similarity_search_by_vector(embedding, k, filter)

    async def max_marginal_relevance_search_with_score_by_vector(
        self,
        embedding: Sequence[float],
        k: Optional[int] = None,
        fetch_k: Optional[int] = None,
        lambda_mult: Optional[float] = None,
        filter: Optional[str] = None,
    ) -> List[Tuple[Document, float]]:
        """
        `fetch_k`개의 후보를 거리 순으로 가져온 뒤, MMR로 재순위화하여 최대 `k`개를 반환합니다.

        Args:
            embedding: 쿼리 벡터.
            k: 반환할 문서 수.
            fetch_k: 재순위화 전에 가져올 후보 수. `k` 이상이어야 합니다.
            lambda_mult: 0(다양성 최대) ~ 1(관련성만) 사이의 균형 값.
            filter: `WHERE` 절에 그대로 들어갈 조건식.

        Returns:
            선택된 순서대로의 (문서, 거리) 쌍 리스트.
        """
        k = self.k if k is None else k
        fetch_k = self.fetch_k if fetch_k is None else fetch_k
        if k < 1:
            raise ValidationError(f"k must be a positive integer, got {k}.")
        lambda_mult = self.lambda_mult if lambda_mult is None else lambda_mult
        if fetch_k < k:
            raise ValidationError(f"fetch_k ({fetch_k}) must be greater than or equal to k ({k}).")
        if not 0.0 <= lambda_mult <= 1.0:
            raise ValidationError(f"lambda_mult must be between 0 and 1, got {lambda_mult}.")

        rows = await self._query_collection(embedding, fetch_k, filter)
        candidates = [_from_vector_value(row[self.schema.embedding_column]) for row in rows]
        selected = maximal_marginal_relevance(
            embedding, candidates, lambda_mult=lambda_mult, k=k
        )
        logger.debug(f"MMR 재순위화 완료. 후보 {len(rows)}개 중 {len(selected)}개 선택.")
        return [
            (self._row_to_document(rows[i]), float(rows[i]["distance"])) for i in selected
        ]

    async def max_marginal_relevance_search_by_vector(
        self,
        embedding: Sequence[float],
        k: Optional[int] = None,
        fetch_k: Optional[int] = None,
        lambda_mult: Optional[float] = None,
        filter: Optional[str] = None,
    ) -> List[Document]:
        results = await self.max_marginal_relevance_search_with_score_by_vector(
            embedding, k=k, fetch_k=fetch_k, lambda_mult=lambda_mult, filter=filter
        )
        return [document for document, _ in results]

    async def max_marginal_relevance_search(
        self,
        query: str,
        k: Optional[int] = None,
        fetch_k: Optional[int] = None,
        lambda_mult: Optional[float] = None,
        filter: Optional[str] = None,
    ) -> List[Document]:
        embedding = await self.embedding_model.aembed_query(query)
        return await self.max_marginal_relevance_search_by_vector(
            embedding, k=k, fetch_k=fetch_k, lambda_mult=lambda_mult, filter=filter
        )

    # ==========================================================================
    # 인덱스 관리
    # ==========================================================================

    @property
    def default_index_name(self) -> str:
        return statements.truncate_identifier(self.schema.table_name + DEFAULT_INDEX_NAME_SUFFIX)

    def _resolve_index_name(self, index_name: Optional[str] = None) -> str:
        # PostgreSQL은 63바이트를 넘는 이름을 잘라서 저장하므로, 조회할 때도 같은 이름을 사용해야 합니다.
        return statements.truncate_identifier(index_name or self.default_index_name)

    async def apply_vector_index(
        self,
        index: BaseIndex,
        name: Optional[str] = None,
        concurrently: bool = False,
        replace_existing: bool = False,
    ) -> None:
        """
        임베딩 컬럼(또는 `index.column`)에 ANN 인덱스를 생성합니다.

        `ExactNearestNeighbor`를 넘기면 기본 인덱스를 삭제하여 정확한 검색으로 되돌립니다.

        Args:
            index: 생성할 인덱스 설정.
            name: 인덱스 이름. 없으면 `index.name`, 그마저 없으면 기본 이름을 사용합니다.
                  63바이트를 넘는 이름은 PostgreSQL과 같은 방식으로 잘립니다.
            concurrently: True이면 `CREATE INDEX CONCURRENTLY`로 트랜잭션 밖에서 생성합니다.
            replace_existing: True이면 같은 이름의 인덱스를 삭제하고 다시 만듭니다.

        Raises:
            ConflictError: 같은 이름의 인덱스가 있고 `replace_existing`이 False인 경우.
        """
        if isinstance(index, ExactNearestNeighbor):
            await self.drop_vector_index()
            return

        index_name = self._resolve_index_name(name or index.name)
        if DistanceStrategy(index.distance_strategy) != self.schema.distance_strategy:
            logger.warning(
                f"인덱스 '{index_name}'의 거리 전략({index.distance_strategy.value})이 "
                f"저장소의 거리 전략({self.schema.distance_strategy.value})과 달라 검색에 사용되지 않을 수 있습니다."
            )

        if await self.is_valid_index(index_name):
            if not replace_existing:
                raise ConflictError(
                    f"Index {index_name} already exists. "
                    "Use replace_existing=True to drop and recreate it."
                )
            logger.info(f"기존 인덱스 '{index_name}'를 삭제하고 다시 생성합니다.")
            await self.drop_vector_index(index_name)

        stmt = index.create_statement(
            schema_name=self.schema.schema_name,
            table_name=self.schema.table_name,
            column=index.column or self.schema.embedding_column,
            index_name=index_name,
            concurrently=concurrently,
        )
        if concurrently:
            await self.engine.execute_autocommit(stmt)
        else:
            await self.engine.execute(stmt)
        logger.info(f"'{index.index_type}' 인덱스 '{index_name}'를 생성했습니다.")

    async def is_valid_index(self, index_name: Optional[str] = None) -> bool:
        """테이블에 해당 이름의 인덱스가 있는지 확인합니다. 없으면 False를 반환합니다."""
        rows = await self.engine.execute(
            statements.build_find_index(),
            {
                "schema_name": self.schema.schema_name,
                "table_name": self.schema.table_name,
                "index_name": self._resolve_index_name(index_name),
            },
        )
        return len(rows) > 0

    async def drop_vector_index(self, index_name: Optional[str] = None) -> None:
        """인덱스를 삭제합니다. 인덱스가 없어도 오류가 아닙니다."""
        index_name = self._resolve_index_name(index_name)
        await self.engine.execute(
            statements.build_drop_index(self.schema.schema_name, index_name)
        )
        logger.info(f"인덱스 '{index_name}'를 삭제했습니다.")

    async def reindex(self, index_name: Optional[str] = None) -> None:
        """인덱스를 다시 빌드합니다. 대량 삽입 이후 IVFFlat 클러스터를 갱신할 때 사용합니다."""
        index_name = self._resolve_index_name(index_name)
        await self.engine.execute(
            statements.build_reindex(self.schema.schema_name, index_name)
        )
        logger.info(f"인덱스 '{index_name}'를 다시 빌드했습니다.")
