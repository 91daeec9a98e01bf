import hashlib
from typing import Any, Dict, List, Optional

import numpy as np
import pytest

from cloudsql_vectorstore.components.embeddings.base import BaseEmbeddingModel

VECTOR_SIZE = 8
DEFAULT_COLUMNS = ["langchain_id", "content", "embedding", "page", "source", "langchain_metadata"]


class FakeEmbedding(BaseEmbeddingModel):
    """텍스트의 해시로 시드를 정해 항상 같은 벡터를 돌려주는 결정적 임베딩 모델."""

    def __init__(self, size: int = VECTOR_SIZE):
        self.size = size
        self.document_calls: List[List[str]] = []

    @property
    def provider(self) -> str:
        return "fake"

    def _vector(self, text: str) -> List[float]:
        seed = int(hashlib.sha256(text.encode("utf-8")).hexdigest(), 16) % (2**32)
        return np.random.default_rng(seed).normal(size=self.size).tolist()

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> List[float]:
        return self._vector(text)


class FakeEngine:
    """
    `PostgresEngine.execute` 호출을 기록하는 스파이.

    `responses`에 (SQL 부분 문자열, 반환 값) 쌍을 등록하면, 처음 일치하는 항목의 값을 반환합니다.
    일치하는 항목이 없으면 SELECT 구문은 빈 리스트, 그 밖의 구문은 0을 반환합니다.
    """

    def __init__(self, columns: Optional[List[str]] = None):
        self.calls: List[Dict[str, Any]] = []
        self.responses: List[tuple] = []
        if columns is not None:
            self.respond(
                "information_schema.columns",
                [{"column_name": c, "data_type": "text"} for c in columns],
            )

    def respond(self, fragment: str, value: Any) -> None:
        self.responses.insert(0, (fragment, value))

    def statements(self) -> List[str]:
        return [call["sql"] for call in self.calls]

    def _reply(self, sql: str):
        for fragment, value in self.responses:
            if fragment in sql:
                return value
        return [] if sql.lstrip().upper().startswith("SELECT") else 0

    async def execute(self, statement, params=None, *, prelude=()):
        sql = str(statement)
        self.calls.append(
            {
                "sql": sql,
                "params": params,
                "prelude": [str(p) for p in prelude],
                "autocommit": False,
            }
        )
        return self._reply(sql)

    async def execute_autocommit(self, statement):
        sql = str(statement)
        self.calls.append({"sql": sql, "params": None, "prelude": [], "autocommit": True})


@pytest.fixture
def fake_embedding():
    return FakeEmbedding()


@pytest.fixture
def fake_engine():
    return FakeEngine(columns=list(DEFAULT_COLUMNS))


@pytest.fixture
def make_engine():
    """컬럼 구성을 바꿔 가며 FakeEngine을 만들 때 사용합니다."""
    return FakeEngine
