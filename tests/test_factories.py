# tests/test_factories.py
from unittest.mock import MagicMock, patch

import pytest

from cloudsql_vectorstore.components.embeddings.ollama import OllamaEmbedding
from cloudsql_vectorstore.components.embeddings.openai import OpenAIEmbedding
from cloudsql_vectorstore.components.vector_stores.indexes import DistanceStrategy
from cloudsql_vectorstore.components.vector_stores.pg_vector_store import PgVectorStore
from cloudsql_vectorstore.core.config import Settings
from cloudsql_vectorstore.core.engine import PostgresEngine
from cloudsql_vectorstore.core.factories import (
    create_embedding_model,
    create_engine,
    create_vector_store,
)


# --- Mocking 외부 의존성 ---
# 테스트 실행 시 실제 네트워크 요청이 발생하지 않도록 외부 라이브러리의 생성자를 Mocking합니다.

@pytest.fixture(autouse=True)
def mock_external_libs():
    with patch("cloudsql_vectorstore.components.embeddings.ollama.LangchainOllamaEmbeddings", MagicMock()) as mock_ollama, \
         patch("cloudsql_vectorstore.components.embeddings.openai.LangchainOpenAIEmbeddings", MagicMock()) as mock_openai, \
         patch("cloudsql_vectorstore.core.engine.create_async_engine", MagicMock()) as mock_engine:
        yield {"ollama": mock_ollama, "openai": mock_openai, "engine": mock_engine}


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setattr("cloudsql_vectorstore.core.config.yaml_config_settings_source", lambda: {})
    return Settings(
        OLLAMA_BASE_URL="http://ollama:11434",
        OPENAI_API_KEY="sk-test",
        database={"host": "db", "user": "u", "password": "p", "database": "vectors"},
        vector_store={"table_name": "docs", "vector_size": 8, "distance_strategy": "inner_product"},
    )


def test_create_ollama_embedding(settings, mock_external_libs):
    model = create_embedding_model(settings)

    assert isinstance(model, OllamaEmbedding)
    assert model.provider == "ollama"
    mock_external_libs["ollama"].assert_called_once_with(
        model="nomic-embed-text", base_url="http://ollama:11434"
    )


def test_create_ollama_embedding_prefers_api_base(settings, mock_external_libs):
    settings.embedding.api_base = "http://custom:11434"
    create_embedding_model(settings)

    assert mock_external_libs["ollama"].call_args.kwargs["base_url"] == "http://custom:11434"


def test_create_openai_embedding(settings, mock_external_libs):
    settings.embedding.provider = "openai"
    settings.embedding.model_name = "text-embedding-3-small"

    model = create_embedding_model(settings)

    assert isinstance(model, OpenAIEmbedding)
    mock_external_libs["openai"].assert_called_once_with(
        model="text-embedding-3-small", api_key="sk-test", base_url=None, dimensions=8
    )


def test_create_embedding_unsupported_provider(settings):
    settings.embedding.provider = "unknown"
    with pytest.raises(ValueError):
        create_embedding_model(settings)


def test_create_engine_uses_pool_settings(settings, mock_external_libs):
    engine = create_engine(settings)

    assert isinstance(engine, PostgresEngine)
    args, kwargs = mock_external_libs["engine"].call_args
    assert args[0] == "postgresql+asyncpg://u:p@db:5432/vectors"
    assert kwargs["pool_size"] == 5
    assert kwargs["connect_args"] == {"command_timeout": 60.0}


@pytest.mark.anyio
async def test_create_vector_store(settings, fake_embedding, make_engine):
    engine = make_engine(columns=["langchain_id", "content", "embedding", "langchain_metadata"])

    store = await create_vector_store(settings, engine, fake_embedding)

    assert isinstance(store, PgVectorStore)
    assert store.schema.table_name == "docs"
    assert store.schema.distance_strategy == DistanceStrategy.INNER_PRODUCT
    assert store.schema.metadata_columns == ()
