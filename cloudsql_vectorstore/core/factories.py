"""
커넥터의 핵심 컴포넌트(데이터베이스 엔진, 임베딩 모델, 벡터 저장소)를 생성하는 팩토리 모듈.

이 모듈의 함수들은 설정(settings) 객체를 입력으로 받아, 해당 설정에 맞는
구체적인 컴포넌트의 인스턴스를 동적으로 생성하고 반환합니다.
"""
from ..components.embeddings.base import BaseEmbeddingModel
from ..components.vector_stores.indexes import DistanceStrategy
from ..components.vector_stores.pg_vector_store import PgVectorStore
from .config import Settings
from .engine import PostgresEngine


def create_embedding_model(settings: Settings) -> BaseEmbeddingModel:
    """설정에 따라 임베딩 모델 인스턴스를 생성합니다."""
    emb_conf = settings.embedding
    if emb_conf.provider == "ollama":
        from ..components.embeddings.ollama import OllamaEmbedding

        base_url = emb_conf.api_base or settings.OLLAMA_BASE_URL
        return OllamaEmbedding(model_name=emb_conf.model_name, base_url=base_url)
    elif emb_conf.provider == "openai":
        from ..components.embeddings.openai import OpenAIEmbedding

        return OpenAIEmbedding(
            model_name=emb_conf.model_name,
            api_key=settings.OPENAI_API_KEY,
            base_url=emb_conf.api_base,
            dimensions=settings.vector_store.vector_size,
        )
    raise ValueError(f"Unsupported embedding provider: {emb_conf.provider}")


def create_engine(settings: Settings) -> PostgresEngine:
    """설정의 접속 정보와 풀 설정으로 `PostgresEngine`을 생성합니다."""
    return PostgresEngine.from_settings(settings)


async def create_vector_store(
    settings: Settings, engine: PostgresEngine, embedding_model: BaseEmbeddingModel
) -> PgVectorStore:
    """
    설정에 정의된 테이블로 `PgVectorStore`를 생성합니다.
    테이블은 미리 존재해야 하며, 생성 시점에 컬럼 구성이 검증됩니다.
    """
    vs_conf = settings.vector_store
    return await PgVectorStore.create(
        engine=engine,
        embedding_model=embedding_model,
        table_name=vs_conf.table_name,
        schema_name=vs_conf.schema_name,
        content_column=vs_conf.content_column,
        embedding_column=vs_conf.embedding_column,
        id_column=vs_conf.id_column,
        metadata_json_column=vs_conf.metadata_json_column,
        distance_strategy=DistanceStrategy(vs_conf.distance_strategy),
        k=vs_conf.k,
        fetch_k=vs_conf.fetch_k,
        lambda_mult=vs_conf.lambda_mult,
    )
