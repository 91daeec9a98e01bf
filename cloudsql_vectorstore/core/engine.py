# -*- coding: utf-8 -*-
"""
데이터베이스 연결 풀과 쿼리 실행을 담당하는 모듈.

SQLAlchemy 비동기 엔진(asyncpg 드라이버)을 감싸는 `PostgresEngine`을 제공합니다.
벡터 저장소는 이 클래스를 통해서만 SQL을 실행하며, 커넥션 풀의 수명 주기(생성/해제)는
엔진을 만든 호출자가 소유합니다.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.sql.elements import TextClause

from . import statements
from .config import ASYNC_DRIVER, Settings, get_settings
from .exceptions import ConfigurationError, TransientError
from .logger import get_logger

logger = get_logger(__name__)

Statement = Union[str, TextClause]
Params = Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None]


@dataclass
class Column:
    """벡터 테이블을 만들 때 추가할 메타데이터 컬럼 정의."""

    name: str
    data_type: str
    nullable: bool = True

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise ConfigurationError("Column name must be type string")
        if not isinstance(self.data_type, str):
            raise ConfigurationError("Column data_type must be type string")


def _as_clause(statement: Statement) -> TextClause:
    return text(statement) if isinstance(statement, str) else statement


class PostgresEngine:
    """
    SQLAlchemy `AsyncEngine`을 감싸는 쿼리 실행기입니다.

    직접 생성하기보다는 `from_engine`, `from_engine_args`, `from_settings` 팩토리 메서드를 사용합니다.
    하나의 인스턴스를 여러 벡터 저장소와 동시 호출자가 공유해도 안전합니다.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._closed = False

    # --------------------------------------------------------------------------
    # 팩토리 메서드
    # --------------------------------------------------------------------------

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "PostgresEngine":
        """이미 생성된 SQLAlchemy 비동기 엔진으로 `PostgresEngine`을 만듭니다."""
        return cls(engine)

    @classmethod
    def from_engine_args(cls, url: Union[str, URL], **kwargs: Any) -> "PostgresEngine":
        """
        접속 URL과 엔진 인자로 `PostgresEngine`을 만듭니다.

        Args:
            url: `postgresql+asyncpg://` 로 시작하는 접속 URL.
            **kwargs: `create_async_engine`에 그대로 전달되는 풀 설정 (pool_size, pool_timeout 등).

        Raises:
            ConfigurationError: 드라이버가 `postgresql+asyncpg`가 아닌 경우.
        """
        try:
            parsed = make_url(url)
        except sa_exc.ArgumentError as e:
            raise ConfigurationError(f"Invalid database URL: {e}") from e
        if parsed.drivername != ASYNC_DRIVER:
            raise ConfigurationError(f"Driver must be type '{ASYNC_DRIVER}'")

        kwargs.setdefault("pool_pre_ping", True)
        engine = create_async_engine(url, **kwargs)
        logger.info("데이터베이스 엔진이 성공적으로 생성되었습니다.")
        return cls(engine)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PostgresEngine":
        """`Settings.database` 설정으로 커넥션 풀을 구성하여 `PostgresEngine`을 만듭니다."""
        settings = settings or get_settings()
        db = settings.database
        logger.info(f"데이터베이스 엔진 설정을 시작합니다... ({db.host}:{db.port}/{db.database})")

        connect_args: Dict[str, Any] = {}
        if db.command_timeout is not None:
            connect_args["command_timeout"] = db.command_timeout

        return cls.from_engine_args(
            db.DATABASE_URL,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
            echo=db.echo,
            connect_args=connect_args,
        )

    # --------------------------------------------------------------------------
    # 쿼리 실행
    # --------------------------------------------------------------------------

    @asynccontextmanager
    async def _connect(self, autocommit: bool = False) -> AsyncIterator[AsyncConnection]:
        """
        트랜잭션(또는 autocommit 연결)을 열고, 연결 계열 오류를 `TransientError`로 변환합니다.
        그 밖의 실행 오류는 그대로 전파됩니다.
        """
        try:
            if autocommit:
                async with self._engine.connect() as conn:
                    conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
                    yield conn
            else:
                async with self._engine.begin() as conn:
                    yield conn
        except sa_exc.DBAPIError as e:
            if isinstance(e, (sa_exc.OperationalError, sa_exc.InterfaceError)) or e.connection_invalidated:
                logger.error(f"데이터베이스 연결 오류: {e}", exc_info=True)
                raise TransientError(str(e)) from e
            raise
        except (sa_exc.TimeoutError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"데이터베이스 연결 또는 쿼리 시간 초과: {e}", exc_info=True)
            raise TransientError(str(e)) from e

    async def execute(
        self,
        statement: Statement,
        params: Params = None,
        *,
        prelude: Sequence[Statement] = (),
    ) -> Union[List[Dict[str, Any]], int]:
        """
        SQL 구문 하나를 트랜잭션 안에서 실행합니다.

        Args:
            statement: 실행할 SQL 문자열 또는 `text()` 구문.
            params: 바인드 파라미터. 딕셔너리의 리스트를 넘기면 하나의 배치로 실행되며,
                    전부 성공하거나 전부 롤백됩니다.
            prelude: 같은 트랜잭션 안에서 먼저 실행할 구문 (예: `SET LOCAL hnsw.ef_search = 40`).

        Returns:
            행을 반환하는 구문이면 컬럼 이름을 키로 하는 딕셔너리의 리스트, 아니면 영향받은 행 수.
        """
        clause = _as_clause(statement)
        if isinstance(params, Sequence) and not params:
            return 0

        async with self._connect() as conn:
            for setup in prelude:
                await conn.execute(_as_clause(setup))
            result = await conn.execute(clause, params)
            if result.returns_rows:
                return [dict(row) for row in result.mappings()]
            return result.rowcount

    async def execute_autocommit(self, statement: Statement) -> None:
        """트랜잭션 밖에서 실행해야 하는 DDL(예: `CREATE INDEX CONCURRENTLY`)을 실행합니다."""
        async with self._connect(autocommit=True) as conn:
            await conn.execute(_as_clause(statement))

    # --------------------------------------------------------------------------
    # 스키마 프로비저닝
    # --------------------------------------------------------------------------

    async def init_vectorstore_table(
        self,
        table_name: str,
        vector_size: int,
        schema_name: str = "public",
        content_column: str = "content",
        embedding_column: str = "embedding",
        metadata_columns: Sequence[Column] = (),
        metadata_json_column: str = "langchain_metadata",
        id_column: Union[str, Column] = "langchain_id",
        overwrite_existing: bool = False,
        store_metadata: bool = True,
    ) -> None:
        """
        `PgVectorStore`에서 사용할 벡터 테이블을 생성합니다.

        Args:
            table_name (str): 생성할 테이블 이름.
            vector_size (int): 임베딩 모델의 벡터 차원 수. 생성 이후에는 변경되지 않습니다.
            schema_name (str): 테이블을 만들 스키마 (기본값: "public").
            content_column (str): 문서 본문을 저장할 컬럼 이름.
            embedding_column (str): 벡터를 저장할 컬럼 이름.
            metadata_columns (Sequence[Column]): 메타데이터를 저장할 타입 지정 컬럼 목록.
            metadata_json_column (str): 나머지 메타데이터를 JSON으로 저장할 컬럼 이름.
            id_column (str | Column): ID 컬럼 이름 또는 정의. 이름만 주면 UUID 타입을 사용합니다.
            overwrite_existing (bool): True이면 기존 테이블을 삭제하고 다시 만듭니다.
            store_metadata (bool): False이면 JSON 메타데이터 컬럼을 만들지 않습니다.
        """
        if isinstance(id_column, Column):
            id_name, id_type = id_column.name, id_column.data_type
        else:
            id_name, id_type = id_column, "UUID"

        create_table = statements.build_create_vectorstore_table(
            schema_name=schema_name,
            table_name=table_name,
            vector_size=vector_size,
            id_column_name=id_name,
            id_data_type=id_type,
            content_column=content_column,
            embedding_column=embedding_column,
            metadata_columns=metadata_columns,
            metadata_json_column=metadata_json_column if store_metadata else None,
        )

        logger.info(f"벡터 테이블 '{schema_name}.{table_name}' 생성을 시작합니다. (차원: {vector_size})")
        async with self._connect() as conn:
            await conn.execute(statements.build_create_extension())
            if overwrite_existing:
                logger.warning(f"기존 테이블 '{schema_name}.{table_name}'을 삭제합니다.")
                await conn.execute(statements.build_drop_table(schema_name, table_name))
            await conn.execute(create_table)
        logger.info(f"벡터 테이블 '{schema_name}.{table_name}' 생성이 완료되었습니다.")

    async def init_chat_history_table(self, table_name: str, schema_name: str = "public") -> None:
        """채팅 기록을 저장할 테이블을 생성합니다. 이미 있으면 아무 작업도 하지 않습니다."""
        await self.execute(statements.build_create_chat_history_table(schema_name, table_name))
        logger.info(f"채팅 기록 테이블 '{schema_name}.{table_name}'이 준비되었습니다.")

    # --------------------------------------------------------------------------
    # 수명 주기
    # --------------------------------------------------------------------------

    async def test_connection(self):
        """연결 상태 확인용으로 데이터베이스의 현재 시각을 조회합니다."""
        rows = await self.execute("SELECT NOW() AS now")
        return rows[0]["now"]

    async def close(self) -> None:
        """커넥션 풀을 해제합니다. 여러 번 호출해도 안전합니다."""
        if self._closed:
            return
        self._closed = True
        await self._engine.dispose()
        logger.info("데이터베이스 커넥션 풀을 해제했습니다.")

    async def __aenter__(self) -> "PostgresEngine":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
