# -*- coding: utf-8 -*-
"""
동적 SQL 구문을 조립하는 모듈입니다.

테이블/컬럼/인덱스 이름처럼 사용자가 지정할 수 있는 식별자는 모두 이 모듈에서
PostgreSQL 방언의 `IdentifierPreparer`로 인용(quote)되며, 값은 항상 바인드 파라미터로 전달됩니다.

예외적으로 검색 필터(`filter`)와 부분 인덱스 조건(`partial_indexes`)은 호출자가 작성한
SQL 조건식을 그대로 `WHERE` 절에 삽입합니다. 이 두 값은 검증되지 않으므로,
신뢰할 수 없는 입력을 그대로 넘겨서는 안 됩니다.
"""

import re
from typing import Optional, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.dialects import postgresql
from sqlalchemy.sql.elements import TextClause

from .exceptions import ConfigurationError

_preparer = postgresql.dialect().identifier_preparer

# `VARCHAR(255)`, `NUMERIC(10, 2)`, `TEXT[]`, `DOUBLE PRECISION` 같은 타입 표기를 허용합니다.
_DATA_TYPE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_ ]*(\(\s*\d+(\s*,\s*\d+)?\s*\))?(\[\])*$")

QUERY_EMBEDDING_PARAM = "query_embedding"

# NAMEDATALEN - 1
MAX_IDENTIFIER_BYTES = 63


def quote_identifier(name: str) -> str:
    """식별자를 항상 큰따옴표로 감싸고, 내부의 따옴표는 이스케이프합니다."""
    if not isinstance(name, str) or not name:
        raise ConfigurationError(f"Invalid identifier: {name!r}")
    return _preparer.quote_identifier(name)


def qualified_name(schema_name: str, name: str) -> str:
    """`"schema"."name"` 형태의 정규화된 이름을 반환합니다."""
    return f"{quote_identifier(schema_name)}.{quote_identifier(name)}"


def truncate_identifier(name: str) -> str:
    """
    PostgreSQL이 저장하는 것과 같은 이름을 돌려줍니다.
    63바이트를 넘는 식별자는 UTF-8 문자 경계에서 잘립니다.
    """
    encoded = name.encode("utf-8")
    if len(encoded) <= MAX_IDENTIFIER_BYTES:
        return name
    return encoded[:MAX_IDENTIFIER_BYTES].decode("utf-8", errors="ignore")


def validate_data_type(data_type: str) -> str:
    if not isinstance(data_type, str) or not _DATA_TYPE_PATTERN.match(data_type.strip()):
        raise ConfigurationError(f"Invalid column data type: {data_type!r}")
    return data_type.strip()


# ==============================================================================
# 1. 스키마 프로비저닝 (DDL)
# ==============================================================================


def build_create_extension() -> TextClause:
    return text("CREATE EXTENSION IF NOT EXISTS vector")


def build_drop_table(schema_name: str, table_name: str) -> TextClause:
    return text(f"DROP TABLE IF EXISTS {qualified_name(schema_name, table_name)}")


def build_create_vectorstore_table(
    schema_name: str,
    table_name: str,
    vector_size: int,
    id_column_name: str,
    id_data_type: str,
    content_column: str,
    embedding_column: str,
    metadata_columns: Sequence = (),
    metadata_json_column: Optional[str] = None,
) -> TextClause:
    """
    벡터 테이블 생성 구문을 만듭니다.

    Args:
        metadata_columns: `name`, `data_type`, `nullable` 속성을 가진 컬럼 정의 목록.
        metadata_json_column: 지정하면 해당 이름의 JSON 컬럼을 마지막에 추가합니다.
    """
    if not isinstance(vector_size, int) or isinstance(vector_size, bool) or vector_size <= 0:
        raise ConfigurationError(f"vector_size must be a positive integer, got {vector_size!r}")

    lines = [
        f"{quote_identifier(id_column_name)} {validate_data_type(id_data_type)} PRIMARY KEY",
        f"{quote_identifier(content_column)} TEXT NOT NULL",
        f"{quote_identifier(embedding_column)} vector({vector_size}) NOT NULL",
    ]
    for column in metadata_columns:
        nullable = "" if column.nullable else " NOT NULL"
        lines.append(
            f"{quote_identifier(column.name)} {validate_data_type(column.data_type)}{nullable}"
        )
    if metadata_json_column:
        lines.append(f"{quote_identifier(metadata_json_column)} JSON")

    body = ",\n  ".join(lines)
    return text(f"CREATE TABLE {qualified_name(schema_name, table_name)}(\n  {body}\n)")


def build_create_chat_history_table(schema_name: str, table_name: str) -> TextClause:
    return text(
        f"""CREATE TABLE IF NOT EXISTS {qualified_name(schema_name, table_name)}(
  id SERIAL PRIMARY KEY,
  session_id TEXT NOT NULL,
  data JSONB NOT NULL,
  type TEXT NOT NULL
)"""
    )


# ==============================================================================
# 2. 스키마 조회 (Introspection)
# ==============================================================================


def build_list_columns() -> TextClause:
    # ordinal_position 순서가 곧 테이블에 선언된 컬럼 순서입니다.
    return text(
        """
        SELECT column_name, data_type
        FROM information_schema.columns
        WHERE table_schema = :schema_name AND table_name = :table_name
        ORDER BY ordinal_position
        """
    )


def build_find_index() -> TextClause:
    return text(
        """
        SELECT indexname
        FROM pg_indexes
        WHERE schemaname = :schema_name
          AND tablename = :table_name
          AND indexname = :index_name
        """
    )


# ==============================================================================
# 3. 데이터 조작 (DML)
# ==============================================================================


def metadata_param_name(position: int) -> str:
    """메타데이터 컬럼 이름은 임의의 문자를 포함할 수 있으므로, 위치 기반 파라미터 이름을 사용합니다."""
    return f"metadata_{position}"


def build_insert(
    schema_name: str,
    table_name: str,
    id_column: str,
    content_column: str,
    embedding_column: str,
    metadata_columns: Sequence[str] = (),
    metadata_json_column: Optional[str] = None,
) -> TextClause:
    columns = [id_column, content_column, embedding_column, *metadata_columns]
    values = [":id", ":content", "CAST(:embedding AS vector)"]
    values += [f":{metadata_param_name(i)}" for i in range(len(metadata_columns))]
    if metadata_json_column:
        columns.append(metadata_json_column)
        values.append(":metadata_json")

    column_list = ", ".join(quote_identifier(c) for c in columns)
    return text(
        f"INSERT INTO {qualified_name(schema_name, table_name)} ({column_list}) "
        f"VALUES ({', '.join(values)})"
    )


def build_delete(schema_name: str, table_name: str, id_column: str) -> TextClause:
    return text(
        f"DELETE FROM {qualified_name(schema_name, table_name)} "
        f"WHERE {quote_identifier(id_column)} IN :ids"
    ).bindparams(bindparam("ids", expanding=True))


def build_search(
    schema_name: str,
    table_name: str,
    id_column: str,
    content_column: str,
    embedding_column: str,
    metadata_columns: Sequence[str],
    metadata_json_column: Optional[str],
    operator: str,
    filter: Optional[str] = None,
) -> TextClause:
    """
    최근접 이웃 검색 구문을 만듭니다.

    쿼리 벡터는 `:query_embedding`, 결과 개수는 `:k` 파라미터로 바인딩됩니다.
    `ORDER BY`에 거리 연산식을 그대로 사용해야 pgvector ANN 인덱스가 적용됩니다.
    """
    columns = [id_column, content_column, embedding_column, *metadata_columns]
    if metadata_json_column:
        columns.append(metadata_json_column)
    select_list = ", ".join(quote_identifier(c) for c in columns)

    distance = (
        f"{quote_identifier(embedding_column)} {operator} "
        f"CAST(:{QUERY_EMBEDDING_PARAM} AS vector)"
    )
    where = f" WHERE {filter}" if filter else ""
    return text(
        f"SELECT {select_list}, {distance} AS distance "
        f"FROM {qualified_name(schema_name, table_name)}{where} "
        f"ORDER BY {distance} LIMIT :k"
    )


# ==============================================================================
# 4. 인덱스 관리
# ==============================================================================


def build_create_index(
    schema_name: str,
    table_name: str,
    index_name: str,
    column: str,
    index_type: str,
    operator_class: str,
    options: str = "",
    partial_indexes: Optional[str] = None,
    concurrently: bool = False,
) -> TextClause:
    parts = ["CREATE INDEX"]
    if concurrently:
        parts.append("CONCURRENTLY")
    parts.append(
        f"{quote_identifier(index_name)} ON {qualified_name(schema_name, table_name)} "
        f"USING {index_type} ({quote_identifier(column)} {operator_class})"
    )
    if options:
        parts.append(f"WITH {options}")
    if partial_indexes:
        parts.append(f"WHERE ({partial_indexes})")
    return text(" ".join(parts))


def build_drop_index(schema_name: str, index_name: str) -> TextClause:
    return text(f"DROP INDEX IF EXISTS {qualified_name(schema_name, index_name)}")


def build_reindex(schema_name: str, index_name: str) -> TextClause:
    return text(f"REINDEX INDEX {qualified_name(schema_name, index_name)}")
