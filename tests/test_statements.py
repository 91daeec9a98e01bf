import pytest

from cloudsql_vectorstore.core import statements
from cloudsql_vectorstore.core.engine import Column
from cloudsql_vectorstore.core.exceptions import ConfigurationError


def test_quote_identifier_escapes_quotes():
    assert statements.quote_identifier("my table") == '"my table"'
    assert statements.quote_identifier('we"ird') == '"we""ird"'


@pytest.mark.parametrize("name", ["", None, 3])
def test_quote_identifier_rejects_invalid_names(name):
    with pytest.raises(ConfigurationError):
        statements.quote_identifier(name)


@pytest.mark.parametrize("data_type", ["TEXT", "VARCHAR(255)", "NUMERIC(10, 2)", "TEXT[]", "DOUBLE PRECISION"])
def test_validate_data_type_accepts_common_types(data_type):
    assert statements.validate_data_type(data_type) == data_type


@pytest.mark.parametrize("data_type", ["TEXT; DROP TABLE x", "", "1INT", "TEXT)--"])
def test_validate_data_type_rejects_injection(data_type):
    with pytest.raises(ConfigurationError):
        statements.validate_data_type(data_type)


def test_create_vectorstore_table():
    stmt = statements.build_create_vectorstore_table(
        schema_name="public",
        table_name="docs",
        vector_size=768,
        id_column_name="langchain_id",
        id_data_type="UUID",
        content_column="content",
        embedding_column="embedding",
        metadata_columns=[Column("page", "TEXT"), Column("source", "TEXT", nullable=False)],
        metadata_json_column="langchain_metadata",
    )
    sql = str(stmt)

    assert sql.startswith('CREATE TABLE "public"."docs"(')
    assert '"langchain_id" UUID PRIMARY KEY' in sql
    assert '"content" TEXT NOT NULL' in sql
    assert '"embedding" vector(768) NOT NULL' in sql
    assert '"page" TEXT,' in sql
    assert '"source" TEXT NOT NULL' in sql
    # JSON 컬럼은 항상 마지막입니다.
    assert sql.rstrip(")").rstrip().endswith('"langchain_metadata" JSON')


@pytest.mark.parametrize("vector_size", [0, -1, "768", True])
def test_create_vectorstore_table_rejects_bad_vector_size(vector_size):
    with pytest.raises(ConfigurationError):
        statements.build_create_vectorstore_table(
            "public", "docs", vector_size, "id", "UUID", "content", "embedding"
        )


def test_insert_uses_positional_metadata_params():
    sql = str(
        statements.build_insert(
            "public", "docs", "id", "content", "embedding", ["page", "odd name"], "meta"
        )
    )
    assert sql == (
        'INSERT INTO "public"."docs" ("id", "content", "embedding", "page", "odd name", "meta") '
        "VALUES (:id, :content, CAST(:embedding AS vector), :metadata_0, :metadata_1, :metadata_json)"
    )


def test_search_without_filter_has_no_where_clause():
    sql = str(
        statements.build_search(
            "public", "docs", "id", "content", "embedding", [], None, "<->"
        )
    )
    assert "WHERE" not in sql
    assert sql.endswith('ORDER BY "embedding" <-> CAST(:query_embedding AS vector) LIMIT :k')


def test_chat_history_table_is_idempotent():
    sql = str(statements.build_create_chat_history_table("public", "chat"))
    assert sql.startswith('CREATE TABLE IF NOT EXISTS "public"."chat"(')
    assert "session_id TEXT NOT NULL" in sql


def test_truncate_identifier_matches_postgres_limit():
    assert statements.truncate_identifier("short") == "short"
    assert statements.truncate_identifier("a" * 70) == "a" * 63
    # 멀티바이트 문자가 경계에 걸리면 문자 단위로 잘립니다.
    truncated = statements.truncate_identifier("a" * 62 + "가나")
    assert truncated == "a" * 62
    assert len(truncated.encode("utf-8")) <= 63
