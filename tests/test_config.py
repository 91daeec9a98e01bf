# tests/test_config.py
import pytest
from pydantic import ValidationError

# 테스트 대상 임포트는 함수 내부에서 수행하여
# 캐시된 `get_settings()` 객체가 테스트에 영향을 주지 않도록 합니다.


def test_settings_from_yaml(monkeypatch):
    """
    YAML 파일로부터 중첩 설정이 올바르게 로드되는지 테스트합니다.
    """
    def mock_yaml_source():
        return {
            "app": {"log_level": "DEBUG"},
            "database": {"host": "db.internal", "database": "vectors", "user": "svc"},
            "vector_store": {"table_name": "docs", "distance_strategy": "euclidean"},
        }

    # yaml_config_settings_source 함수를 모의(mock)하여 파일 I/O를 피합니다.
    monkeypatch.setattr("cloudsql_vectorstore.core.config.yaml_config_settings_source", mock_yaml_source)

    from cloudsql_vectorstore.core.config import Settings
    settings = Settings()

    assert settings.app.log_level == "DEBUG"
    assert settings.vector_store.table_name == "docs"
    assert settings.vector_store.distance_strategy == "euclidean"
    assert settings.DATABASE_URL == "postgresql+asyncpg://svc@db.internal:5432/vectors"
    # YAML 파일에 정의되지 않은 값은 클래스의 기본값을 따라야 합니다.
    assert settings.vector_store.k == 4
    assert settings.embedding.provider == "ollama"


def test_settings_env_overrides_yaml(monkeypatch):
    """
    환경 변수가 YAML 파일의 설정을 덮어쓰는지 (더 높은 우선순위를 갖는지) 테스트합니다.
    """
    def mock_yaml_source():
        return {
            "database": {"host": "yaml-host", "port": 6543},
            "vector_store": {"fetch_k": 30},
        }

    monkeypatch.setattr("cloudsql_vectorstore.core.config.yaml_config_settings_source", mock_yaml_source)
    monkeypatch.setenv("DATABASE__HOST", "env-host")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    from cloudsql_vectorstore.core.config import Settings
    settings = Settings()

    # 환경 변수에서 로드된 값
    assert settings.database.host == "env-host"
    assert settings.OPENAI_API_KEY == "sk-test"
    # YAML에서 로드된 값
    assert settings.database.port == 6543
    assert settings.vector_store.fetch_k == 30


def test_settings_url_override(monkeypatch):
    monkeypatch.setattr("cloudsql_vectorstore.core.config.yaml_config_settings_source", lambda: {})

    from cloudsql_vectorstore.core.config import Settings
    settings = Settings(database={"url": "postgresql+asyncpg://u:p@h:1/d", "host": "ignored"})

    assert settings.DATABASE_URL == "postgresql+asyncpg://u:p@h:1/d"


def test_settings_no_yaml_file(monkeypatch):
    """
    config.yml 파일이 없을 때 기본값으로 올바르게 폴백되는지 테스트합니다.
    """
    monkeypatch.setattr("cloudsql_vectorstore.core.config.Path.exists", lambda self: False)

    from cloudsql_vectorstore.core.config import Settings
    settings = Settings()

    assert settings.vector_store.table_name == "vector_store"
    assert settings.vector_store.vector_size == 768
    assert settings.database.pool_size == 5


@pytest.mark.parametrize(
    "env_name, value",
    [
        ("VECTOR_STORE__DISTANCE_STRATEGY", "manhattan"),
        ("EMBEDDING__PROVIDER", "invalid_provider"),
        ("VECTOR_STORE__LAMBDA_MULT", "1.5"),
    ],
)
def test_settings_validation_error(monkeypatch, env_name, value):
    """
    잘못된 값이 설정되었을 때 Pydantic의 ValidationError가 발생하는지 테스트합니다.
    """
    monkeypatch.setattr("cloudsql_vectorstore.core.config.yaml_config_settings_source", lambda: {})
    monkeypatch.setenv(env_name, value)

    from cloudsql_vectorstore.core.config import Settings
    with pytest.raises(ValidationError):
        Settings()


def test_database_url_escapes_special_characters_in_credentials():
    from sqlalchemy.engine import make_url

    from cloudsql_vectorstore.core.config import DatabaseSettings
    db = DatabaseSettings(user="app", password="p@ss/w:rd", host="db.internal", database="vectors")

    parsed = make_url(db.DATABASE_URL)

    assert parsed.drivername == "postgresql+asyncpg"
    assert parsed.host == "db.internal"
    assert parsed.username == "app"
    assert parsed.password == "p@ss/w:rd"
    assert parsed.database == "vectors"
