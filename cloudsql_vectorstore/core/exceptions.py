# -*- coding: utf-8 -*-
"""
커넥터에서 발생시키는 예외 계층을 정의합니다.

- `ConfigurationError`: 서로 모순되거나 잘못된 생성 인자 (예: 존재하지 않는 컬럼, 잘못된 드라이버).
- `ValidationError`: 호출자가 전달한 컬렉션 크기 불일치 등 요청 자체의 오류.
- `ConflictError`: 이미 존재하는 인덱스를 교체 옵션 없이 다시 만들려는 경우.
- `TransientError`: 쿼리 실행기에서 올라온 연결/네트워크 오류. 자동 재시도는 하지 않습니다.

모든 검증은 SQL이 실행되기 전에 이루어지므로, 잘못된 요청은 데이터베이스에 도달하지 않습니다.
"""


class VectorStoreError(Exception):
    """커넥터 예외의 공통 부모 클래스."""


class ConfigurationError(VectorStoreError):
    pass


class ValidationError(VectorStoreError):
    pass


class ConflictError(VectorStoreError):
    pass


class TransientError(VectorStoreError):
    pass
