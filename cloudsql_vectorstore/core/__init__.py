"""
커넥터의 기반 계층을 구성하는 패키지입니다.

- `config`: pydantic-settings 기반 계층형 설정.
- `logger`: 설정과 연동된 로거 생성.
- `exceptions`: 커넥터 예외 계층.
- `statements`: 식별자 인용과 동적 SQL 구문 조립.
- `engine`: SQLAlchemy 비동기 엔진을 감싸는 쿼리 실행기와 테이블 프로비저닝.
- `factories`: 설정으로부터 컴포넌트를 생성하는 팩토리 함수.
"""
