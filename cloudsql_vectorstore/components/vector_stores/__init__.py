"""
벡터 저장소 구현 패키지입니다.

- `base`: 벡터 저장소 인터페이스와 스키마 기술자.
- `pg_vector_store`: PostgreSQL + pgvector 구현체.
- `indexes`: 거리 전략과 ANN 인덱스 설정.
- `utils`: MMR 재순위화용 벡터 연산.
"""
