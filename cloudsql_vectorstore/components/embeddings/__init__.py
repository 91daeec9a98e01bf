"""
텍스트 임베딩 모델 어댑터 패키지입니다. 모든 구현체는 `BaseEmbeddingModel`을 따릅니다.
"""
