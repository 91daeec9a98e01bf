"""
교체 가능한 컴포넌트(임베딩 모델, 벡터 저장소)를 모아 둔 패키지입니다.
"""
