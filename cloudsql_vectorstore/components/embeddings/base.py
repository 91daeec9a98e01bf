# -*- coding: utf-8 -*-
"""
임베딩 모델 컴포넌트의 기본 인터페이스를 정의하는 모듈입니다.
"""

from abc import ABC, abstractmethod
from typing import List

from langchain_core.runnables.config import run_in_executor


class BaseEmbeddingModel(ABC):
    """
    텍스트 임베딩 모델의 기본 인터페이스를 정의하는 추상 기본 클래스(Abstract Base Class)입니다.

    벡터 저장소는 이 인터페이스만을 통해 텍스트를 벡터로 변환하므로, 어떤 임베딩 모델을 사용하든
    동일한 방식으로 문서를 저장하고 검색할 수 있습니다.

    동기 메서드(`embed_documents`, `embed_query`)만 구현해도 되며, 비동기 메서드는 기본적으로
    이벤트 루프를 막지 않도록 기본 실행기(executor)에서 동기 메서드를 실행합니다.
    """

    @property
    @abstractmethod
    def provider(self) -> str:
        """
        현재 임베딩 모델의 제공자(Provider)를 문자열로 반환해야 합니다.
        (예: "ollama", "openai")
        """
        pass

    @abstractmethod
    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        """
        여러 개의 텍스트(문서)를 한 번에 임베딩합니다.

        Args:
            texts (List[str]): 임베딩할 텍스트(문서)의 리스트.

        Returns:
            List[List[float]]: 입력과 같은 순서, 같은 길이의 임베딩 벡터 리스트.
        """
        pass

    @abstractmethod
    def embed_query(self, text: str) -> List[float]:
        """
        단일 텍스트(주로 검색 쿼리)를 임베딩합니다.

        Args:
            text (str): 임베딩할 단일 텍스트(쿼리).

        Returns:
            List[float]: 주어진 텍스트에 대한 임베딩 벡터.
        """
        pass

    async def aembed_documents(self, texts: List[str]) -> List[List[float]]:
        return await run_in_executor(None, self.embed_documents, texts)

    async def aembed_query(self, text: str) -> List[float]:
        return await run_in_executor(None, self.embed_query, text)
