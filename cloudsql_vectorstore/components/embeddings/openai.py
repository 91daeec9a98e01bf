# -*- coding: utf-8 -*-
"""
OpenAI의 임베딩 모델 구현체입니다.
"""

from typing import List, Optional

from langchain_openai import OpenAIEmbeddings as LangchainOpenAIEmbeddings

from .base import BaseEmbeddingModel
from ...core.logger import get_logger

logger = get_logger(__name__)


class OpenAIEmbedding(BaseEmbeddingModel):
    """
    OpenAI API를 사용하여 텍스트 임베딩을 수행하는 클래스입니다.

    `langchain-openai`의 `OpenAIEmbeddings`는 배치 분할과 재시도를 자체적으로 처리하므로,
    이 클래스는 로깅과 오류 전파만 담당합니다.
    """

    def __init__(
        self,
        model_name: str,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
    ):
        """
        Args:
            model_name (str): 사용할 OpenAI 임베딩 모델의 이름 (예: "text-embedding-3-small").
            api_key (Optional[str]): OpenAI API 키.
            base_url (Optional[str]): OpenAI 호환 API 엔드포인트의 기본 URL.
            dimensions (Optional[int]): 출력 벡터 차원. 벡터 테이블의 차원과 맞춰야 합니다.
        """
        self._provider = "openai"
        self._model_name = model_name

        logger.info(f"OpenAI 임베딩 모델 ('{model_name}') 초기화를 시작합니다.")
        if not api_key:
            logger.warning(
                f"'{model_name}' 모델에 대한 API 키가 제공되지 않았습니다. "
                "환경 변수(OPENAI_API_KEY)에 설정되어 있는지 확인하세요."
            )

        try:
            self.client = LangchainOpenAIEmbeddings(
                model=model_name,
                api_key=api_key,
                base_url=base_url,
                dimensions=dimensions,
            )
        except Exception as e:
            logger.error(
                f"OpenAI 임베딩 모델 ('{model_name}') 초기화 중 오류 발생: {e}",
                exc_info=True,
            )
            raise

    @property
    def provider(self) -> str:
        return self._provider

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        logger.debug(f"'{self._model_name}' 모델로 {len(texts)}개 문서의 임베딩을 시작합니다.")
        try:
            return self.client.embed_documents(texts)
        except Exception as e:
            logger.error(
                f"'{self._model_name}' 모델로 문서 임베딩 중 오류 발생: {e}",
                exc_info=True,
            )
            raise

    def embed_query(self, text: str) -> List[float]:
        try:
            return self.client.embed_query(text)
        except Exception as e:
            logger.error(
                f"'{self._model_name}' 모델로 쿼리 임베딩 중 오류 발생: {e}",
                exc_info=True,
            )
            raise

    async def aembed_documents(self, texts: List[str]) -> List[List[float]]:
        try:
            return await self.client.aembed_documents(texts)
        except Exception as e:
            logger.error(
                f"'{self._model_name}' 모델로 문서 임베딩 중 오류 발생: {e}",
                exc_info=True,
            )
            raise

    async def aembed_query(self, text: str) -> List[float]:
        try:
            return await self.client.aembed_query(text)
        except Exception as e:
            logger.error(
                f"'{self._model_name}' 모델로 쿼리 임베딩 중 오류 발생: {e}",
                exc_info=True,
            )
            raise
