# -*- coding: utf-8 -*-
"""
Ollama를 통해 호스팅되는 임베딩 모델 구현체입니다.
"""

from typing import List, Optional

from langchain_ollama.embeddings import OllamaEmbeddings as LangchainOllamaEmbeddings

from .base import BaseEmbeddingModel
from ...core.logger import get_logger

logger = get_logger(__name__)


class OllamaEmbedding(BaseEmbeddingModel):
    """
    `langchain-ollama`의 `OllamaEmbeddings` 클라이언트에 임베딩을 위임하는 클래스입니다.
    비동기 메서드는 클라이언트의 네이티브 비동기 API(`aembed_*`)를 사용합니다.
    """

    def __init__(self, model_name: str, base_url: Optional[str] = None):
        """
        Args:
            model_name (str): 사용할 Ollama 임베딩 모델의 이름 (예: "nomic-embed-text").
            base_url (Optional[str]): Ollama API 서버의 기본 URL.
                                      None이면 `langchain-ollama`의 기본값을 사용합니다.
        """
        self._provider = "ollama"
        self._model_name = model_name

        logger.info(
            f"Ollama 임베딩 모델 ('{model_name}') 초기화를 시작합니다. (API: {base_url or '기본값'})"
        )
        try:
            self.client = LangchainOllamaEmbeddings(model=model_name, base_url=base_url)
        except Exception as e:
            logger.error(
                f"Ollama 임베딩 모델 ('{model_name}') 초기화 중 오류 발생: {e}",
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
        logger.debug(f"'{self._model_name}' 모델로 쿼리 임베딩을 시작합니다: '{text[:80]}'")
        try:
            return self.client.embed_query(text)
        except Exception as e:
            logger.error(
                f"'{self._model_name}' 모델로 쿼리 임베딩 중 오류 발생: {e}",
                exc_info=True,
            )
            raise

    async def aembed_documents(self, texts: List[str]) -> List[List[float]]:
        logger.debug(f"'{self._model_name}' 모델로 {len(texts)}개 문서의 비동기 임베딩을 시작합니다.")
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
