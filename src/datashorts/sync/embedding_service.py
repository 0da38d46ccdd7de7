"""스키마 텍스트 임베딩 서비스 (OpenAI 호환 /embeddings API)."""

from typing import Any

import httpx

from datashorts.core.config import Settings


class EmbeddingDimensionError(ValueError):
    """임베딩 응답이 컬렉션 벡터 차원과 맞지 않음."""

    pass


class EmbeddingService:
    """스키마 설명 텍스트를 컬렉션 차원의 벡터로 변환하는 서비스.

    응답 벡터의 길이는 settings.embedding_dimension과 같아야 한다.
    모델과 컬렉션 차원이 어긋나면 Milvus에 쓰기 전에 EmbeddingDimensionError를
    발생시킨다.
    """

    def __init__(self, settings: Settings) -> None:
        """서비스 초기화.

        Args:
            settings: 애플리케이션 설정
        """
        self._dimension = settings.embedding_dimension
        self._endpoint = f"{settings.embedding_base_url.rstrip('/')}/embeddings"
        self._model = settings.embedding_model
        self._headers = {
            "Authorization": f"Bearer {settings.embedding_api_key}",
            "Content-Type": "application/json",
        }

    @property
    def dimension(self) -> int:
        """임베딩 벡터 차원을 반환."""
        return self._dimension

    def embed(self, text: str) -> list[float]:
        """단일 텍스트를 임베딩.

        Raises:
            EmbeddingDimensionError: 응답 벡터 차원이 설정과 다른 경우
        """
        return self._request(text, timeout=60.0)[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """여러 텍스트를 한 번의 요청으로 임베딩.

        Args:
            texts: 임베딩할 텍스트 리스트

        Returns:
            입력 순서와 같은 순서의 임베딩 벡터 리스트

        Raises:
            EmbeddingDimensionError: 응답 벡터 차원이 설정과 다른 경우
            ValueError: 응답 벡터 수가 입력 수와 다른 경우
        """
        if not texts:
            return []

        vectors = self._request(texts, timeout=120.0)
        if len(vectors) != len(texts):
            raise ValueError(
                f"Embedding API returned {len(vectors)} vectors for {len(texts)} inputs"
            )
        return vectors

    def _request(self, payload: Any, timeout: float) -> list[list[float]]:
        response = httpx.post(
            self._endpoint,
            headers=self._headers,
            json={"model": self._model, "input": payload, "encoding_format": "float"},
            timeout=timeout,
        )
        response.raise_for_status()

        # 응답 순서가 입력 순서와 다를 수 있음
        items = sorted(response.json()["data"], key=lambda item: item["index"])
        vectors = [item["embedding"] for item in items]
        for vector in vectors:
            if len(vector) != self._dimension:
                raise EmbeddingDimensionError(
                    f"Embedding model {self._model} returned {len(vector)} dimensions, "
                    f"collection expects {self._dimension}"
                )
        return vectors
