"""임베딩 서비스 테스트."""

from unittest.mock import MagicMock, patch

import pytest

from datashorts.core.config import Settings
from datashorts.sync.embedding_service import EmbeddingDimensionError, EmbeddingService


@pytest.fixture
def embedding_settings() -> Settings:
    """임베딩 설정 fixture."""
    return Settings(
        embedding_base_url="http://embeddings.local/v1/",
        embedding_api_key="test-api-key",
        embedding_model="text-embedding-ada-002",
    )


def _response(payload: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    return response


class TestEmbeddingServiceSingle:
    """단일 텍스트 임베딩 테스트."""

    def test_should_embed_single_text(self, embedding_settings: Settings) -> None:
        """단일 텍스트를 임베딩해야 함."""
        with patch("datashorts.sync.embedding_service.httpx.post") as mock_post:
            # Given
            mock_post.return_value = _response(
                {"data": [{"index": 0, "embedding": [0.1, 0.2, 0.3] * 512}]}
            )
            service = EmbeddingService(embedding_settings)

            # When
            result = service.embed("Database schema for: SELECT * FROM users")

            # Then
            url = mock_post.call_args[0][0]
            body = mock_post.call_args[1]["json"]
            headers = mock_post.call_args[1]["headers"]
            assert url == "http://embeddings.local/v1/embeddings"
            assert body["model"] == "text-embedding-ada-002"
            assert body["input"] == "Database schema for: SELECT * FROM users"
            assert headers["Authorization"] == "Bearer test-api-key"
            assert len(result) == 1536

    def test_should_raise_http_error(self, embedding_settings: Settings) -> None:
        """HTTP 오류는 그대로 전파되어야 함."""
        with patch("datashorts.sync.embedding_service.httpx.post") as mock_post:
            response = MagicMock()
            response.raise_for_status.side_effect = RuntimeError("500 Internal Server Error")
            mock_post.return_value = response

            service = EmbeddingService(embedding_settings)

            with pytest.raises(RuntimeError):
                service.embed("text")


class TestEmbeddingServiceBatch:
    """배치 텍스트 임베딩 테스트."""

    def test_should_keep_input_order(self, embedding_settings: Settings) -> None:
        """응답 순서와 관계없이 입력 순서대로 반환해야 함."""
        with patch("datashorts.sync.embedding_service.httpx.post") as mock_post:
            # Given
            mock_post.return_value = _response(
                {
                    "data": [
                        {"index": 1, "embedding": [2.0] * 1536},
                        {"index": 0, "embedding": [1.0] * 1536},
                    ]
                }
            )
            service = EmbeddingService(embedding_settings)

            # When
            result = service.embed_batch(["first", "second"])

            # Then
            mock_post.assert_called_once()
            assert [vector[0] for vector in result] == [1.0, 2.0]

    def test_should_return_empty_list_without_request(
        self, embedding_settings: Settings
    ) -> None:
        """빈 입력은 요청 없이 빈 리스트를 반환해야 함."""
        with patch("datashorts.sync.embedding_service.httpx.post") as mock_post:
            service = EmbeddingService(embedding_settings)

            assert service.embed_batch([]) == []
            mock_post.assert_not_called()

    def test_should_expose_dimension(self, embedding_settings: Settings) -> None:
        assert EmbeddingService(embedding_settings).dimension == 1536


class TestEmbeddingServiceDimension:
    """응답 벡터 차원 검증 테스트."""

    def test_should_reject_vector_with_wrong_dimension(
        self, embedding_settings: Settings
    ) -> None:
        """모델 차원이 컬렉션 차원과 다르면 EmbeddingDimensionError를 발생시켜야 함."""
        with patch("datashorts.sync.embedding_service.httpx.post") as mock_post:
            # Given
            mock_post.return_value = _response(
                {"data": [{"index": 0, "embedding": [0.1] * 768}]}
            )
            service = EmbeddingService(embedding_settings)

            # When / Then
            with pytest.raises(EmbeddingDimensionError, match="768 dimensions"):
                service.embed("Table users")

    def test_should_reject_batch_with_one_bad_vector(
        self, embedding_settings: Settings
    ) -> None:
        with patch("datashorts.sync.embedding_service.httpx.post") as mock_post:
            mock_post.return_value = _response(
                {
                    "data": [
                        {"index": 0, "embedding": [0.1] * 1536},
                        {"index": 1, "embedding": [0.1] * 1024},
                    ]
                }
            )
            service = EmbeddingService(embedding_settings)

            with pytest.raises(EmbeddingDimensionError):
                service.embed_batch(["Table users", "Table orders"])

    def test_should_reject_missing_vectors(self, embedding_settings: Settings) -> None:
        """응답 벡터 수가 입력 수보다 적으면 ValueError를 발생시켜야 함."""
        with patch("datashorts.sync.embedding_service.httpx.post") as mock_post:
            mock_post.return_value = _response(
                {"data": [{"index": 0, "embedding": [0.1] * 1536}]}
            )
            service = EmbeddingService(embedding_settings)

            with pytest.raises(ValueError, match="1 vectors for 2 inputs"):
                service.embed_batch(["Table users", "Table orders"])
