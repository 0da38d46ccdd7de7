"""스키마 컨텍스트 검색기 - 쿼리와 가까운 스키마 임베딩을 조회."""

from typing import Any

from datashorts.adapters.vector_store.milvus_adapter import build_filter_expr
from datashorts.core.logging import get_logger
from datashorts.core.models import PIPELINE_TAG, SCHEMA_RECORD_TYPE, SchemaContextItem

logger = get_logger(__name__)

CONTEXT_QUERY_TEMPLATE = "Database schema for: {sql}"


class SchemaContextRetriever:
    """유사도 검색으로 쿼리 관련 스키마 컨텍스트를 가져오는 서비스."""

    def __init__(
        self,
        embedding_service: Any,
        milvus_adapter: Any,
        collection_name: str,
        top_k: int = 10,
    ) -> None:
        """검색기 초기화.

        Args:
            embedding_service: 임베딩 서비스
            milvus_adapter: Milvus 어댑터
            collection_name: 컬렉션 이름
            top_k: 가져올 최대 레코드 수
        """
        self._embedding_service = embedding_service
        self._milvus_adapter = milvus_adapter
        self._collection_name = collection_name
        self._top_k = top_k

    def retrieve(self, connection_id: str, sql: str) -> list[SchemaContextItem]:
        """쿼리와 가까운 스키마 임베딩을 조회.

        조회 실패는 빈 컨텍스트로 처리한다.

        Args:
            connection_id: 연결 ID
            sql: 사용자 SQL

        Returns:
            SchemaContextItem 리스트
        """
        try:
            query_vector = self._embedding_service.embed(
                CONTEXT_QUERY_TEMPLATE.format(sql=sql)
            )
            hits = self._milvus_adapter.search(
                collection_name=self._collection_name,
                query_vector=query_vector,
                limit=self._top_k,
                output_fields=["table_name", "text", "columns"],
                expr=build_filter_expr(
                    connection_id=str(connection_id),
                    pipeline=PIPELINE_TAG,
                    type=SCHEMA_RECORD_TYPE,
                ),
            )
        except Exception as e:
            logger.error("스키마 컨텍스트 조회 실패: %s", e)
            return []

        context = [
            SchemaContextItem(
                table_name=hit.get("table_name") or "unknown",
                text=hit.get("text") or "",
                columns=hit.get("columns") or "",
                score=hit.get("distance") or 0.0,
            )
            for hit in hits
        ]
        logger.info("스키마 컨텍스트 %d건 조회", len(context))
        for item in context:
            logger.debug("  %s (%.4f): %s", item.table_name, item.score, item.columns)
        return context
