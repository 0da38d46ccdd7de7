"""임베딩 메타데이터로부터 이전 스키마 스냅샷을 재구성."""

import re
from typing import Any

from datashorts.adapters.vector_store.milvus_adapter import build_filter_expr
from datashorts.core.logging import get_logger
from datashorts.core.models import PIPELINE_TAG, SCHEMA_RECORD_TYPE, Column, TableSchema

logger = get_logger(__name__)

# "name (type)" 형식의 컬럼 설명
COLUMN_DESCRIPTION_PATTERN = re.compile(r"^(.+?)\s*\((.+?)\)$")


def parse_column_descriptions(columns_text: str) -> list[Column]:
    """"id (integer), name (varchar)" 형식의 문자열을 Column 리스트로 변환.

    nullable 여부와 기본값은 메타데이터에 저장되지 않으므로 'YES'/None으로 채운다.

    Args:
        columns_text: 메타데이터에 저장된 컬럼 설명 문자열

    Returns:
        Column 리스트 (형식에 맞지 않는 항목은 제외)
    """
    columns = []
    for item in columns_text.split(", "):
        match = COLUMN_DESCRIPTION_PATTERN.match(item)
        if match:
            columns.append(
                Column(
                    column_name=match.group(1).strip(),
                    data_type=match.group(2).strip(),
                    is_nullable="YES",
                    column_default=None,
                )
            )
    return columns


class EmbeddingSchemaReader:
    """벡터 저장소에 저장된 스키마 임베딩 메타데이터를 스캔하는 서비스."""

    def __init__(
        self,
        milvus_adapter: Any,
        collection_name: str,
        batch_size: int = 500,
    ) -> None:
        """리더 초기화.

        Args:
            milvus_adapter: Milvus 어댑터
            collection_name: 컬렉션 이름
            batch_size: 페이지당 조회할 레코드 수
        """
        self._milvus_adapter = milvus_adapter
        self._collection_name = collection_name
        self._batch_size = batch_size

    def get_existing_schema(self, connection_id: str) -> list[TableSchema]:
        """연결에 대해 이미 임베딩된 스키마를 재구성.

        테이블마다 저장된 4개의 벡터는 같은 columns 메타데이터를 가지므로
        테이블당 첫 번째 레코드만 사용한다.

        Args:
            connection_id: 연결 ID

        Returns:
            TableSchema 리스트 (임베딩이 없으면 빈 리스트)
        """
        expr = build_filter_expr(
            connection_id=str(connection_id),
            pipeline=PIPELINE_TAG,
            type=SCHEMA_RECORD_TYPE,
        )
        records = self._milvus_adapter.query_by_expr(
            self._collection_name,
            expr,
            output_fields=["table_name", "columns"],
            batch_size=self._batch_size,
        )

        if not records:
            logger.info("연결 %s에 저장된 스키마 임베딩이 없음", connection_id)
            return []

        tables: dict[str, TableSchema] = {}
        for record in records:
            table_name = record.get("table_name")
            columns_text = record.get("columns")
            if not table_name or not columns_text or table_name in tables:
                continue
            tables[table_name] = TableSchema(
                table_name=table_name,
                columns=parse_column_descriptions(columns_text),
            )

        logger.info("임베딩 메타데이터에서 %d개 테이블 스키마 재구성", len(tables))
        return list(tables.values())
