"""Milvus 벡터 저장소 어댑터."""

from typing import Any

from pymilvus import (
    Collection,
    CollectionSchema,
    DataType,
    FieldSchema,
    connections,
    utility,
)

from datashorts.core.config import Settings

# 스키마 임베딩 메타데이터 필드
METADATA_FIELDS = [
    "connection_id",
    "connection_name",
    "db_type",
    "table_name",
    "text",
    "columns",
    "pipeline",
    "type",
    "updated_at",
]

SEARCH_PARAMS = {"metric_type": "L2", "params": {"nprobe": 10}}

# 동기화 직후의 스캔이 방금 upsert / delete한 레코드를 봐야 함
CONSISTENCY_LEVEL = "Strong"


class MilvusAdapter:
    """Milvus 벡터 저장소 어댑터."""

    def __init__(self, settings: Settings) -> None:
        """어댑터 초기화.

        Args:
            settings: 애플리케이션 설정
        """
        self._settings = settings

    def connect(self, alias: str = "default") -> None:
        """Milvus 서버에 연결."""
        connections.connect(
            alias=alias,
            host=self._settings.milvus_host,
            port=str(self._settings.milvus_port),
        )

    def collection_exists(self, collection_name: str) -> bool:
        """컬렉션 존재 여부 확인.

        Args:
            collection_name: 확인할 컬렉션 이름

        Returns:
            컬렉션 존재 여부
        """
        return utility.has_collection(collection_name)

    def ensure_collection(self, collection_name: str, dimension: int) -> None:
        """스키마 임베딩 컬렉션이 없으면 생성하고 로드.

        Args:
            collection_name: 컬렉션 이름
            dimension: 임베딩 벡터 차원
        """
        if self.collection_exists(collection_name):
            Collection(collection_name).load()
            return

        # max_length는 바이트 수 기준
        fields = [
            FieldSchema(name="id", dtype=DataType.VARCHAR, is_primary=True, max_length=512),
            FieldSchema(name="connection_id", dtype=DataType.VARCHAR, max_length=64),
            FieldSchema(name="connection_name", dtype=DataType.VARCHAR, max_length=1024),
            FieldSchema(name="db_type", dtype=DataType.VARCHAR, max_length=64),
            FieldSchema(name="table_name", dtype=DataType.VARCHAR, max_length=512),
            FieldSchema(name="text", dtype=DataType.VARCHAR, max_length=65535),
            FieldSchema(name="columns", dtype=DataType.VARCHAR, max_length=65535),
            FieldSchema(name="pipeline", dtype=DataType.VARCHAR, max_length=32),
            FieldSchema(name="type", dtype=DataType.VARCHAR, max_length=32),
            FieldSchema(name="updated_at", dtype=DataType.VARCHAR, max_length=64),
            FieldSchema(name="embedding", dtype=DataType.FLOAT_VECTOR, dim=dimension),
        ]
        schema = CollectionSchema(fields=fields, description="데이터베이스 스키마 임베딩")
        collection = Collection(
            name=collection_name, schema=schema, consistency_level=CONSISTENCY_LEVEL
        )

        index_params = {
            "metric_type": "L2",
            "index_type": "IVF_FLAT",
            "params": {"nlist": 128},
        }
        collection.create_index(field_name="embedding", index_params=index_params)
        collection.load()

    def upsert_vectors(self, collection_name: str, vectors: list[dict[str, Any]]) -> int:
        """벡터를 컬렉션에 upsert.

        Args:
            collection_name: 컬렉션 이름
            vectors: upsert할 벡터 데이터 리스트

        Returns:
            upsert된 레코드 수
        """
        if not vectors:
            return 0

        collection = Collection(collection_name)
        result = collection.upsert(vectors)
        return result.upsert_count

    def search(
        self,
        collection_name: str,
        query_vector: list[float],
        limit: int = 10,
        output_fields: list[str] | None = None,
        expr: str | None = None,
    ) -> list[dict[str, Any]]:
        """유사도 검색 수행.

        Args:
            collection_name: 컬렉션 이름
            query_vector: 검색할 벡터
            limit: 반환할 최대 결과 수
            output_fields: 반환할 필드 목록
            expr: 메타데이터 필터 표현식

        Returns:
            검색 결과 리스트
        """
        collection = Collection(collection_name)

        results = collection.search(
            data=[query_vector],
            anns_field="embedding",
            param=SEARCH_PARAMS,
            limit=limit,
            expr=expr,
            output_fields=output_fields or [],
        )

        output = []
        for hits in results:
            for hit in hits:
                item = {
                    "id": hit.id,
                    "distance": hit.distance,
                }
                if output_fields:
                    for field in output_fields:
                        item[field] = hit.entity.get(field)
                output.append(item)

        return output

    def query_by_expr(
        self,
        collection_name: str,
        expr: str,
        output_fields: list[str] | None = None,
        batch_size: int = 500,
    ) -> list[dict[str, Any]]:
        """표현식에 맞는 모든 레코드를 페이지 단위로 조회.

        Args:
            collection_name: 컬렉션 이름
            expr: 필터 표현식
            output_fields: 반환할 필드 목록
            batch_size: 한 번에 가져올 레코드 수

        Returns:
            레코드 딕셔너리 리스트
        """
        collection = Collection(collection_name)
        iterator = collection.query_iterator(
            batch_size=batch_size,
            expr=expr,
            output_fields=output_fields or METADATA_FIELDS,
            consistency_level=CONSISTENCY_LEVEL,
        )

        records: list[dict[str, Any]] = []
        try:
            while True:
                page = iterator.next()
                if not page:
                    break
                records.extend(dict(row) for row in page)
        finally:
            iterator.close()

        return records

    def delete_by_expr(self, collection_name: str, expr: str) -> int:
        """표현식으로 벡터 삭제.

        Args:
            collection_name: 컬렉션 이름
            expr: 삭제 조건 표현식

        Returns:
            삭제된 벡터 수
        """
        collection = Collection(collection_name)
        result = collection.delete(expr)
        return result.delete_count

    def drop_collection(self, collection_name: str) -> bool:
        """컬렉션을 삭제.

        Returns:
            삭제 여부 (컬렉션이 없으면 False)
        """
        if not self.collection_exists(collection_name):
            return False
        utility.drop_collection(collection_name)
        return True


def build_filter_expr(**fields: str) -> str:
    """필드 일치 조건들을 AND로 묶은 Milvus 필터 표현식을 생성.

    Args:
        fields: 필드명 -> 문자열 값

    Returns:
        필터 표현식 (예: 'connection_id == "1" and type == "schema"')
    """
    clauses = []
    for name, value in fields.items():
        escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
        clauses.append(f'{name} == "{escaped}"')
    return " and ".join(clauses)
