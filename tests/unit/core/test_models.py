"""Core 데이터 모델 테스트."""

from datetime import datetime

from datashorts.core.models import (
    BatchSchemaUpdate,
    Column,
    DeletionReport,
    IncrementalUpdateResult,
    QueryStatistics,
    SchemaUpdateReport,
    TableDeletion,
    TableSchema,
    UpdateDetails,
    ValidationResult,
)


class TestTableSchema:
    """TableSchema 모델 테스트."""

    def test_should_build_signature_ignoring_column_order(self) -> None:
        """컬럼 순서가 달라도 시그니처는 같아야 함."""
        # Given
        a = TableSchema("users", [Column("id", "integer"), Column("email", "text")])
        b = TableSchema("users", [Column("email", "text"), Column("id", "integer")])

        # Then
        assert a.column_signature() == b.column_signature()
        assert a.column_signature() == "email(text),id(integer)"

    def test_should_ignore_nullability_and_default_in_signature(self) -> None:
        """nullable 여부와 기본값은 시그니처에 영향을 주지 않아야 함."""
        a = TableSchema("users", [Column("id", "integer", "NO", "nextval('users_id_seq')")])
        b = TableSchema("users", [Column("id", "integer", "YES", None)])

        assert a.column_signature() == b.column_signature()

    def test_should_describe_columns_in_catalog_order(self) -> None:
        """컬럼 설명은 카탈로그 순서를 유지해야 함."""
        table = TableSchema("users", [Column("id", "integer"), Column("email", "text")])

        assert table.column_descriptions() == "id (integer), email (text)"

    def test_should_convert_to_cache_dict(self) -> None:
        """table_schema 캐시용 딕셔너리로 변환해야 함."""
        table = TableSchema("users", [Column("id", "integer", "NO")])

        result = table.to_dict()

        assert result["tableName"] == "users"
        assert result["columns"][0]["column_name"] == "id"
        assert result["columns"][0]["is_nullable"] == "NO"


class TestIncrementalUpdateResult:
    """IncrementalUpdateResult 모델 테스트."""

    def test_should_create_failure_with_zero_counts(self) -> None:
        """실패 결과는 카운트가 0이어야 함."""
        result = IncrementalUpdateResult.failure("Connection not found")

        assert result.success is False
        assert result.error == "Connection not found"
        assert result.tables_processed == 0
        assert result.vectors_added == 0


class TestDeletionReport:
    """DeletionReport 모델 테스트."""

    def test_should_split_deleted_and_failed_tables(self) -> None:
        """삭제 성공 / 실패 테이블을 구분해야 함."""
        report = DeletionReport(
            outcomes=[
                TableDeletion("users", True),
                TableDeletion("orders", False, "timeout"),
                TableDeletion("items", True),
            ]
        )

        assert report.deleted_tables == ["users", "items"]
        assert report.failed_tables == ["orders"]
        assert report.deleted_count == 2


class TestSchemaUpdateReport:
    """SchemaUpdateReport 변환 테스트."""

    def test_should_map_successful_result(self) -> None:
        """성공한 동기화 결과는 updated=True와 전략 타입으로 변환되어야 함."""
        result = IncrementalUpdateResult(
            success=True,
            tables_processed=1,
            vectors_added=4,
            details=UpdateDetails(added=["orders"]),
            strategy="targeted",
        )

        report = SchemaUpdateReport.from_result(result)

        assert report.updated is True
        assert report.type == "targeted"
        assert report.vectors_added == 4
        assert report.details.added == ["orders"]

    def test_should_map_failed_result_as_not_updated(self) -> None:
        """실패한 동기화 결과는 updated=False로 변환되어야 함."""
        report = SchemaUpdateReport.from_result(IncrementalUpdateResult.failure("boom"))

        assert report.updated is False
        assert report.vectors_added == 0


class TestBatchSchemaUpdate:
    """BatchSchemaUpdate 누적 테스트."""

    def test_should_accumulate_totals(self) -> None:
        """여러 쿼리의 동기화 결과를 합산해야 함."""
        batch = BatchSchemaUpdate()

        batch.accumulate(0, "CREATE TABLE a (id int)", SchemaUpdateReport(True, "targeted", 1, 4, 0, 0))
        batch.accumulate(2, "DROP TABLE b", SchemaUpdateReport(True, "targeted", 1, 0, 4, 0))

        assert batch.updated is True
        assert batch.total_tables_processed == 2
        assert batch.total_vectors_added == 4
        assert batch.total_vectors_removed == 4
        assert [d["query_index"] for d in batch.update_details] == [0, 2]


class TestValidationResult:
    """ValidationResult 모델 테스트."""

    def test_should_detect_high_risk(self) -> None:
        assert ValidationResult(risk_level="high").is_high_risk is True
        assert ValidationResult(risk_level="medium").is_high_risk is False


class TestQueryStatistics:
    """QueryStatistics 모델 테스트."""

    def test_should_compute_success_rate(self) -> None:
        stats = QueryStatistics(total_queries=3, successful_queries=2, computed_at=datetime.now())

        assert stats.success_rate == 67

    def test_should_return_zero_rate_without_queries(self) -> None:
        assert QueryStatistics().success_rate == 0
