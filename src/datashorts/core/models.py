"""Core 데이터 모델 정의."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

# 스키마 임베딩 네임스페이스 태그
PIPELINE_TAG = "pipeline2"
SCHEMA_RECORD_TYPE = "schema"

# 테이블당 임베딩되는 문장 변형 수
VARIANTS_PER_TABLE = 4


@dataclass
class Column:
    """테이블 컬럼."""

    column_name: str
    data_type: str
    is_nullable: str = "YES"
    column_default: Optional[str] = None

    def describe(self) -> str:
        """"name (type)" 형태의 설명을 반환."""
        return f"{self.column_name} ({self.data_type})"


@dataclass
class TableSchema:
    """특정 시점의 테이블 구조."""

    table_name: str
    columns: list[Column] = field(default_factory=list)

    def column_signature(self) -> str:
        """변경 감지용 컬럼 시그니처.

        컬럼 순서, nullable 여부, 기본값은 시그니처에 포함되지 않는다.
        """
        return ",".join(
            sorted(f"{c.column_name}({c.data_type})" for c in self.columns)
        )

    def column_descriptions(self) -> str:
        """메타데이터에 저장되는 컬럼 설명 문자열."""
        return ", ".join(c.describe() for c in self.columns)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tableName": self.table_name,
            "columns": [
                {
                    "column_name": c.column_name,
                    "data_type": c.data_type,
                    "is_nullable": c.is_nullable,
                    "column_default": c.column_default,
                }
                for c in self.columns
            ],
        }


@dataclass
class SchemaVectorRecord:
    """벡터 저장소에 저장되는 스키마 임베딩 레코드."""

    id: str
    values: list[float]
    metadata: dict[str, Any]


@dataclass
class SchemaComparison:
    """두 스키마 스냅샷의 비교 결과."""

    added_tables: list[str] = field(default_factory=list)
    removed_tables: list[str] = field(default_factory=list)
    modified_tables: list[str] = field(default_factory=list)
    unchanged_tables: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added_tables or self.removed_tables or self.modified_tables)


class ChangeType(Enum):
    """SQL 문에서 감지된 스키마 변경 타입."""

    CREATE_TABLE = "CREATE_TABLE"
    DROP_TABLE = "DROP_TABLE"
    ALTER_TABLE = "ALTER_TABLE"
    OTHER = "OTHER"
    NONE = "NONE"


@dataclass
class ChangeDetection:
    """스키마 변경 감지 결과."""

    type: ChangeType
    affected_table: Optional[str] = None


@dataclass
class UpdateDetails:
    """동기화 결과의 테이블별 분류."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)


@dataclass
class IncrementalUpdateResult:
    """스키마 임베딩 동기화 결과 (호출마다 새로 생성되며 저장되지 않음)."""

    success: bool
    tables_processed: int = 0
    vectors_added: int = 0
    vectors_removed: int = 0
    vectors_updated: int = 0
    error: Optional[str] = None
    details: UpdateDetails = field(default_factory=UpdateDetails)
    strategy: str = "incremental"
    failed_deletions: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, strategy: str = "incremental") -> "IncrementalUpdateResult":
        """실패 결과를 생성."""
        return cls(success=False, error=error, strategy=strategy)


@dataclass
class TableDeletion:
    """테이블 단위 임베딩 삭제 결과."""

    table_name: str
    success: bool
    error: Optional[str] = None


@dataclass
class DeletionReport:
    """여러 테이블에 대한 임베딩 삭제 결과 모음."""

    outcomes: list[TableDeletion] = field(default_factory=list)

    @property
    def deleted_tables(self) -> list[str]:
        return [o.table_name for o in self.outcomes if o.success]

    @property
    def failed_tables(self) -> list[str]:
        return [o.table_name for o in self.outcomes if not o.success]

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_tables)


@dataclass
class ConnectionRecord:
    """사용자가 등록한 데이터베이스 연결 정보."""

    id: int
    connection_name: str
    db_type: str
    postgres_url: Optional[str] = None
    mongo_url: Optional[str] = None
    table_schema: Any = None


@dataclass
class ExecutionResult:
    """SQL 실행 결과."""

    success: bool
    rows: list[dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    error: Optional[str] = None


@dataclass
class QueryMetadata:
    """쿼리 분석 결과."""

    query_type: str
    affected_tables: list[str] = field(default_factory=list)
    read_only: bool = False


@dataclass
class SchemaContextItem:
    """유사도 검색으로 가져온 스키마 임베딩 컨텍스트."""

    table_name: str
    text: str
    columns: str
    score: float = 0.0


@dataclass
class ValidationResult:
    """LLM 쿼리 검증 결과."""

    is_valid: bool = True
    risk_level: str = "low"
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    estimated_impact: str = "Unknown impact"

    @property
    def is_high_risk(self) -> bool:
        return self.risk_level == "high"


@dataclass
class OptimizationSuggestion:
    """LLM 쿼리 최적화 제안."""

    original_query: str
    optimized_query: str
    explanation: str
    expected_improvement: str


@dataclass
class QueryData:
    """성공한 쿼리의 결과 데이터."""

    rows: list[dict[str, Any]]
    row_count: int
    columns: list[str]
    execution_time_ms: int


@dataclass
class SchemaUpdateReport:
    """쿼리 응답에 포함되는 스키마 동기화 요약."""

    updated: bool = False
    type: str = "none"
    tables_processed: int = 0
    vectors_added: int = 0
    vectors_removed: int = 0
    vectors_updated: int = 0
    details: Optional[UpdateDetails] = None

    @classmethod
    def from_result(cls, result: IncrementalUpdateResult) -> "SchemaUpdateReport":
        """동기화 결과를 공개 응답 형태로 변환."""
        if not result.success:
            return cls(updated=False, type=result.strategy)
        return cls(
            updated=True,
            type=result.strategy,
            tables_processed=result.tables_processed,
            vectors_added=result.vectors_added,
            vectors_removed=result.vectors_removed,
            vectors_updated=result.vectors_updated,
            details=result.details,
        )


@dataclass
class HistoryOutcome:
    """쿼리 이력 저장 결과."""

    saved: bool = False
    skipped: bool = False
    entry_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class QueryOptions:
    """원격 쿼리 실행 옵션."""

    validate_query: bool = True
    optimize_query: bool = False
    force_execution: bool = False
    save_to_history: bool = True
    chat_id: Optional[int] = None


@dataclass
class BatchOptions:
    """배치 쿼리 실행 옵션."""

    validate_queries: bool = False
    stop_on_error: bool = False
    transactional: bool = False
    save_to_history: bool = True
    chat_id: Optional[int] = None


@dataclass
class RemoteQueryResult:
    """원격 쿼리 실행 결과."""

    success: bool
    data: Optional[QueryData] = None
    error: Optional[str] = None
    validation: Optional[ValidationResult] = None
    optimization: Optional[OptimizationSuggestion] = None
    metadata: Optional[QueryMetadata] = None
    schema_update: SchemaUpdateReport = field(default_factory=SchemaUpdateReport)
    history: Optional[HistoryOutcome] = None


@dataclass
class BatchSchemaUpdate:
    """배치 전체에 걸쳐 누적된 스키마 동기화 요약."""

    updated: bool = False
    total_tables_processed: int = 0
    total_vectors_added: int = 0
    total_vectors_removed: int = 0
    total_vectors_updated: int = 0
    update_details: list[dict[str, Any]] = field(default_factory=list)

    def accumulate(self, query_index: int, query: str, report: SchemaUpdateReport) -> None:
        """개별 쿼리의 동기화 결과를 누적."""
        self.updated = True
        self.total_tables_processed += report.tables_processed
        self.total_vectors_added += report.vectors_added
        self.total_vectors_removed += report.vectors_removed
        self.total_vectors_updated += report.vectors_updated
        self.update_details.append(
            {
                "query_index": query_index,
                "query": query[:100],
                "type": report.type,
                "tables_processed": report.tables_processed,
                "vectors_added": report.vectors_added,
                "vectors_removed": report.vectors_removed,
                "vectors_updated": report.vectors_updated,
            }
        )


@dataclass
class BatchQueryResult:
    """배치 쿼리 실행 결과."""

    success: bool
    results: list[RemoteQueryResult] = field(default_factory=list)
    total_execution_time_ms: int = 0
    success_count: int = 0
    error_count: int = 0
    schema_update: BatchSchemaUpdate = field(default_factory=BatchSchemaUpdate)
    error: Optional[str] = None


@dataclass
class QueryHistoryEntry:
    """query_history 테이블에 저장되는 이력 항목."""

    connection_id: int
    sql_query: str
    success: bool
    query_type: str = "UNKNOWN"
    chat_id: Optional[int] = None
    execution_time_ms: Optional[int] = None
    row_count: Optional[int] = None
    error_message: Optional[str] = None
    result_data: Optional[list[dict[str, Any]]] = None
    result_columns: Optional[list[str]] = None
    validation_result: Optional[dict[str, Any]] = None
    optimization_suggestion: Optional[dict[str, Any]] = None
    validation_enabled: bool = True
    optimization_enabled: bool = False
    force_execution: bool = False
    generated_by: str = "manual"


@dataclass
class QueryStatistics:
    """연결별 쿼리 실행 통계."""

    total_queries: int = 0
    successful_queries: int = 0
    failed_queries: int = 0
    average_execution_time_ms: int = 0
    total_rows_processed: int = 0
    queries_last_30_days: int = 0
    query_type_breakdown: dict[str, int] = field(default_factory=dict)
    computed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> int:
        if self.total_queries == 0:
            return 0
        return round(self.successful_queries / self.total_queries * 100)
