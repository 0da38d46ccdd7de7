"""스키마 비교기 테스트."""

import random

from datashorts.core.models import Column, TableSchema
from datashorts.sync.schema_differ import compare_schemas


def _table(name: str, *columns: tuple[str, str]) -> TableSchema:
    return TableSchema(name, [Column(n, t) for n, t in columns])


class TestCompareSchemas:
    """스키마 비교 테스트."""

    def test_should_classify_every_table_exactly_once(self) -> None:
        """모든 테이블이 정확히 하나의 분류에 속해야 함."""
        # Given
        current = [
            _table("users", ("id", "integer"), ("email", "text")),
            _table("orders", ("id", "integer"), ("total", "numeric")),
            _table("reviews", ("id", "integer")),
        ]
        existing = [
            _table("users", ("id", "integer"), ("email", "text")),
            _table("orders", ("id", "integer")),
            _table("logs", ("id", "integer")),
        ]

        # When
        comparison = compare_schemas(current, existing)

        # Then
        assert comparison.added_tables == ["reviews"]
        assert comparison.removed_tables == ["logs"]
        assert comparison.modified_tables == ["orders"]
        assert comparison.unchanged_tables == ["users"]
        buckets = (
            comparison.added_tables
            + comparison.removed_tables
            + comparison.modified_tables
            + comparison.unchanged_tables
        )
        assert sorted(buckets) == sorted({"users", "orders", "reviews", "logs"})

    def test_should_report_no_changes_for_identical_snapshots(self) -> None:
        tables = [_table("users", ("id", "integer"))]

        comparison = compare_schemas(tables, tables)

        assert comparison.has_changes is False
        assert comparison.unchanged_tables == ["users"]

    def test_should_ignore_column_order(self) -> None:
        """컬럼 순서만 다른 테이블은 unchanged여야 함."""
        current = [_table("users", ("id", "integer"), ("email", "text"), ("name", "text"))]
        existing = [_table("users", ("name", "text"), ("id", "integer"), ("email", "text"))]

        assert compare_schemas(current, existing).unchanged_tables == ["users"]

    def test_should_be_independent_of_input_order(self) -> None:
        """입력 리스트 순서를 섞어도 분류 결과는 같아야 함."""
        current = [_table(f"t{i}", ("id", "integer"), ("v", "text" if i % 2 else "int")) for i in range(8)]
        existing = [_table(f"t{i}", ("id", "integer"), ("v", "text")) for i in range(2, 10)]
        expected = compare_schemas(current, existing)

        shuffled_current = current[:]
        shuffled_existing = existing[:]
        random.Random(7).shuffle(shuffled_current)
        random.Random(11).shuffle(shuffled_existing)
        result = compare_schemas(shuffled_current, shuffled_existing)

        assert sorted(result.added_tables) == sorted(expected.added_tables)
        assert sorted(result.removed_tables) == sorted(expected.removed_tables)
        assert sorted(result.modified_tables) == sorted(expected.modified_tables)
        assert sorted(result.unchanged_tables) == sorted(expected.unchanged_tables)

    def test_should_ignore_nullability_changes(self) -> None:
        """nullable 여부나 기본값만 바뀐 테이블은 unchanged여야 함."""
        current = [TableSchema("users", [Column("id", "integer", "NO", "0")])]
        existing = [TableSchema("users", [Column("id", "integer", "YES", None)])]

        assert compare_schemas(current, existing).has_changes is False

    def test_should_treat_rename_as_remove_and_add(self) -> None:
        """이름이 바뀐 테이블은 removed와 added로 나타나야 함."""
        current = [_table("customers", ("id", "integer"))]
        existing = [_table("users", ("id", "integer"))]

        comparison = compare_schemas(current, existing)

        assert comparison.removed_tables == ["users"]
        assert comparison.added_tables == ["customers"]
        assert comparison.modified_tables == []
