"""스키마 변경 감지 테스트."""

import pytest

from datashorts.core.models import ChangeType
from datashorts.sync.change_detector import detect_schema_change_type, detect_schema_changes


class TestDetectSchemaChangeType:
    """변경 타입 감지 테스트."""

    @pytest.mark.parametrize(
        "sql, change_type, table",
        [
            ("CREATE TABLE orders (id serial PRIMARY KEY, user_id int)", ChangeType.CREATE_TABLE, "orders"),
            ("create table if not exists Orders (id int)", ChangeType.CREATE_TABLE, "orders"),
            ("DROP TABLE IF EXISTS logs", ChangeType.DROP_TABLE, "logs"),
            ("  drop table logs;", ChangeType.DROP_TABLE, "logs"),
            ("ALTER TABLE users ADD COLUMN age int", ChangeType.ALTER_TABLE, "users"),
        ],
    )
    def test_should_detect_table_changes(self, sql, change_type, table) -> None:
        detection = detect_schema_change_type(sql)

        assert detection.type == change_type
        assert detection.affected_table == table

    @pytest.mark.parametrize(
        "sql",
        [
            "CREATE INDEX idx_users_email ON users (email)",
            "DROP INDEX idx_users_email",
            "RENAME TABLE a TO b",
        ],
    )
    def test_should_detect_other_schema_changes_without_table(self, sql) -> None:
        detection = detect_schema_change_type(sql)

        assert detection.type == ChangeType.OTHER
        assert detection.affected_table is None

    def test_should_return_none_for_plain_query(self) -> None:
        detection = detect_schema_change_type("SELECT * FROM users")

        assert detection.type == ChangeType.NONE
        assert detection.affected_table is None

    def test_should_prefer_alter_table_over_index_keyword(self) -> None:
        """ALTER TABLE과 CREATE INDEX가 함께 있으면 ALTER_TABLE이 우선해야 함."""
        sql = "ALTER TABLE users ADD COLUMN age int; CREATE INDEX idx_age ON users (age)"

        detection = detect_schema_change_type(sql)

        assert detection.type == ChangeType.ALTER_TABLE
        assert detection.affected_table == "users"

    def test_should_prefer_create_over_drop(self) -> None:
        """먼저 매칭되는 규칙 하나만 적용되어야 함."""
        detection = detect_schema_change_type("DROP TABLE a; CREATE TABLE b (id int)")

        assert detection.type == ChangeType.CREATE_TABLE
        assert detection.affected_table == "b"


class TestDetectSchemaChanges:
    """스키마 변경 여부 게이트 테스트."""

    @pytest.mark.parametrize(
        "sql",
        [
            "CREATE TABLE x (id int)",
            "alter table users rename column a to b",
            "ALTER TABLE users ALTER COLUMN age TYPE bigint",
            "DROP INDEX idx",
        ],
    )
    def test_should_detect_schema_changing_statements(self, sql) -> None:
        assert detect_schema_changes(sql) is True

    @pytest.mark.parametrize(
        "sql",
        ["SELECT * FROM users", "INSERT INTO users (id) VALUES (1)", "UPDATE users SET a = 1"],
    )
    def test_should_ignore_data_statements(self, sql) -> None:
        assert detect_schema_changes(sql) is False
