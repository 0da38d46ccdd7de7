"""SQL 문에서 스키마 변경 여부와 타입을 감지."""

import re

from datashorts.core.models import ChangeDetection, ChangeType

IDENTIFIER = r"([A-Z_][A-Z0-9_]*)"

# 먼저 매칭되는 규칙이 우선한다
TABLE_CHANGE_PATTERNS = [
    (ChangeType.CREATE_TABLE, re.compile(rf"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?{IDENTIFIER}")),
    (ChangeType.DROP_TABLE, re.compile(rf"DROP\s+TABLE\s+(?:IF\s+EXISTS\s+)?{IDENTIFIER}")),
    (ChangeType.ALTER_TABLE, re.compile(rf"ALTER\s+TABLE\s+{IDENTIFIER}")),
]

OTHER_SCHEMA_KEYWORDS = ["CREATE INDEX", "DROP INDEX", "RENAME TABLE"]

SCHEMA_CHANGE_KEYWORDS = [
    "CREATE TABLE",
    "DROP TABLE",
    "ALTER TABLE",
    "ADD COLUMN",
    "DROP COLUMN",
    "RENAME COLUMN",
    "MODIFY COLUMN",
    "ALTER COLUMN",
    "CREATE INDEX",
    "DROP INDEX",
    "RENAME TABLE",
]


def detect_schema_change_type(sql: str) -> ChangeDetection:
    """SQL 문의 스키마 변경 타입과 대상 테이블을 감지.

    한 번의 호출은 하나의 문장만 다루며, 여러 문장이 섞여 있어도 가장 먼저
    매칭되는 규칙 하나만 적용된다.

    Args:
        sql: SQL 문자열

    Returns:
        ChangeDetection 객체 (테이블 이름은 소문자)
    """
    upper_sql = sql.upper().strip()

    for change_type, pattern in TABLE_CHANGE_PATTERNS:
        match = pattern.search(upper_sql)
        if match:
            return ChangeDetection(type=change_type, affected_table=match.group(1).lower())

    if any(keyword in upper_sql for keyword in OTHER_SCHEMA_KEYWORDS):
        return ChangeDetection(type=ChangeType.OTHER)

    return ChangeDetection(type=ChangeType.NONE)


def detect_schema_changes(sql: str) -> bool:
    """SQL 문이 스키마를 바꿀 수 있는지 여부.

    Args:
        sql: SQL 문자열

    Returns:
        스키마 변경 키워드 포함 여부
    """
    upper_sql = sql.upper().strip()
    return any(keyword in upper_sql for keyword in SCHEMA_CHANGE_KEYWORDS)
