"""쿼리 분석기 - 쿼리 타입, 대상 테이블, 읽기 전용 여부 추출."""

import re

import sqlglot
from sqlglot.errors import SqlglotError

from datashorts.core.models import QueryMetadata

# sqlglot 표현식 key -> 쿼리 타입
STATEMENT_TYPES = {
    "select": "SELECT",
    "union": "SELECT",
    "intersect": "SELECT",
    "except": "SELECT",
    "insert": "INSERT",
    "update": "UPDATE",
    "delete": "DELETE",
    "merge": "MERGE",
    "create": "CREATE",
    "drop": "DROP",
    "alter": "ALTER",
    "altertable": "ALTER",
    "truncatetable": "TRUNCATE",
    "describe": "DESCRIBE",
}

# 파싱이 불가능할 때 사용하는 선행 키워드
LEADING_KEYWORDS = [
    ("SELECT", "SELECT"),
    ("INSERT", "INSERT"),
    ("UPDATE", "UPDATE"),
    ("DELETE", "DELETE"),
    ("CREATE", "CREATE"),
    ("DROP", "DROP"),
    ("ALTER", "ALTER"),
    ("TRUNCATE", "TRUNCATE"),
    ("EXPLAIN", "EXPLAIN"),
    ("DESCRIBE", "DESCRIBE"),
    ("DESC", "DESCRIBE"),
    ("SHOW", "SHOW"),
    ("WITH", "CTE"),
]

READ_ONLY_TYPES = {"SELECT", "EXPLAIN", "DESCRIBE", "SHOW"}

TABLE_REFERENCE_PATTERN = re.compile(
    r"\b(?:FROM|JOIN|INTO|UPDATE|TABLE)\s+(?:IF\s+(?:NOT\s+)?EXISTS\s+)?([a-zA-Z_][a-zA-Z0-9_]*)",
    re.IGNORECASE,
)


def determine_query_type(sql: str) -> str:
    """SQL 문의 쿼리 타입을 결정.

    Args:
        sql: SQL 문자열

    Returns:
        SELECT, INSERT, CREATE 등 쿼리 타입 (판별 불가 시 UNKNOWN)
    """
    try:
        expression = sqlglot.parse_one(sql, read="postgres")
        query_type = STATEMENT_TYPES.get(expression.key)
        if query_type:
            return query_type
    except SqlglotError:
        pass

    upper_sql = sql.upper().strip()
    for keyword, query_type in LEADING_KEYWORDS:
        if re.match(rf"{keyword}\b", upper_sql):
            return query_type
    return "UNKNOWN"


def extract_table_references(sql: str) -> list[str]:
    """FROM / JOIN / INTO / UPDATE / TABLE 뒤의 테이블 이름을 추출.

    Args:
        sql: SQL 문자열

    Returns:
        소문자로 정규화된 중복 없는 테이블 이름 리스트 (등장 순서 유지)
    """
    tables: list[str] = []
    for match in TABLE_REFERENCE_PATTERN.finditer(sql):
        name = match.group(1).lower()
        if name not in tables:
            tables.append(name)
    return tables


def analyze_query_metadata(sql: str) -> QueryMetadata:
    """쿼리 메타데이터를 분석.

    Args:
        sql: SQL 문자열

    Returns:
        QueryMetadata 객체
    """
    query_type = determine_query_type(sql)
    upper_sql = sql.upper()
    read_only = (
        query_type in READ_ONLY_TYPES
        or upper_sql.lstrip().startswith("EXPLAIN")
        or "DESCRIBE" in upper_sql
    )
    return QueryMetadata(
        query_type=query_type,
        affected_tables=extract_table_references(sql),
        read_only=read_only,
    )
