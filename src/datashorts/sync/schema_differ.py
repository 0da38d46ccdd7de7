"""스키마 비교기."""

from datashorts.core.models import SchemaComparison, TableSchema


def compare_schemas(
    current: list[TableSchema], existing: list[TableSchema]
) -> SchemaComparison:
    """현재 스키마와 기존(임베딩된) 스키마를 비교.

    양쪽에 모두 있는 테이블은 컬럼 시그니처가 다르면 modified, 같으면
    unchanged로 분류한다. 이름이 바뀐 테이블은 removed + added로 나타난다.

    Args:
        current: 라이브 카탈로그에서 읽은 스키마
        existing: 임베딩 메타데이터에서 재구성한 스키마

    Returns:
        SchemaComparison 객체
    """
    current_names = {t.table_name for t in current}
    existing_by_name = {t.table_name: t for t in existing}

    comparison = SchemaComparison()

    for table in current:
        previous = existing_by_name.get(table.table_name)
        if previous is None:
            comparison.added_tables.append(table.table_name)
        elif table.column_signature() != previous.column_signature():
            comparison.modified_tables.append(table.table_name)
        else:
            comparison.unchanged_tables.append(table.table_name)

    comparison.removed_tables = [
        name for name in existing_by_name if name not in current_names
    ]

    return comparison
