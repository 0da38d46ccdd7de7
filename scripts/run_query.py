#!/usr/bin/env python
"""원격 쿼리 실행 스크립트.

사용법:
    python scripts/run_query.py 3 "SELECT * FROM users"
    python scripts/run_query.py 3 "DROP TABLE logs" --force
    python scripts/run_query.py 3 --file migration.sql --transactional --stop-on-error
    python scripts/run_query.py 3 "SELECT ..." --explain
"""

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# 프로젝트 루트 경로 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from datashorts.bootstrap import build_services
from datashorts.core.config import Settings
from datashorts.core.models import (
    BatchOptions,
    BatchQueryResult,
    QueryOptions,
    RemoteQueryResult,
)

console = Console()

MAX_DISPLAY_ROWS = 20


def load_queries(path: Path) -> list[str]:
    """SQL 파일을 세미콜론 단위로 분리."""
    text = path.read_text(encoding="utf-8")
    return [q.strip() for q in text.split(";") if q.strip()]


def print_query_result(result: RemoteQueryResult) -> None:
    """단일 쿼리 결과 출력."""
    if result.validation:
        validation = result.validation
        style = "red" if validation.is_high_risk else "yellow"
        lines = [f"위험도: [{style}]{validation.risk_level}[/{style}]"]
        lines += [f"⚠️  {w}" for w in validation.warnings]
        lines += [f"💡 {s}" for s in validation.suggestions]
        console.print(Panel("\n".join(lines), title="검증 결과", border_style=style))

    if result.optimization:
        console.print(Panel(
            f"{result.optimization.optimized_query}\n\n[dim]{result.optimization.explanation}[/dim]",
            title="최적화 제안",
            border_style="cyan",
        ))

    if not result.success:
        console.print(f"[red]❌ 실행 실패: {result.error}[/red]")
        return

    data = result.data
    console.print(f"[green]✅ {data.row_count}행, {data.execution_time_ms}ms[/green]")
    if data.columns:
        table = Table(show_header=True, header_style="bold magenta")
        for column in data.columns:
            table.add_column(column)
        for row in data.rows[:MAX_DISPLAY_ROWS]:
            table.add_row(*(str(row.get(c)) for c in data.columns))
        console.print(table)

    if result.schema_update.updated:
        update = result.schema_update
        console.print(
            f"[cyan]🔄 스키마 동기화 ({update.type}): 테이블 {update.tables_processed}개, "
            f"+{update.vectors_added} / -{update.vectors_removed} / ~{update.vectors_updated}[/cyan]"
        )


def print_batch_result(result: BatchQueryResult) -> None:
    """배치 결과 출력."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", width=4)
    table.add_column("상태")
    table.add_column("행", justify="right")
    table.add_column("에러")

    for index, item in enumerate(result.results, start=1):
        status = "[green]✅[/green]" if item.success else "[red]❌[/red]"
        rows = str(item.data.row_count) if item.data else "-"
        table.add_row(str(index), status, rows, item.error or "")

    console.print(table)
    console.print(
        f"성공 {result.success_count}건, 실패 {result.error_count}건, "
        f"총 {result.total_execution_time_ms}ms"
    )
    if result.schema_update.updated:
        update = result.schema_update
        console.print(
            f"[cyan]🔄 스키마 동기화 누적: 테이블 {update.total_tables_processed}개, "
            f"+{update.total_vectors_added} / -{update.total_vectors_removed} / "
            f"~{update.total_vectors_updated}[/cyan]"
        )
    if result.error:
        console.print(f"[red]❌ {result.error}[/red]")


def main():
    """메인 함수."""
    parser = argparse.ArgumentParser(
        description="원격 쿼리 에이전트로 SQL 실행",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("connection_id", help="db_connections.id")
    parser.add_argument("sql", nargs="?", default=None, help="실행할 SQL")
    parser.add_argument("--file", type=Path, default=None, help="배치로 실행할 SQL 파일")
    parser.add_argument("--no-validate", action="store_true", help="LLM 검증 생략")
    parser.add_argument("--optimize", action="store_true", help="LLM 최적화 제안 요청")
    parser.add_argument("--force", action="store_true", help="high 위험도 쿼리도 실행")
    parser.add_argument("--no-history", action="store_true", help="이력 저장 생략")
    parser.add_argument("--transactional", action="store_true", help="배치를 트랜잭션으로 실행")
    parser.add_argument("--stop-on-error", action="store_true", help="배치 중 실패 시 중단")
    parser.add_argument("--explain", action="store_true", help="실행 대신 쿼리 설명")

    args = parser.parse_args()

    if not args.sql and not args.file:
        parser.error("SQL 또는 --file 중 하나가 필요합니다")

    services = build_services(Settings())
    try:
        if args.explain:
            console.print(Panel(services.agent.explain_query(args.sql), title="쿼리 설명"))
            sys.exit(0)

        if args.file:
            result = services.agent.batch_query(
                load_queries(args.file),
                args.connection_id,
                options=BatchOptions(
                    validate_queries=not args.no_validate,
                    stop_on_error=args.stop_on_error,
                    transactional=args.transactional,
                    save_to_history=not args.no_history,
                ),
            )
            print_batch_result(result)
        else:
            result = services.agent.remote_query(
                args.sql,
                args.connection_id,
                options=QueryOptions(
                    validate_query=not args.no_validate,
                    optimize_query=args.optimize,
                    force_execution=args.force,
                    save_to_history=not args.no_history,
                ),
            )
            print_query_result(result)
    finally:
        services.close()

    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
