#!/usr/bin/env python
"""스키마 임베딩 동기화 스크립트.

사용법:
    python scripts/sync_schema.py 3                                  # 전체 증분 동기화
    python scripts/sync_schema.py 3 --sql "ALTER TABLE users ADD ..."  # SQL 기반 스마트 동기화
    python scripts/sync_schema.py 3 --stats                          # 쿼리 통계 출력
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
from datashorts.core.models import IncrementalUpdateResult, QueryStatistics

console = Console()


def print_result_panel(result: IncrementalUpdateResult) -> None:
    """동기화 결과를 패널로 출력."""
    result_table = Table(show_header=False, box=None)
    result_table.add_column("항목", style="cyan")
    result_table.add_column("값", style="yellow")

    result_table.add_row("🧭 전략", result.strategy)
    result_table.add_row("📋 처리된 테이블", f"{result.tables_processed}개")
    result_table.add_row("➕ 추가된 벡터", f"{result.vectors_added}개")
    result_table.add_row("➖ 삭제된 벡터", f"{result.vectors_removed}개")
    result_table.add_row("🔄 갱신된 벡터", f"{result.vectors_updated}개")

    status = "[bold green]✅ 성공[/bold green]" if result.success else "[bold red]❌ 실패[/bold red]"
    result_table.add_row("📊 결과", status)
    if result.error:
        result_table.add_row("❌ 에러", result.error)

    console.print(Panel(
        result_table,
        title="[bold blue]스키마 동기화 결과[/bold blue]",
        border_style="green" if result.success else "red",
    ))

    detail_table = Table(show_header=True, header_style="bold magenta")
    detail_table.add_column("분류")
    detail_table.add_column("테이블")
    detail_table.add_row("added", ", ".join(result.details.added) or "-")
    detail_table.add_row("removed", ", ".join(result.details.removed) or "-")
    detail_table.add_row("modified", ", ".join(result.details.modified) or "-")
    detail_table.add_row("unchanged", ", ".join(result.details.unchanged) or "-")
    if result.failed_deletions:
        detail_table.add_row("삭제 실패", ", ".join(result.failed_deletions), style="red")
    console.print(detail_table)


def print_statistics(stats: QueryStatistics) -> None:
    """쿼리 통계를 테이블로 출력."""
    table = Table(title="쿼리 통계", show_header=False)
    table.add_column("항목", style="cyan")
    table.add_column("값", style="yellow")
    table.add_row("전체 쿼리", str(stats.total_queries))
    table.add_row("성공 / 실패", f"{stats.successful_queries} / {stats.failed_queries}")
    table.add_row("성공률", f"{stats.success_rate}%")
    table.add_row("평균 실행 시간", f"{stats.average_execution_time_ms}ms")
    table.add_row("처리된 행", str(stats.total_rows_processed))
    table.add_row("최근 30일", str(stats.queries_last_30_days))
    for query_type, count in sorted(stats.query_type_breakdown.items()):
        table.add_row(f"  {query_type}", str(count))
    console.print(table)


def main():
    """메인 함수."""
    parser = argparse.ArgumentParser(
        description="연결의 스키마 임베딩을 동기화",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("connection_id", help="db_connections.id")
    parser.add_argument(
        "--sql",
        type=str,
        default=None,
        help="실행된 SQL 문 (지정하면 스마트 동기화)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="동기화 대신 쿼리 통계 출력",
    )
    parser.add_argument(
        "--init-metadata",
        action="store_true",
        help="메타데이터 테이블이 없으면 생성",
    )

    args = parser.parse_args()

    services = build_services(Settings())
    try:
        if args.init_metadata:
            services.metadata_store.ensure_schema()
            console.print("[green]✅ 메타데이터 테이블 확인 완료[/green]")

        if args.stats:
            print_statistics(services.metadata_store.get_query_statistics(args.connection_id))
            sys.exit(0)

        if args.sql:
            console.print(f"[bold]⚙️  스마트 동기화:[/bold] [dim]{args.sql[:100]}[/dim]")
            result = services.synchronizer.smart_schema_update(args.connection_id, args.sql)
        else:
            console.print(f"[bold]⚙️  연결 {args.connection_id} 전체 증분 동기화[/bold]")
            result = services.synchronizer.incremental_schema_update(args.connection_id)
    finally:
        services.close()

    print_result_panel(result)
    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
