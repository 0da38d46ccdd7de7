#!/usr/bin/env python
"""데이터 초기화 스크립트.

스키마 임베딩 Milvus 컬렉션을 삭제하거나 특정 연결의 벡터만 삭제합니다.

사용법:
    python scripts/reset_data.py                     # 컬렉션 전체 삭제
    python scripts/reset_data.py --connection 3      # 연결 3의 벡터만 삭제
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

from datashorts.adapters.vector_store.milvus_adapter import MilvusAdapter, build_filter_expr
from datashorts.core.config import Settings
from datashorts.core.models import PIPELINE_TAG, SCHEMA_RECORD_TYPE

console = Console()


def reset_collection(adapter: MilvusAdapter, collection_name: str) -> bool:
    """Milvus 컬렉션을 삭제합니다."""
    try:
        if adapter.drop_collection(collection_name):
            console.print(f"[green]✅ Milvus 컬렉션 '{collection_name}' 삭제 완료[/green]")
        else:
            console.print(f"[dim]컬렉션 '{collection_name}'이(가) 존재하지 않습니다.[/dim]")
        return True
    except Exception as e:
        console.print(f"[red]❌ Milvus 초기화 실패: {e}[/red]")
        return False


def reset_connection(adapter: MilvusAdapter, collection_name: str, connection_id: str) -> bool:
    """한 연결의 스키마 임베딩만 삭제합니다."""
    try:
        if not adapter.collection_exists(collection_name):
            console.print(f"[dim]컬렉션 '{collection_name}'이(가) 존재하지 않습니다.[/dim]")
            return True
        expr = build_filter_expr(
            connection_id=str(connection_id),
            pipeline=PIPELINE_TAG,
            type=SCHEMA_RECORD_TYPE,
        )
        deleted = adapter.delete_by_expr(collection_name, expr)
        console.print(f"[green]✅ 연결 {connection_id}의 벡터 {deleted}개 삭제 완료[/green]")
        return True
    except Exception as e:
        console.print(f"[red]❌ 연결 {connection_id} 벡터 삭제 실패: {e}[/red]")
        return False


def main():
    """메인 함수."""
    settings = Settings()

    parser = argparse.ArgumentParser(description="스키마 임베딩 데이터 초기화")
    parser.add_argument(
        "--connection",
        type=str,
        default=None,
        help="지정한 연결의 벡터만 삭제",
    )
    parser.add_argument(
        "--collection",
        type=str,
        default=settings.milvus_collection_name,
        help=f"Milvus 컬렉션 이름 (기본값: {settings.milvus_collection_name})",
    )

    args = parser.parse_args()

    console.print(Panel(
        "[bold cyan]🗑️  데이터 초기화 스크립트[/bold cyan]\n"
        "스키마 임베딩 벡터를 삭제합니다.",
        border_style="blue"
    ))

    console.print("[yellow]Milvus 연결 중...[/yellow]")
    adapter = MilvusAdapter(settings)
    adapter.connect()

    if args.connection:
        success = reset_connection(adapter, args.collection, args.connection)
        target = f"연결 {args.connection}"
    else:
        success = reset_collection(adapter, args.collection)
        target = args.collection

    result_table = Table(title="초기화 결과", show_header=True)
    result_table.add_column("대상", style="cyan")
    result_table.add_column("결과")
    result_table.add_row(target, "[green]✅ 성공[/green]" if success else "[red]❌ 실패[/red]")
    console.print(result_table)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
