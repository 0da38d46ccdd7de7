"""쿼리 어드바이저 - LLM 기반 쿼리 검증, 최적화 제안, 설명."""

from typing import Any, Optional, Protocol

from datashorts.core.logging import get_logger
from datashorts.core.models import (
    OptimizationSuggestion,
    SchemaContextItem,
    TableSchema,
    ValidationResult,
)

logger = get_logger(__name__)

VALIDATION_SYSTEM_PROMPT = (
    "You are a database security and performance expert. Analyze SQL queries "
    "for potential issues and provide recommendations."
)

VALIDATION_PROMPT_TEMPLATE = """Analyze this SQL query for potential issues, security risks, and optimization opportunities:

Query: {sql}

Available tables and columns:
{schema}

Please evaluate:
1. Security risks (SQL injection potential, privilege escalation)
2. Performance impact (missing indexes, expensive operations)
3. Data safety (destructive operations, large result sets)
4. Query correctness (syntax, table/column existence)

Respond in JSON format:
{{
  "isValid": boolean,
  "riskLevel": "low" | "medium" | "high",
  "warnings": ["warning1", "warning2"],
  "suggestions": ["suggestion1", "suggestion2"],
  "estimatedImpact": "description of expected impact"
}}"""

OPTIMIZATION_SYSTEM_PROMPT = (
    "You are an expert SQL query optimizer. Analyze queries and suggest concrete "
    "improvements for better performance. Be specific about what changes you're making."
)

OPTIMIZATION_PROMPT_TEMPLATE = """Analyze and optimize this SQL query for better performance:

Original Query:
{sql}

Database Schema:
{schema}

If meaningful optimizations are possible, respond in JSON format:
{{
  "canOptimize": true,
  "optimizedQuery": "complete optimized SQL here",
  "explanation": "what was changed and why",
  "expectedImprovement": "specific performance improvement description"
}}

If no meaningful optimizations are possible, respond with:
{{"canOptimize": false, "reason": "explanation why no optimization is needed"}}"""

EXPLANATION_SYSTEM_PROMPT = (
    "You are a database expert who explains SQL queries in clear, simple terms "
    "for both technical and non-technical users."
)

EXPLANATION_PROMPT_TEMPLATE = """Explain this SQL query in simple terms:

Query: {sql}

Available schema:
{schema}

Describe what the query does, which tables it accesses, what data it returns,
any joins or complex operations, and potential performance considerations."""

# 최적화를 시도할 만한 절
OPTIMIZABLE_CLAUSES = ("JOIN", "WHERE", "ORDER BY", "GROUP BY")
MIN_OPTIMIZABLE_LENGTH = 20


class LLMClient(Protocol):
    """LLM 클라이언트 프로토콜."""

    def invoke(self, message: str, system_prompt: Optional[str] = None) -> str:
        """메시지를 전송하고 응답을 수신."""
        ...

    def invoke_json(self, message: str, system_prompt: Optional[str] = None) -> dict[str, Any]:
        """JSON 응답을 요청하고 파싱."""
        ...


def build_schema_text(
    schema: list[TableSchema], context: list[SchemaContextItem]
) -> str:
    """스키마와 임베딩 컨텍스트를 프롬프트용 텍스트로 변환.

    Args:
        schema: 호출자가 넘긴 테이블 스키마
        context: 유사도 검색으로 가져온 스키마 컨텍스트

    Returns:
        포맷팅된 스키마 텍스트 (둘 다 비어 있으면 빈 문자열)
    """
    lines = []
    seen: set[str] = set()

    for table in schema:
        seen.add(table.table_name)
        lines.append(f"Table: {table.table_name}")
        lines.append(f"Columns: {table.column_descriptions()}")

    for item in context:
        if item.table_name in seen:
            continue
        seen.add(item.table_name)
        lines.append(f"Table: {item.table_name}")
        lines.append(f"Columns: {item.columns}")

    return "\n".join(lines)


def should_optimize(sql: str) -> bool:
    """최적화 제안을 요청할 만한 쿼리인지 여부.

    Args:
        sql: SQL 문자열

    Returns:
        짧거나 단순한 쿼리면 False
    """
    upper_sql = sql.upper().strip()
    if len(upper_sql) < MIN_OPTIMIZABLE_LENGTH:
        return False
    return any(clause in upper_sql for clause in OPTIMIZABLE_CLAUSES)


class QueryAdvisor:
    """LLM으로 쿼리를 검증하고 최적화를 제안하는 서비스."""

    def __init__(self, llm_client: LLMClient) -> None:
        """어드바이저 초기화.

        Args:
            llm_client: LLM 클라이언트
        """
        self._llm_client = llm_client

    def validate(self, sql: str, schema_text: str) -> ValidationResult:
        """쿼리의 위험도와 문제점을 평가.

        LLM 호출이나 파싱에 실패하면 medium 위험도의 기본 결과를 반환한다.

        Args:
            sql: SQL 문자열
            schema_text: 프롬프트용 스키마 텍스트

        Returns:
            ValidationResult 객체
        """
        prompt = VALIDATION_PROMPT_TEMPLATE.format(sql=sql, schema=schema_text)
        try:
            result = self._llm_client.invoke_json(prompt, system_prompt=VALIDATION_SYSTEM_PROMPT)
        except Exception as e:
            logger.error("쿼리 검증 실패: %s", e)
            return ValidationResult(
                is_valid=True,
                risk_level="medium",
                warnings=["Could not validate query automatically"],
                estimated_impact="Unknown impact",
            )

        return ValidationResult(
            is_valid=bool(result.get("isValid", True)),
            risk_level=str(result.get("riskLevel") or "low").lower(),
            warnings=list(result.get("warnings") or []),
            suggestions=list(result.get("suggestions") or []),
            estimated_impact=result.get("estimatedImpact") or "Unknown impact",
        )

    def optimize(self, sql: str, schema_text: str) -> Optional[OptimizationSuggestion]:
        """쿼리 최적화 제안을 생성.

        Args:
            sql: SQL 문자열
            schema_text: 프롬프트용 스키마 텍스트

        Returns:
            OptimizationSuggestion 또는 None (제안 없음 / 단순 쿼리 / 실패)
        """
        if not should_optimize(sql):
            return None

        prompt = OPTIMIZATION_PROMPT_TEMPLATE.format(sql=sql, schema=schema_text)
        try:
            result = self._llm_client.invoke_json(prompt, system_prompt=OPTIMIZATION_SYSTEM_PROMPT)
        except Exception as e:
            logger.error("쿼리 최적화 실패: %s", e)
            return None

        if not result.get("canOptimize"):
            return None

        return OptimizationSuggestion(
            original_query=sql,
            optimized_query=result.get("optimizedQuery") or sql,
            explanation=result.get("explanation") or "Query optimized for better performance",
            expected_improvement=(
                result.get("expectedImprovement") or "Performance improvement expected"
            ),
        )

    def explain(self, sql: str, schema_text: str) -> str:
        """쿼리를 자연어로 설명.

        Args:
            sql: SQL 문자열
            schema_text: 프롬프트용 스키마 텍스트

        Returns:
            설명 텍스트
        """
        prompt = EXPLANATION_PROMPT_TEMPLATE.format(sql=sql, schema=schema_text)
        return self._llm_client.invoke(prompt, system_prompt=EXPLANATION_SYSTEM_PROMPT)
