"""OpenAI 호환 LLM 클라이언트."""

import json
import re
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from datashorts.core.config import Settings

# ```json ... ``` 코드 블록
CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class RateLimitError(Exception):
    """Rate limit 에러."""

    pass


class TimeoutError(Exception):
    """Timeout 에러."""

    pass


class OpenAIClient:
    """OpenAI 호환 LLM 클라이언트."""

    def __init__(self, settings: Settings) -> None:
        """클라이언트 초기화.

        Args:
            settings: 애플리케이션 설정
        """
        self._settings = settings
        self._llm: Any = ChatOpenAI(
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
        )

    def invoke(self, message: str, system_prompt: str | None = None) -> str:
        """메시지를 전송하고 응답을 수신.

        Args:
            message: 전송할 메시지
            system_prompt: 시스템 프롬프트 (선택)

        Returns:
            LLM의 응답 텍스트

        Raises:
            RateLimitError: Rate limit 초과 시
            TimeoutError: 요청 타임아웃 시
        """
        payload: Any = message
        if system_prompt:
            payload = [SystemMessage(content=system_prompt), HumanMessage(content=message)]

        try:
            response = self._llm.invoke(payload)
            return response.content
        except Exception as e:
            error_msg = str(e).lower()
            if "rate limit" in error_msg:
                raise RateLimitError(f"Rate limit exceeded: {e}") from e
            if "timed out" in error_msg or "timeout" in error_msg:
                raise TimeoutError(f"Request timed out: {e}") from e
            raise

    def invoke_json(self, message: str, system_prompt: str | None = None) -> dict[str, Any]:
        """JSON 응답을 요청하고 파싱된 딕셔너리를 반환.

        Args:
            message: 전송할 메시지
            system_prompt: 시스템 프롬프트 (선택)

        Returns:
            파싱된 JSON 객체

        Raises:
            ValueError: 응답이 JSON 객체가 아닐 때
        """
        content = self.invoke(message, system_prompt=system_prompt).strip()
        match = CODE_FENCE_PATTERN.match(content)
        if match:
            content = match.group(1)

        try:
            parsed = json.loads(content or "{}")
        except json.JSONDecodeError as e:
            raise ValueError(f"LLM response is not valid JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise ValueError("LLM response is not a JSON object")
        return parsed
