"""DataShorts 스키마 임베딩 동기화 및 원격 쿼리 에이전트."""

__version__ = "0.1.0"
