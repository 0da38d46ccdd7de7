"""스키마 임베딩 동기화 모듈."""
