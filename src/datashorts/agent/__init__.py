"""원격 쿼리 에이전트 모듈."""
