"""데이터베이스 어댑터 모듈."""
