"""벡터 저장소 어댑터 모듈."""
