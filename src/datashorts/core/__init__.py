"""Core 모듈."""
