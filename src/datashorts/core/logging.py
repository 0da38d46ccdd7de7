"""로깅 설정 모듈."""

import logging
import sys
from typing import Optional

BLUE = "\033[0;34m"
YELLOW = "\033[1;33m"
RED = "\033[0;31m"
BOLD_RED = "\033[1;31m"
RESET = "\033[0m"

# 로그가 많은 서드파티 라이브러리
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "langchain", "pymilvus", "urllib3")


class ColoredFormatter(logging.Formatter):
    """로그 레벨별로 색상을 입히는 포매터."""

    FMT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    DATE_FMT = "%Y-%m-%d %H:%M:%S"

    FORMATS = {
        logging.DEBUG: BLUE + FMT + RESET,
        logging.INFO: FMT,
        logging.WARNING: YELLOW + FMT + RESET,
        logging.ERROR: RED + FMT + RESET,
        logging.CRITICAL: BOLD_RED + FMT + RESET,
    }

    def format(self, record: logging.LogRecord) -> str:
        log_fmt = self.FORMATS.get(record.levelno, self.FMT)
        formatter = logging.Formatter(log_fmt, datefmt=self.DATE_FMT)
        return formatter.format(record)


def setup_logging(level: str = "INFO", name: Optional[str] = None) -> logging.Logger:
    """애플리케이션 로깅을 설정.

    Args:
        level: 로그 레벨 이름 (DEBUG, INFO, ...)
        name: 반환할 로거 이름 (None이면 "datashorts")

    Returns:
        설정된 로거
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter())

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return logging.getLogger(name or "datashorts")


def get_logger(name: str) -> logging.Logger:
    """이름에 해당하는 로거를 반환.

    Args:
        name: 로거 이름 (보통 모듈의 __name__)

    Returns:
        로거 인스턴스
    """
    return logging.getLogger(name)
