"""日志初始化。"""
import logging

from home_organizer.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> None:
    """初始化根日志。未知级别回退到 INFO。"""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
