# FILE: src/pdf2ebook/utils/logging.py
import logging
from pathlib import Path

from loguru import logger
from rich.logging import RichHandler

# Pillow などが標準loggingへ出すメッセージのうち、転送する最低レベル
_LIBRARY_LOG_LEVEL = logging.WARNING


class InterceptHandler(logging.Handler):
    """標準 `logging` のレコードをLoguruへ転送するハンドラ。"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(exception=record.exc_info).bind(library=record.name).log(
            level, record.getMessage()
        )


def setup_logging(
    level: str = "INFO",
    serialize_to_file: bool = False,
    log_dir: Path = Path("logs"),
) -> None:
    """
    LoguruをRichHandler(コンソール)とJSONファイル出力用に設定し、
    標準loggingを使うライブラリのログもLoguruに集約します。
    """
    logger.remove()

    logger.add(
        RichHandler(rich_tracebacks=True, show_path=False, log_time_format="[%X]"),
        level=level.upper(),
        format="{message}",
        backtrace=False,
        diagnose=False,
    )

    if serialize_to_file:
        logger.add(
            log_dir / "pdf2ebook_{time}.log",
            level="DEBUG",
            serialize=True,
            enqueue=True,
            rotation="10 MB",
            retention="7 days",
            backtrace=True,
            diagnose=True,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=_LIBRARY_LOG_LEVEL, force=True)

    logger.debug(
        "ロガーが設定されました。レベル: {}, ファイル出力: {}",
        level.upper(),
        serialize_to_file,
    )
