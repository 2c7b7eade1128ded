"""
Loguru 日志

所有日志都带 ``request_id``，一次SDK调用产生的日志可以串联起来。
"""

import sys
import traceback
import uuid
from pathlib import Path

from loguru import logger

DEFAULT_REQUEST_ID = "---"


def format_exception_truncated(record) -> str:
    """文件日志中的异常堆栈只保留前1000个字符"""
    if record["exception"]:
        exc_text = "".join(traceback.format_exception(*record["exception"]))
        if len(exc_text) > 1000:
            return exc_text[:1000] + "..."
        return exc_text
    return ""


def _ensure_request_id(record) -> bool:
    record["extra"].setdefault("request_id", DEFAULT_REQUEST_ID)
    return True


def configure_logging(log_config) -> None:
    """配置Loguru日志系统

    作为库使用时不会自动调用，由调用方按需启用。

    Args:
        log_config: 日志配置对象，需提供 level 与 file_path
    """
    # 移除默认的handler
    logger.remove()

    # 控制台日志格式（包含请求ID）
    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
        "<cyan>{extra[request_id]}</cyan> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stdout,
        format=console_format,
        level=log_config.level,
        colorize=True,
        filter=_ensure_request_id,
    )

    if log_config.file_path:
        log_path = Path(log_config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # 文件日志（包含截取的异常堆栈）
        def file_format(record) -> str:
            exc_info = format_exception_truncated(record).replace("{", "{{").replace("}", "}}")
            return (
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[request_id]} | "
                "{name}:{line} | {message}"
                + (f" | {exc_info}" if exc_info else "")
                + "\n"
            )

        logger.add(
            str(log_path),
            format=file_format,
            level=log_config.level,
            rotation="10 MB",
            retention="1 day",
            encoding="utf-8",
            filter=_ensure_request_id,
        )


class RequestLogger:
    """SDK调用日志处理器"""

    def log_response(
        self,
        provider: str,
        model: str,
        response_time: float,
        request_id: str | None = None,
        stream: bool = False,
    ) -> None:
        """记录调用完成"""
        bound_logger = get_logger_with_request_id(request_id)

        response_time_ms = round(response_time * 1000, 2)
        mode = "stream" if stream else "sync"
        bound_logger.info(
            f"调用完成 - Provider: {provider}, Model: {model}, Mode: {mode}, Time: {response_time_ms}ms"
        )

    def log_error(
        self,
        error: Exception,
        context: dict | None = None,
        request_id: str | None = None,
    ) -> None:
        """记录调用失败"""
        bound_logger = get_logger_with_request_id(request_id)

        error_type = type(error).__name__
        context_str = f", Context: {context}" if context else ""
        status_code = getattr(error, "status_code", None)
        status_str = f", Status: {status_code}" if status_code is not None else ""

        bound_logger.error(
            f"调用失败 - Type: {error_type}{status_str}, Message: {error}{context_str}"
        )


# 全局logger实例
request_logger = RequestLogger()


def generate_request_id() -> str:
    """每次SDK调用的追踪ID，形如 ``req_<uuid4>``"""
    return f"req_{uuid.uuid4()}"


def get_logger_with_request_id(request_id: str | None = None):
    """日志器绑定 request_id，未提供时使用占位符"""
    return logger.bind(request_id=request_id or DEFAULT_REQUEST_ID)
