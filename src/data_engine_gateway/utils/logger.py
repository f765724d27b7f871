"""
日志工具模块

根日志器输出 JSON（默认）或文本格式；请求上下文（request_id、operation）
通过 LoggerAdapter 注入，两种格式都会带上
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

# 第三方库日志只保留 WARNING 及以上
QUIET_LOGGERS = ("uvicorn.access", "fastapi", "httpx", "httpcore")

LEVEL_SHORT = {
    "DEBUG": "DBG",
    "INFO": "INF",
    "WARNING": "WRN",
    "ERROR": "ERR",
    "CRITICAL": "CRT",
}

# LogRecord 属性 -> 输出键
CONTEXT_FIELDS = (("request_id", "req"), ("operation", "op"))


def _context(record: logging.LogRecord) -> Dict[str, str]:
    return {
        key: getattr(record, attr)
        for attr, key in CONTEXT_FIELDS
        if hasattr(record, attr)
    }


class JSONFormatter(logging.Formatter):
    """单行 JSON，键名尽量短：time/lvl/mod/msg，外加 req/op/error"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "time": datetime.now(timezone.utc).strftime("%H:%M:%S"),
            "lvl": LEVEL_SHORT.get(record.levelname, record.levelname[:3]),
            "mod": record.name.rsplit(".", 1)[-1],
            "msg": record.getMessage(),
        }
        log_data.update(_context(record))
        if record.exc_info:
            log_data["error"] = str(record.exc_info[1])
        return json.dumps(log_data, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """文本格式，存在请求上下文时追加 [req=... op=...]"""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            line = f"{line} [{pairs}]"
        return line


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    return handlers


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: str = "json",
) -> None:
    """
    配置根日志器

    Args:
        log_level: DEBUG/INFO/WARNING/ERROR/CRITICAL，无法识别时按 INFO
        log_file: 额外写入的日志文件，None 时只输出到 stdout
        log_format: json 或 text
    """
    formatter = JSONFormatter() if log_format == "json" else TextFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    # 重复创建应用（测试）时不叠加处理器
    root_logger.handlers.clear()
    for handler in _build_handlers(log_file):
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """把请求上下文合并进每条日志的 extra"""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs
