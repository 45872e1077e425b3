from __future__ import annotations

import logging
from typing import Any, Literal


def get_logger_adapter(name: str | None = None, **extra: Any) -> LoggerAdapter:
    """
    获取包内模块使用的日志适配器.

    不安装任何处理器, 输出由使用方通过标准库 logging 配置.
    """
    return LoggerAdapter(logging.getLogger(name), **extra)


class LoggerAdapter:
    """
    日志适配器, 封装标准库 `logging.Logger`

    提供两种日志格式化风格:
    - `log`: `%` 占位符格式(默认 logging 行为)
    - `logf`: `{}` 格式化(`str.format` 风格), 关键字参数作为 `extra` 字段

    通过构造函数传入的 `extra` 字段会自动合并到每条日志记录的 `extra` 中,
    并在 `extra` 中注入 `_style` 字段.
    """

    def __init__(self, logger: logging.Logger, **extra: Any) -> None:
        self.logger = logger
        self.extra = extra

    def process(
        self,
        msg: str,
        style: Literal["%", "{"],
        kwargs: dict[str, Any],
    ) -> dict[str, Any]:
        if style == "{":
            # exc_info/stack_info 等仍作为 logging 参数, 其余关键字进入 extra
            options = {k: kwargs.pop(k) for k in _LOG_OPTIONS if k in kwargs}
            extra = kwargs.pop("extra", {})
            kwargs = {**options, "extra": {**extra, **kwargs}}
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {}), "_style": style}
        return kwargs

    def is_enabled_for(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)

    def log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.logger.isEnabledFor(level):
            kwargs = self.process(msg, "%", kwargs)
            self.logger.log(level, msg, *args, stacklevel=3, **kwargs)

    def debugf(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logf(logging.DEBUG, msg, *args, **kwargs)

    def infof(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logf(logging.INFO, msg, *args, **kwargs)

    def warningf(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logf(logging.WARNING, msg, *args, **kwargs)

    def errorf(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logf(logging.ERROR, msg, *args, **kwargs)

    def logf(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.logger.isEnabledFor(level):
            kwargs = self.process(msg, "{", kwargs)
            self.logger.log(level, msg, *args, stacklevel=3, **kwargs)


_LOG_OPTIONS = ("exc_info", "stack_info")
