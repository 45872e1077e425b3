"""
定义大小写不敏感集合/字典使用的异常体系.

异常层级结构如下:
    - CaseInsensitiveError: 所有异常的统一基类, 支持嵌套链式追踪.
        - InvalidArgumentError: 存储参数(容量/负载因子/存储类型)不合法.
        - UnsupportedOperationError: 在只读存储上调用了修改操作.

为兼容调用方习惯, InvalidArgumentError 同时是 ValueError,
UnsupportedOperationError 同时是 TypeError.
"""

from __future__ import annotations

from typing import Any


class CaseInsensitiveError(Exception):
    """
    所有异常的基类, 具备错误链追踪能力.

    参数:
    - `*args`: 异常消息内容;
    - `cause`: 可选的原始异常, 用于记录异常链(自动赋值给 `__cause__`).
    """

    def __init__(self, *args: Any, cause: Exception | None = None) -> None:
        super().__init__(*args)
        self.cause: Exception | None = cause
        self.__cause__ = cause


class InvalidArgumentError(CaseInsensitiveError, ValueError):
    """
    存储参数校验失败.

    `errors` 保存结构化的错误列表, 每项包含 field/message/type/input.
    """

    def __init__(
        self,
        *args: Any,
        errors: list[dict[str, Any]] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(*args, cause=cause)
        self.errors: list[dict[str, Any]] = errors or []


class UnsupportedOperationError(CaseInsensitiveError, TypeError):
    """只读存储不支持修改操作."""

    def __init__(self, operation: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"{operation}() is not supported on a read-only store", cause=cause)
        self.operation = operation
