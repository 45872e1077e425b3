"""
存储配置.

StoreKind 显式声明后备存储的排序/并发语义, 取代按来源集合类型的运行时分派;
StoreOptions 在构造时统一校验容量与负载因子, 失败时抛出 InvalidArgumentError.

示例:
    >>> load_options(kind="sorted").kind
    <StoreKind.SORTED: 'sorted'>
    >>> load_options(capacity=-1)
    Traceback (most recent call last):
        ...
    pwt.ciset.errors.InvalidArgumentError: invalid store options: capacity: capacity must be >= 0
"""

from __future__ import annotations

import enum
import math
from typing import Annotated, Any

from pydantic import ValidationError

from pwt.ciset.errors import InvalidArgumentError
from pwt.ciset.pydantic_utils import BaseModelEx, check, convert, format_validation_error

CAPACITY_DEFAULT = 16
LOAD_FACTOR_DEFAULT = 0.75


class StoreKind(str, enum.Enum):
    """后备存储类型."""

    ORDERED = "ordered"  # 保持插入顺序
    UNORDERED = "unordered"  # 不保证顺序
    SORTED = "sorted"  # 按归一化键排序
    CONCURRENT_SORTED = "concurrent_sorted"  # 排序且线程安全

    @property
    def sorted(self) -> bool:
        return self in (StoreKind.SORTED, StoreKind.CONCURRENT_SORTED)


class StoreOptions(BaseModelEx):
    kind: Annotated[
        StoreKind,
        convert(lambda v: v.lower() if isinstance(v, str) else v),
    ] = StoreKind.UNORDERED
    capacity: Annotated[
        int,
        check(expression="value >= 0", description="capacity must be >= 0"),
    ] = CAPACITY_DEFAULT
    load_factor: Annotated[
        float,
        check(
            math.isfinite,
            expression="value > 0",
            check_result=True,
            description="load_factor must be a finite number > 0",
        ),
    ] = LOAD_FACTOR_DEFAULT
    read_only: bool = False


def load_options(**values: Any) -> StoreOptions:
    """
    校验并构造 StoreOptions.

    值为 None 的参数视为未指定, 使用字段默认值.

    异常:
        InvalidArgumentError: 任一字段校验失败.
    """
    try:
        return StoreOptions(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as ex:
        errors = format_validation_error(ex)
        fields = ", ".join(f"{e['field']}: {e['message']}" for e in errors)
        raise InvalidArgumentError(
            f"invalid store options: {fields}", errors=errors, cause=ex
        )
