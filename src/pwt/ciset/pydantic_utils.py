"""
基于 Pydantic v2 验证机制的通用工具集.

提供:
- 格式化 ValidationError 为结构化列表
- 构建通用字段转换器(单值 / 列表)
- 构建通用字段检查器(单值 / 列表), 支持规则表达式
- 扩展 BaseModel, 支持空值回退到字段默认值
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic_core import PydanticCustomError, PydanticUndefined

from pwt.ciset.expression import Expression


def format_validation_error(exc: ValidationError) -> list[dict[str, Any]]:
    """
    将 Pydantic 的 ValidationError 转换为结构化错误列表.

    Returns:
        每个错误包含字段路径/提示信息/错误类型和原始输入值.
    """
    return [
        {
            "field": ".".join(map(str, error.get("loc", ()))),
            "message": error.get("msg"),
            "type": error.get("type"),
            "input": error.get("input"),
        }
        for error in exc.errors()
    ]


def _noop(data: Any) -> Any:
    return data


def convert(
    func: Callable[..., Any],
    data_shape: Literal["obj", "list"] = "obj",
    ignore_none: bool = True,
    description: str | None = None,
    **func_kwds: Any,
) -> BeforeValidator:
    """
    构造一个在 Pydantic 验证前执行的值转换器.

    Args:
        func: 转换函数, list 模式下逐个元素调用.
        data_shape: 输入数据结构类型.
        ignore_none: 值为 None 时是否跳过转换.
        description: 自定义错误信息.
        **func_kwds: 传给 `func` 的额外关键字参数.
    """
    partial_func = partial(func, **func_kwds)

    def validator(data: Any) -> Any:
        if ignore_none and data is None:
            return data
        try:
            if data_shape == "list":
                return [partial_func(value) for value in data]
            return partial_func(data)
        except Exception as ex:
            raise PydanticCustomError(
                "convert_failed",
                "{reason}",
                {"reason": description or str(ex)},
            )

    return BeforeValidator(validator)


def check(
    func: Callable[..., Any] | None = None,
    expression: str | None = None,
    data_shape: Literal["obj", "list"] = "obj",
    ignore_none: bool = True,
    check_result: bool = False,
    description: str | None = None,
    **func_kwds: Any,
) -> AfterValidator:
    """
    构造一个在 Pydantic 验证后执行的检查器.

    `expression` 以 `value` 为变量名求值, 结果必须为真;
    `func` 抛出异常(或在 `check_result` 时返回假值)即视为检查失败.

    Args:
        func: 检查函数, list 模式下逐个元素调用.
        expression: 可选规则表达式, 例如 `"value >= 0"`.
        data_shape: 输入数据结构类型.
        ignore_none: 值为 None 时是否跳过检查.
        check_result: 是否检查函数返回值为真.
        description: 自定义错误信息.
    """
    partial_func = partial(func, **func_kwds) if func else _noop
    rule = Expression(expression) if expression else None

    def validator(data: Any) -> Any:
        if ignore_none and data is None:
            return data

        values = data if data_shape == "list" else [data]
        try:
            for value in values:
                if rule is not None and not rule.match(value=value):
                    raise ValueError(f"Expression failed: {rule.expr}")
                result = partial_func(value)
                if check_result and not result:
                    raise ValueError("Return value check failed")
        except Exception as ex:
            raise PydanticCustomError(
                "check_failed",
                "{reason}",
                {"reason": description or str(ex)},
            )
        return data

    return AfterValidator(validator)


class BaseModelEx(BaseModel):
    """
    扩展版 BaseModel.

    特性:
    - 当字段值为空(空序列/空集合/空字符串/None)时, 自动回退到字段默认值(若有)
    - 可通过配置项 `validate_default` 控制默认值是否经过验证
    """

    @field_validator("*", mode="wrap")
    @classmethod
    def use_default_value(
        cls: type[BaseModelEx],
        value: Any,
        validator: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
        /,
    ) -> Any:
        if _is_empty(value) and info.field_name:
            field_info = cls.model_fields.get(info.field_name)
            if field_info:
                default = field_info.get_default(call_default_factory=True)
                if default is not PydanticUndefined:
                    if info.config and info.config.get("validate_default"):
                        return validator(default)
                    return default
        return validator(value)


def _is_empty(value: Any) -> bool:
    # 0 / False 不算空值; 只比较容器与字符串
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False
