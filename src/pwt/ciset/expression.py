"""
规则表达式封装, 基于 rule_engine 实现.

用于 pydantic 校验器(check)以表达式形式描述字段约束, 变量可取自映射键或对象属性.

示例:
    >>> Expression("capacity >= 0").match(capacity=16)
    True
    >>> Expression("name =~~ '^Ci'").match({"name": "CiSet"})
    True
"""

from __future__ import annotations

from typing import Any, overload

import rule_engine

from pwt.ciset.errors import CaseInsensitiveError


class ExpressionError(CaseInsensitiveError):
    """表达式解析或求值失败, `cause` 为 rule_engine 的原始异常."""

    def __init__(self, original: Exception) -> None:
        super().__init__(repr(original), cause=original)
        self.original = original


class Expression:
    """
    表达式对象.
    - evaluate: 返回表达式计算结果, 可选 default 兜底
    - match: 返回布尔判定结果, 可选 default 兜底
    """

    def __init__(self, expr: str) -> None:
        self.expr = expr
        try:
            self._rule = rule_engine.Rule(
                expr, rule_engine.Context(resolver=self._resolver)
            )
        except rule_engine.EngineError as ex:
            raise ExpressionError(ex)

    @overload
    def evaluate(self, /, *, default: Any = ..., **kwds: Any) -> Any: ...
    @overload
    def evaluate(self, data: Any, /, *, default: Any = ...) -> Any: ...
    def evaluate(self, data: Any = ..., /, *, default: Any = ..., **kwds: Any) -> Any:
        """
        计算表达式的值.
        :param data: 上下文数据, 未传时使用关键字参数
        :param default: 计算失败时返回的默认值; 未传则抛异常
        """
        if data is ...:
            data = kwds
        try:
            return self._rule.evaluate(data)
        except rule_engine.EngineError as ex:
            if default is ...:
                raise ExpressionError(ex)
            return default

    @overload
    def match(self, /, *, default: Any = ..., **kwds: Any) -> bool: ...
    @overload
    def match(self, data: Any, /, *, default: Any = ...) -> bool: ...
    def match(self, data: Any = ..., /, *, default: Any = ..., **kwds: Any) -> bool:
        """判断表达式是否匹配(布尔结果)."""
        return bool(self.evaluate(data, default=default, **kwds))

    def __repr__(self) -> str:
        return f"Expression({self.expr!r})"

    @staticmethod
    def _resolver(data: Any, name: str) -> Any:
        # 映射优先, 其次按属性解析(如 logging.LogRecord)
        try:
            return rule_engine.resolve_item(data, name)
        except rule_engine.SymbolResolutionError:
            return rule_engine.resolve_attribute(data, name)


def match(expr: str, data: Any, *, default: Any = ...) -> bool:
    return Expression(expr).match(data, default=default)
