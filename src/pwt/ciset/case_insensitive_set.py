"""
提供一个大小写不敏感的集合实现.

设计目标:
- 字符串元素的成员判断/相等比较忽略大小写, 遍历时输出最初插入的原始字符串.
- 非字符串元素按普通相等比较, 支持字符串与其它类型混合存放.
- 不自行比较键: 所有成员/插入/删除操作都委托给后备存储(CaseInsensitiveDict),
  元素本身同时作为键和值写入.
- 后备存储的排序/并发语义在构造时通过 StoreKind 显式选择, 之后不再更换.

主要组件:
- CaseInsensitiveSet: 大小写不敏感的集合类

示例:
    >>> s = CaseInsensitiveSet.from_ordered(["Apple", 2])
    >>> "APPLE" in s
    True
    >>> s.add("apple")
    False
    >>> s
    CaseInsensitiveSet(['Apple', 2])
    >>> s == {"apple", 2}
    True
"""

from __future__ import annotations

from collections.abc import MutableSet, Set
from typing import Any, Callable, Iterable, Iterator

from pwt.ciset.case_insensitive_dict import (
    CaseInsensitiveDict,
    ReadOnlyCaseInsensitiveDict,
    create_store,
)
from pwt.ciset.errors import UnsupportedOperationError
from pwt.ciset.log.helpers import get_logger_adapter
from pwt.ciset.options import StoreKind, load_options

_logger = get_logger_adapter(__name__)

_Store = CaseInsensitiveDict[Any, Any] | ReadOnlyCaseInsensitiveDict[Any, Any]


class CaseInsensitiveSet(MutableSet):
    """
    对字符串元素大小写不敏感的集合.

    构造:
    - 无参数: 默认(不保证顺序)的空集合.
    - `capacity`/`load_factor`: 按哈希表构造约束校验, 非法时抛出 InvalidArgumentError.
    - `source`: 任意可迭代对象. 存储类型依次取 `kind` 参数/来源自身报告的 `kind`
      (来源为 CaseInsensitiveSet 时)/StoreKind.UNORDERED; 只读标志同理.
      所选类型为排序存储且未指定 `sort_key` 时, 沿用来源集合的 `sort_key`.
      来源为空时同样按所选类型创建存储, 之后的插入保持相应顺序.
    - 只读: 先填充一个临时的可写存储再包装为只读, 结果是副本而非视图;
      之后所有修改操作抛出 UnsupportedOperationError.

    特性:
    - **首次大小写优先**: `add()` 遇到等价元素时不替换已存储的元素.
    - **批量写入末次优先**: 同一次 `add_all()` 中新增的等价元素以最后一个为准,
      调用前已存在的元素保持原样.
    - **相等与哈希一致**: 相等只依赖本集合的 `contains`; 哈希为各元素归一化后哈希之和.

    线程安全完全取决于所选存储, 遍历期间修改集合的行为同样由存储定义.
    """

    def __init__(
        self,
        source: Iterable[Any] | None = None,
        *,
        kind: StoreKind | str | None = None,
        capacity: int | None = None,
        load_factor: float | None = None,
        read_only: bool | None = None,
        sort_key: Callable[[Any], Any] | None = None,
    ) -> None:
        if isinstance(source, CaseInsensitiveSet):
            kind = source.kind if kind is None else kind
            read_only = source.read_only if read_only is None else read_only
        if capacity is None and hasattr(source, "__len__"):
            capacity = len(source)  # type: ignore[arg-type]

        options = load_options(
            kind=kind, capacity=capacity, load_factor=load_factor, read_only=read_only
        )
        if isinstance(source, CaseInsensitiveSet) and options.kind.sorted:
            sort_key = source.sort_key if sort_key is None else sort_key
        store = create_store(options, sort_key=sort_key)
        self._store: _Store = store
        if source is not None:
            if options.read_only:
                for item in source:
                    store[item] = item
            else:
                self.add_all(source)
        if options.read_only:
            self._store = ReadOnlyCaseInsensitiveDict(store)

        _logger.debugf(
            "created {cls} (kind={kind}, read_only={read_only}, size={size})",
            cls=type(self).__name__,
            kind=options.kind.value,
            read_only=options.read_only,
            size=len(store),
        )

    @classmethod
    def from_ordered(cls, source: Iterable[Any] = ()) -> CaseInsensitiveSet:
        """保持插入顺序的集合."""
        return cls(source, kind=StoreKind.ORDERED)

    @classmethod
    def from_unordered(
        cls,
        source: Iterable[Any] = (),
        capacity: int | None = None,
        load_factor: float | None = None,
    ) -> CaseInsensitiveSet:
        """不保证顺序的集合, 可指定容量提示."""
        return cls(
            source,
            kind=StoreKind.UNORDERED,
            capacity=capacity,
            load_factor=load_factor,
        )

    @classmethod
    def from_sorted(
        cls,
        source: Iterable[Any] = (),
        sort_key: Callable[[Any], Any] | None = None,
    ) -> CaseInsensitiveSet:
        """按归一化元素排序的集合."""
        return cls(source, kind=StoreKind.SORTED, sort_key=sort_key)

    @classmethod
    def from_concurrent_sorted(
        cls,
        source: Iterable[Any] = (),
        sort_key: Callable[[Any], Any] | None = None,
    ) -> CaseInsensitiveSet:
        """排序且单个操作线程安全的集合."""
        return cls(source, kind=StoreKind.CONCURRENT_SORTED, sort_key=sort_key)

    @classmethod
    def from_read_only(
        cls,
        source: Iterable[Any],
        kind: StoreKind | str | None = None,
    ) -> CaseInsensitiveSet:
        """只读副本."""
        return cls(source, kind=kind, read_only=True)

    @classmethod
    def _from_iterable(cls, it: Iterable[Any]) -> CaseInsensitiveSet:
        # Set 的 &, |, - 等运算结果
        return cls(it)

    @property
    def kind(self) -> StoreKind:
        return self._store.kind

    @property
    def read_only(self) -> bool:
        return self._store.read_only

    @property
    def sort_key(self) -> Callable[[Any], Any] | None:
        return self._store.sort_key

    # 查询

    def __len__(self) -> int:
        return len(self._store)

    def is_empty(self) -> bool:
        return len(self._store) == 0

    def __contains__(self, item: Any) -> bool:
        return item in self._store

    def contains(self, item: Any) -> bool:
        return item in self._store

    def contains_all(self, items: Iterable[Any]) -> bool:
        return all(item in self._store for item in items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._store)

    def to_list(self) -> list[Any]:
        return list(self._store)

    # 修改

    def add(self, item: Any) -> bool:
        """
        添加元素.

        返回:
            集合是否发生变化; 已存在等价元素时返回 False 且保留原元素.
        """
        self._ensure_writable("add")
        if item in self._store:
            return False
        self._store[item] = item
        return True

    def remove(self, item: Any) -> bool:
        """
        删除元素.

        返回:
            是否删除了元素; 元素不存在时返回 False, 不抛出 KeyError.
        """
        self._ensure_writable("remove")
        try:
            del self._store[item]
        except KeyError:
            return False
        except TypeError:  # unhashable
            return False
        return True

    def discard(self, item: Any) -> bool:
        return self.remove(item)

    def add_all(self, items: Iterable[Any]) -> bool:
        """
        批量添加元素.

        调用前已存在的元素保持原大小写; 本次调用中新增的等价元素以最后一个为准.

        返回:
            集合大小是否发生变化.
        """
        self._ensure_writable("add_all")
        size = len(self._store)
        added: CaseInsensitiveDict[Any, None] = CaseInsensitiveDict()
        for item in items:
            if item in added:
                self._store.replace(item, item)
            elif item not in self._store:
                self._store[item] = item
                added[item] = None
        return len(self._store) != size

    def update(self, *others: Iterable[Any]) -> bool:
        self._ensure_writable("update")
        changed = False
        for items in others:
            changed = self.add_all(items) or changed
        return changed

    def retain_all(self, items: Iterable[Any]) -> bool:
        """
        仅保留同时存在于 `items` 中的元素.

        返回:
            集合大小是否发生变化.
        """
        self._ensure_writable("retain_all")
        keep: CaseInsensitiveDict[Any, None] = CaseInsensitiveDict(
            (item, None) for item in items
        )
        size = len(self._store)
        for item in [item for item in self._store if item not in keep]:
            self._store.pop(item, None)
        return len(self._store) != size

    def remove_all(self, items: Iterable[Any]) -> bool:
        """
        删除 `items` 中存在的元素.

        返回:
            集合大小是否发生变化.
        """
        self._ensure_writable("remove_all")
        size = len(self._store)
        if items is self:
            items = list(items)
        for item in items:
            self.remove(item)
        return len(self._store) != size

    def clear(self) -> None:
        self._ensure_writable("clear")
        self._store.clear()

    def pop(self) -> Any:
        self._ensure_writable("pop")
        return super().pop()

    def __ior__(self, other: Iterable[Any]) -> CaseInsensitiveSet:  # type: ignore[override]
        self.add_all(other)
        return self

    def __iand__(self, other: Iterable[Any]) -> CaseInsensitiveSet:  # type: ignore[override]
        self.retain_all(other)
        return self

    def __isub__(self, other: Iterable[Any]) -> CaseInsensitiveSet:  # type: ignore[override]
        if other is self:
            self.clear()
        else:
            self.remove_all(other)
        return self

    def copy(self) -> CaseInsensitiveSet:
        return type(self)(self)

    def _ensure_writable(self, operation: str) -> None:
        if self._store.read_only:
            raise UnsupportedOperationError(operation)

    # 相等/哈希/字符串表示

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, Set):
            return NotImplemented
        return len(other) == len(self) and self.contains_all(other)

    def __hash__(self) -> int:
        total = 0
        for item in self._store:
            if isinstance(item, str):
                total += hash(item.casefold())
            elif item is not None:
                total += hash(item)
        return hash(total)

    def __str__(self) -> str:
        return str(self.to_list())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_list()!r})"

    def __rich_repr__(self) -> Iterator[Any]:
        yield self.to_list()
