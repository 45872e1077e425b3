"""
提供大小写不敏感的字典实现, 作为 CaseInsensitiveSet 的后备存储.

设计目标:
- 对字符串键使用大小写折叠(casefold)进行归一化, 确保跨语言一致的大小写不敏感.
- 非字符串键保持原样(支持所有可哈希类型作为键).
- 保留"首次写入"的原始键形式; 覆盖写入只替换值(与哈希表 put 语义一致).
  需要同时替换原始键时使用 `replace()`.
- 按 StoreKind 提供不同的排序/并发语义, 由 `create_store()` 统一创建.

主要组件:
- CaseInsensitiveDict: 不保证顺序的基础实现
- OrderedCaseInsensitiveDict: 保持插入顺序
- SortedCaseInsensitiveDict: 按归一化键排序
- ConcurrentSortedCaseInsensitiveDict: 排序且线程安全
- ReadOnlyCaseInsensitiveDict: 只读包装

示例:
    >>> d = CaseInsensitiveDict({"PATH": "A"})
    >>> d["Path"] = "B"
    >>> d["path"]
    'B'
    >>> list(d)
    ['PATH']
    >>> d.replace("Path", "C")
    >>> list(d.items())
    [('Path', 'C')]

    # 非字符串键保持原样
    >>> d = CaseInsensitiveDict()
    >>> d[123] = "num"
    >>> "123" in d
    False
"""

from __future__ import annotations

import threading
from bisect import bisect_left, insort
from collections.abc import MutableMapping
from typing import Any, Callable, Generic, Hashable, Iterator, TypeVar

from pwt.ciset.errors import InvalidArgumentError, UnsupportedOperationError
from pwt.ciset.log.helpers import get_logger_adapter
from pwt.ciset.options import StoreKind, StoreOptions, load_options

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_logger = get_logger_adapter(__name__)


def normalize_key(key: Any) -> Any:
    """字符串使用 casefold 归一化, 其它键保持原样."""
    if isinstance(key, str):
        return key.casefold()
    return key


class CaseInsensitiveDict(MutableMapping[K, V], Generic[K, V]):
    """
    对字符串键大小写不敏感的字典实现.

    内部结构:
    - self._entries: {归一化键: (原始键, 值)}

    查找与更新逻辑:
    - 存储: 逻辑键不存在时写入原始键与值; 已存在时仅替换值.
    - 取值/删除: 通过归一化键定位; 键不存在时抛 KeyError(原始查询键).
    - 遍历: 输出原始键.

    `capacity`/`load_factor` 按哈希表构造约束校验后仅作为容量提示保存,
    Python 的 dict 不支持预分配.
    """

    kind: StoreKind = StoreKind.UNORDERED
    read_only: bool = False
    sort_key: Callable[[Any], Any] | None = None

    def __init__(
        self,
        *args: Any,
        capacity: int | None = None,
        load_factor: float | None = None,
    ) -> None:
        options = load_options(capacity=capacity, load_factor=load_factor)
        self.capacity: int = options.capacity
        self.load_factor: float = options.load_factor
        self._entries: dict[Any, tuple[K, V]] = {}
        for arg in args:
            self.update(arg)

    def __setitem__(self, key: K, value: V) -> None:
        norm_key = normalize_key(key)
        entry = self._entries.get(norm_key, _MISSING)
        if entry is _MISSING:
            self._link(norm_key)
            self._entries[norm_key] = (key, value)
        else:
            self._entries[norm_key] = (entry[0], value)

    def __getitem__(self, key: K) -> V:
        try:
            return self._entries[normalize_key(key)][1]
        except KeyError:
            raise KeyError(key) from None

    def __delitem__(self, key: K) -> None:
        norm_key = normalize_key(key)
        try:
            del self._entries[norm_key]
        except KeyError:
            raise KeyError(key) from None
        self._unlink(norm_key)

    def __iter__(self) -> Iterator[K]:
        for key, _ in self._entries.values():
            yield key

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Any) -> bool:
        try:
            return normalize_key(key) in self._entries
        except TypeError:  # unhashable
            return False

    def __repr__(self) -> str:
        inner = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"{self.__class__.__name__}({{{inner}}})"

    def clear(self) -> None:
        self._entries.clear()
        self._unlink_all()

    def original_key(self, key: K) -> K:
        """返回逻辑键对应的原始键(首次写入时的大小写)."""
        try:
            return self._entries[normalize_key(key)][0]
        except KeyError:
            raise KeyError(key) from None

    def replace(self, key: K, value: V) -> None:
        """写入值并以 `key` 替换已存储的原始键."""
        norm_key = normalize_key(key)
        if norm_key not in self._entries:
            self._link(norm_key)
        self._entries[norm_key] = (key, value)

    # 子类维护额外的顺序结构时覆盖以下钩子
    def _link(self, norm_key: Any) -> None:
        pass

    def _unlink(self, norm_key: Any) -> None:
        pass

    def _unlink_all(self) -> None:
        pass


class OrderedCaseInsensitiveDict(CaseInsensitiveDict[K, V]):
    """
    保持插入顺序的实现.

    覆盖写入与 `replace()` 都不改变条目位置.
    """

    kind = StoreKind.ORDERED


class SortedCaseInsensitiveDict(CaseInsensitiveDict[K, V]):
    """
    按归一化键排序的实现.

    - 默认以归一化键的自然顺序排序, 字符串因此按不区分大小写的字典序排列.
    - `sort_key` 作用于归一化键, 用于自定义排序.
    - 键之间无法比较(如 str 与 int 混用)时, 写入抛出 TypeError, 字典保持不变.
    - 遍历期间修改结构会抛出 RuntimeError.
    """

    kind = StoreKind.SORTED

    def __init__(
        self,
        *args: Any,
        sort_key: Callable[[Any], Any] | None = None,
        capacity: int | None = None,
        load_factor: float | None = None,
    ) -> None:
        self._sort_key = sort_key
        self._order: list[Any] = []
        self._mod_count = 0
        super().__init__(*args, capacity=capacity, load_factor=load_factor)

    @property
    def sort_key(self) -> Callable[[Any], Any] | None:
        return self._sort_key

    def __iter__(self) -> Iterator[K]:
        mod_count = self._mod_count
        for norm_key in self._order:
            yield self._entries[norm_key][0]
            if self._mod_count != mod_count:
                raise RuntimeError(
                    f"{self.__class__.__name__} changed size during iteration"
                )

    def _position(self, norm_key: Any) -> Any:
        return self._sort_key(norm_key) if self._sort_key else norm_key

    def _link(self, norm_key: Any) -> None:
        insort(self._order, norm_key, key=self._position)
        self._mod_count += 1

    def _unlink(self, norm_key: Any) -> None:
        # sort_key 可能不是单射, 从左边界开始找到同一个归一化键
        index = bisect_left(self._order, self._position(norm_key), key=self._position)
        while self._order[index] != norm_key:
            index += 1
        del self._order[index]
        self._mod_count += 1

    def _unlink_all(self) -> None:
        self._order.clear()
        self._mod_count += 1


class ConcurrentSortedCaseInsensitiveDict(SortedCaseInsensitiveDict[K, V]):
    """
    线程安全的排序实现.

    - 每个单独操作都在同一把 RLock 下执行; update 等组合操作不是原子的.
    - 遍历基于快照(弱一致), 遍历期间的并发修改不会抛出异常,
      也不一定反映到本次遍历中.
    """

    kind = StoreKind.CONCURRENT_SORTED

    def __init__(
        self,
        *args: Any,
        sort_key: Callable[[Any], Any] | None = None,
        capacity: int | None = None,
        load_factor: float | None = None,
    ) -> None:
        self._lock = threading.RLock()
        super().__init__(
            *args, sort_key=sort_key, capacity=capacity, load_factor=load_factor
        )

    def __setitem__(self, key: K, value: V) -> None:
        with self._lock:
            super().__setitem__(key, value)

    def __getitem__(self, key: K) -> V:
        with self._lock:
            return super().__getitem__(key)

    def __delitem__(self, key: K) -> None:
        with self._lock:
            super().__delitem__(key)

    def __iter__(self) -> Iterator[K]:
        with self._lock:
            snapshot = [self._entries[norm_key][0] for norm_key in self._order]
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return super().__len__()

    def __contains__(self, key: Any) -> bool:
        with self._lock:
            return super().__contains__(key)

    def clear(self) -> None:
        with self._lock:
            super().clear()

    # MutableMapping 的默认实现先读后删, 需要在同一把锁内完成
    def pop(self, key: K, *args: Any) -> V:
        with self._lock:
            return super().pop(key, *args)

    def popitem(self) -> tuple[K, V]:
        with self._lock:
            return super().popitem()

    def setdefault(self, key: K, default: Any = None) -> V:
        with self._lock:
            return super().setdefault(key, default)

    def original_key(self, key: K) -> K:
        with self._lock:
            return super().original_key(key)

    def replace(self, key: K, value: V) -> None:
        with self._lock:
            super().replace(key, value)


class ReadOnlyCaseInsensitiveDict(MutableMapping[K, V], Generic[K, V]):
    """
    只读包装.

    读取操作委托给内部存储; 所有修改操作抛出 UnsupportedOperationError.
    包装时不复制, 调用方应传入不再被其它对象引用的存储.
    """

    read_only = True

    def __init__(self, store: CaseInsensitiveDict[K, V]) -> None:
        self._store = store

    @property
    def kind(self) -> StoreKind:
        return self._store.kind

    @property
    def sort_key(self) -> Callable[[Any], Any] | None:
        return self._store.sort_key

    def __getitem__(self, key: K) -> V:
        return self._store[key]

    def __iter__(self) -> Iterator[K]:
        return iter(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: Any) -> bool:
        return key in self._store

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._store!r})"

    def original_key(self, key: K) -> K:
        return self._store.original_key(key)

    def __setitem__(self, key: K, value: V) -> None:
        raise UnsupportedOperationError("__setitem__")

    def __delitem__(self, key: K) -> None:
        raise UnsupportedOperationError("__delitem__")

    def replace(self, key: K, value: V) -> None:
        raise UnsupportedOperationError("replace")

    def clear(self) -> None:
        raise UnsupportedOperationError("clear")

    def pop(self, key: K, *args: Any) -> V:
        raise UnsupportedOperationError("pop")

    def popitem(self) -> tuple[K, V]:
        raise UnsupportedOperationError("popitem")

    def setdefault(self, key: K, default: Any = None) -> V:
        raise UnsupportedOperationError("setdefault")

    def update(self, *args: Any, **kwds: Any) -> None:
        raise UnsupportedOperationError("update")


_MISSING: Any = object()

_STORE_TYPES: dict[StoreKind, type[CaseInsensitiveDict]] = {
    StoreKind.ORDERED: OrderedCaseInsensitiveDict,
    StoreKind.UNORDERED: CaseInsensitiveDict,
    StoreKind.SORTED: SortedCaseInsensitiveDict,
    StoreKind.CONCURRENT_SORTED: ConcurrentSortedCaseInsensitiveDict,
}


def create_store(
    options: StoreOptions,
    sort_key: Callable[[Any], Any] | None = None,
) -> CaseInsensitiveDict[Any, Any]:
    """
    按配置创建一个空的可写存储.

    `options.read_only` 不在此处理: 只读存储需要先填充再包装,
    见 `ReadOnlyCaseInsensitiveDict`.

    异常:
        InvalidArgumentError: 为非排序存储指定了 sort_key.
    """
    store_type = _STORE_TYPES[options.kind]
    kwds: dict[str, Any] = {
        "capacity": options.capacity,
        "load_factor": options.load_factor,
    }
    if sort_key is not None:
        if not options.kind.sorted:
            raise InvalidArgumentError(
                f"sort_key requires a sorted store kind, got {options.kind.value!r}"
            )
        kwds["sort_key"] = sort_key
    _logger.debugf(
        "create store {store} (capacity={capacity}, load_factor={load_factor})",
        store=store_type.__name__,
        **kwds,
    )
    return store_type(**kwds)
