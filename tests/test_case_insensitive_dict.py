"""
大小写不敏感字典(后备存储)测试套件
"""

import threading

import pytest

from pwt.ciset.case_insensitive_dict import (
    CaseInsensitiveDict,
    ConcurrentSortedCaseInsensitiveDict,
    OrderedCaseInsensitiveDict,
    ReadOnlyCaseInsensitiveDict,
    SortedCaseInsensitiveDict,
    create_store,
    normalize_key,
)
from pwt.ciset.errors import InvalidArgumentError, UnsupportedOperationError
from pwt.ciset.options import StoreKind, load_options


@pytest.fixture
def store():
    return OrderedCaseInsensitiveDict({"PATH": "A", "Home": "B", 7: "seven"})


def test_normalize_key():
    assert normalize_key("PaTh") == "path"
    assert normalize_key("Straße") == "strasse"
    assert normalize_key(7) == 7
    assert normalize_key(("A",)) == ("A",)


class TestBasicMapping:
    """测试映射基本行为"""

    def test_getitem_any_case(self, store):
        assert store["path"] == "A"
        assert store["PATH"] == "A"
        assert store[7] == "seven"

    def test_setitem_keeps_first_key(self, store):
        store["Path"] = "C"
        assert store["path"] == "C"
        assert list(store) == ["PATH", "Home", 7]

    def test_replace_swaps_key(self, store):
        store.replace("Path", "C")
        assert list(store.items()) == [("Path", "C"), ("Home", "B"), (7, "seven")]

    def test_replace_inserts_missing(self, store):
        store.replace("new", 1)
        assert store["NEW"] == 1

    def test_original_key(self, store):
        assert store.original_key("home") == "Home"
        with pytest.raises(KeyError):
            store.original_key("missing")

    def test_delitem(self, store):
        del store["home"]
        assert "Home" not in store
        assert len(store) == 2

    def test_missing_key_error_uses_query(self, store):
        with pytest.raises(KeyError) as ex:
            store["Missing"]
        assert ex.value.args == ("Missing",)
        with pytest.raises(KeyError):
            del store["Missing"]

    def test_non_string_keys(self, store):
        assert 7 in store
        assert "7" not in store

    def test_unhashable_contains(self, store):
        assert [1] not in store

    def test_mapping_mixins(self, store):
        assert store.get("HOME") == "B"
        assert store.get("nope", 0) == 0
        assert store.pop("home") == "B"
        assert store.setdefault("x", 1) == 1
        assert store.setdefault("X", 2) == 1

    def test_clear(self, store):
        store.clear()
        assert len(store) == 0
        assert list(store) == []

    def test_repr(self):
        d = OrderedCaseInsensitiveDict({"A": 1})
        assert repr(d) == "OrderedCaseInsensitiveDict({'A': 1})"

    def test_equality_with_dict(self):
        assert CaseInsensitiveDict({"A": 1}) == {"A": 1}


class TestCapacity:
    """测试容量提示与校验"""

    def test_defaults(self):
        d = CaseInsensitiveDict()
        assert d.capacity == 16
        assert d.load_factor == 0.75

    def test_explicit(self):
        d = CaseInsensitiveDict(capacity=128, load_factor=1.5)
        assert d.capacity == 128
        assert d.load_factor == 1.5

    @pytest.mark.parametrize("kwds", [{"capacity": -1}, {"load_factor": 0.0}])
    def test_invalid(self, kwds):
        with pytest.raises(InvalidArgumentError):
            CaseInsensitiveDict(**kwds)


class TestSorted:
    """测试排序存储"""

    def test_sorted_iteration(self):
        d = SortedCaseInsensitiveDict({"b": 1, "C": 2, "a": 3})
        assert list(d) == ["a", "b", "C"]

    def test_sort_key_exposed(self):
        assert SortedCaseInsensitiveDict(sort_key=len).sort_key is len
        assert SortedCaseInsensitiveDict().sort_key is None
        assert CaseInsensitiveDict().sort_key is None

    def test_delete_keeps_order(self):
        d = SortedCaseInsensitiveDict({"b": 1, "C": 2, "a": 3})
        del d["B"]
        assert list(d) == ["a", "C"]

    def test_non_injective_sort_key(self):
        d = SortedCaseInsensitiveDict(sort_key=len)
        for key in ("aa", "bb", "cc"):
            d[key] = key
        del d["BB"]
        assert list(d) == ["aa", "cc"]

    def test_incomparable_leaves_store_unchanged(self):
        d = SortedCaseInsensitiveDict({"a": 1})
        with pytest.raises(TypeError):
            d[1] = 1
        assert list(d) == ["a"]
        assert len(d) == 1

    def test_overwrite_does_not_break_iteration(self):
        d = SortedCaseInsensitiveDict({"a": 1, "b": 2})
        for key in d:
            d[key] = 0
        assert dict(d.items()) == {"a": 0, "b": 0}

    def test_structural_change_during_iteration(self):
        d = SortedCaseInsensitiveDict({"a": 1, "b": 2})
        with pytest.raises(RuntimeError):
            for key in d:
                del d[key]

    def test_clear_resets_order(self):
        d = SortedCaseInsensitiveDict({"b": 1})
        d.clear()
        d["a"] = 1
        assert list(d) == ["a"]


class TestConcurrentSorted:
    """测试并发排序存储"""

    def test_snapshot_iteration(self):
        d = ConcurrentSortedCaseInsensitiveDict({"b": 1, "a": 2})
        seen = []
        for key in d:
            seen.append(key)
            d[key + "z"] = 0
        assert seen == ["a", "b"]
        assert list(d) == ["a", "az", "b", "bz"]

    def test_delete_during_iteration(self):
        d = ConcurrentSortedCaseInsensitiveDict({"b": 1, "a": 2})
        for key in d:
            del d[key]
        assert len(d) == 0

    def test_pop_not_interleaved(self):
        class Store(ConcurrentSortedCaseInsensitiveDict):
            """读取之后立即让另一个线程删除同一个键"""

            other = None

            def __getitem__(self, key):
                value = super().__getitem__(key)
                if self.other is None:
                    self.other = threading.Thread(target=self.pop, args=(key, None))
                    self.other.start()
                    self.other.join(timeout=0.2)
                return value

        d = Store({"a": 1})
        assert d.pop("A", None) == 1
        d.other.join()
        assert len(d) == 0
        assert d.pop("a", None) is None

    def test_popitem_and_setdefault(self):
        d = ConcurrentSortedCaseInsensitiveDict({"b": 1, "A": 2})
        assert d.setdefault("B", 3) == 1
        assert d.setdefault("c", 3) == 3
        assert d.popitem() == ("A", 2)
        assert list(d) == ["b", "c"]


class TestReadOnly:
    """测试只读包装"""

    @pytest.fixture
    def frozen(self):
        inner = SortedCaseInsensitiveDict({"b": 1, "A": 2})
        return ReadOnlyCaseInsensitiveDict(inner)

    def test_reads(self, frozen):
        assert frozen["a"] == 2
        assert "B" in frozen
        assert list(frozen) == ["A", "b"]
        assert len(frozen) == 2
        assert frozen.original_key("a") == "A"
        assert frozen.kind is StoreKind.SORTED
        assert frozen.read_only
        assert frozen.sort_key is None

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda d: d.__setitem__("c", 3),
            lambda d: d.__delitem__("a"),
            lambda d: d.replace("a", 3),
            lambda d: d.clear(),
            lambda d: d.pop("a"),
            lambda d: d.pop("missing", None),
            lambda d: d.popitem(),
            lambda d: d.setdefault("c", 3),
            lambda d: d.update({"c": 3}),
        ],
    )
    def test_mutators_rejected(self, frozen, mutate):
        with pytest.raises(UnsupportedOperationError) as ex:
            mutate(frozen)
        assert ex.value.operation
        assert len(frozen) == 2


class TestCreateStore:
    """测试按配置创建存储"""

    @pytest.mark.parametrize(
        "kind, store_type",
        [
            (StoreKind.ORDERED, OrderedCaseInsensitiveDict),
            (StoreKind.UNORDERED, CaseInsensitiveDict),
            (StoreKind.SORTED, SortedCaseInsensitiveDict),
            (StoreKind.CONCURRENT_SORTED, ConcurrentSortedCaseInsensitiveDict),
        ],
    )
    def test_kinds(self, kind, store_type):
        store = create_store(load_options(kind=kind))
        assert type(store) is store_type
        assert store.kind is kind
        assert len(store) == 0

    def test_capacity_forwarded(self):
        store = create_store(load_options(capacity=3, load_factor=0.5))
        assert store.capacity == 3
        assert store.load_factor == 0.5

    def test_sort_key_forwarded(self):
        store = create_store(load_options(kind="sorted"), sort_key=lambda k: -len(k))
        store["a"] = 1
        store["bbb"] = 2
        assert list(store) == ["bbb", "a"]

    def test_sort_key_rejected_for_hash_kinds(self):
        with pytest.raises(InvalidArgumentError):
            create_store(load_options(kind="ordered"), sort_key=len)
