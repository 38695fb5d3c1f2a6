import pytest

from polysub.unwindmap import UnwindMap, sorted_items


def test_insert_and_get():
    m = UnwindMap()
    m.insert("a", 1)
    assert m.get("a") == 1
    assert m.get("b") is None
    assert "a" in m
    assert m["a"] == 1


def test_unwind_removes_new_keys():
    m = UnwindMap()
    point = m.unwind_point()
    m.insert("a", 1)
    m.insert("b", 2)
    m.unwind(point)
    assert "a" not in m
    assert "b" not in m
    assert len(m) == 0


def test_unwind_restores_shadowed_values():
    m = UnwindMap()
    m.insert("a", 1)
    point = m.unwind_point()
    m.insert("a", 2)
    m.insert("a", 3)
    assert m.get("a") == 3
    m.unwind(point)
    assert m.get("a") == 1


def test_unwind_restores_none_value():
    m = UnwindMap()
    m.insert("a", None)
    point = m.unwind_point()
    m.insert("a", 5)
    m.unwind(point)
    assert "a" in m
    assert m.get("a") is None


def test_nested_unwind_points():
    m = UnwindMap()
    outer = m.unwind_point()
    m.insert("x", 1)
    inner = m.unwind_point()
    m.insert("y", 2)
    m.unwind(inner)
    assert dict(m.mapping) == {"x": 1}
    m.unwind(outer)
    assert dict(m.mapping) == {}


def test_unwind_to_unreachable_point_raises():
    m = UnwindMap()
    m.insert("a", 1)
    with pytest.raises(ValueError):
        m.unwind(5)


def test_make_permanent_keeps_values():
    m = UnwindMap()
    point = m.unwind_point()
    m.insert("a", 1)
    m.make_permanent(point)
    m.unwind(m.unwind_point())
    m.unwind(0)
    assert m.get("a") == 1


def test_make_permanent_requires_initial_point():
    m = UnwindMap()
    m.insert("a", 1)
    with pytest.raises(ValueError):
        m.make_permanent(m.unwind_point())


def test_mapping_view_is_read_only():
    m = UnwindMap()
    m.insert("a", 1)
    with pytest.raises(TypeError):
        m.mapping["b"] = 2
    assert dict(m.mapping) == {"a": 1}
    assert m.get("b") is None


def test_sorted_items():
    assert sorted_items({3, 1, 2}) == [1, 2, 3]
    assert sorted_items(iter(["b", "a"])) == ["a", "b"]