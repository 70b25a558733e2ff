"""Tests for the MemoryRuntime reference binding."""

import pytest

from rbridge import Discriminant as D
from rbridge import MemoryRuntime, RuntimeException


# ---------------------------------------------------------------------------
# Literal reader
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "source, kind",
    [
        ("nil", D.NIL),
        ("true", D.TRUE),
        ("false", D.FALSE),
        ("42", D.INTEGER),
        ("-7", D.INTEGER),
        ("3.14", D.FLOAT),
        ("1e3", D.FLOAT),
        ('"water"', D.STRING),
        ("'mint'", D.STRING),
        (":sym", D.OTHER),
        ("[1, 2]", D.ARRAY),
        ('{"a" => 1}', D.HASH),
    ],
)
def test_load_string_kinds(rt, source, kind):
    assert rt.type_of(rt.load_string(source)) == kind


def test_load_string_scalars(rt):
    assert rt.as_int(rt.load_string("-7")) == -7
    assert rt.as_float(rt.load_string("3.140000")) == 3.14
    assert rt.as_string(rt.load_string(r'"a\tb\"c"')) == 'a\tb"c'
    assert rt.as_string(rt.load_string(r"'it\'s'")) == "it's"


def test_load_string_empty_is_nil(rt):
    assert rt.type_of(rt.load_string("  ")) == D.NIL


def test_load_string_nested(rt):
    v = rt.load_string('{"moons" => ["Moon", nil], name: "Earth",}')
    pairs = rt.hash_view(v)
    assert [rt.inspect(k) for k, _ in pairs] == ['"moons"', ":name"]
    moons = rt.array_view(pairs[0][1])
    assert [rt.type_of(m) for m in moons] == [D.STRING, D.NIL]


@pytest.mark.parametrize("source", ["[1, 2", "{1 2}", "foo", "1 2", "@x", '{"a" =>}'])
def test_load_string_syntax_error(rt, source):
    with pytest.raises(RuntimeException, match="SyntaxError"):
        rt.load_string(source)


# ---------------------------------------------------------------------------
# Coercion primitives
# ---------------------------------------------------------------------------

class TestCoercion:
    def test_as_string_is_to_s(self, rt):
        assert rt.as_string(rt.load_string("nil")) == ""
        assert rt.as_string(rt.load_string("true")) == "true"
        assert rt.as_string(rt.load_string("12")) == "12"
        assert rt.as_string(rt.load_string("1.0")) == "1.0"
        assert rt.as_string(rt.load_string(":moon")) == "moon"
        assert rt.as_string(rt.load_string('["a", 1]')) == '["a", 1]'
        assert rt.as_string(rt.load_string('{"a" => 1}')) == '{"a"=>1}'

    def test_as_int(self, rt):
        assert rt.as_int(rt.load_string("2.9")) == 2
        assert rt.as_int(rt.load_string('"12"')) == 0

    def test_as_float(self, rt):
        assert rt.as_float(rt.load_string("2")) == 2.0
        assert rt.as_float(rt.load_string("nil")) == 0.0

    def test_float_inspect_exponent(self, rt):
        assert rt.inspect(rt.float_value(1e20)) == "1.0e+20"


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

class TestContainers:
    def test_hash_keeps_insertion_order(self, rt):
        h = rt.new_hash()
        for key in ["b", "a", "c"]:
            rt.store(h, rt.string_value(key), rt.int_value(1))
        assert [rt.as_string(k) for k, _ in rt.hash_view(h)] == ["b", "a", "c"]

    def test_store_overwrites_equal_key(self, rt):
        h = rt.new_hash()
        rt.store(h, rt.string_value("k"), rt.int_value(1))
        rt.store(h, rt.string_value("k"), rt.int_value(2))
        pairs = rt.hash_view(h)
        assert len(pairs) == 1
        assert rt.as_int(pairs[0][1]) == 2

    def test_integer_and_float_keys_distinct(self, rt):
        h = rt.new_hash()
        rt.store(h, rt.int_value(1), rt.string_value("int"))
        rt.store(h, rt.float_value(1.0), rt.string_value("float"))
        assert len(rt.hash_view(h)) == 2

    def test_array_view_rejects_other_kinds(self, rt):
        with pytest.raises(RuntimeException, match="TypeError"):
            rt.array_view(rt.load_string("1"))

    def test_from_python(self, rt):
        v = rt.from_python({"a": [1, 2.5, None, True]})
        assert rt.inspect(v) == '{"a"=>[1, 2.5, nil, true]}'

    def test_from_python_rejects_unknown(self, rt):
        with pytest.raises(TypeError):
            rt.from_python(object())


# ---------------------------------------------------------------------------
# Method calls
# ---------------------------------------------------------------------------

class TestCallMethod:
    def test_constant_method(self, rt):
        obj = rt.new_object("Planet", name="Earth")
        assert rt.as_string(rt.call_method(obj, "name")) == "Earth"

    def test_callable_method(self, rt):
        obj = rt.new_object("Counter", twice=lambda rt_, self_, n: rt_.int_value(rt_.as_int(n) * 2))
        assert rt.as_int(rt.call_method(obj, "twice", rt.int_value(4))) == 8

    def test_missing_method(self, rt):
        obj = rt.new_object("Planet")
        with pytest.raises(RuntimeException, match="NoMethodError"):
            rt.call_method(obj, "mass")

    def test_constant_with_args(self, rt):
        obj = rt.new_object("Planet", name="Earth")
        with pytest.raises(RuntimeException, match="ArgumentError"):
            rt.call_method(obj, "name", rt.int_value(1))

    def test_python_exception_becomes_runtime_exception(self, rt):
        def boom(rt_, self_):
            raise ValueError("kaboom")

        obj = rt.new_object("Bomb", boom=boom)
        with pytest.raises(RuntimeException, match="ValueError: kaboom"):
            rt.call_method(obj, "boom")

    def test_builtin_push_and_size(self, rt):
        arr = rt.new_array()
        rt.call_method(arr, "push", rt.int_value(1), rt.int_value(2))
        assert rt.as_int(rt.call_method(arr, "size")) == 2

    def test_builtin_hash_keys(self, rt):
        h = rt.load_string('{"a" => 1, "b" => 2}')
        keys = rt.call_method(h, "keys")
        assert [rt.as_string(k) for k in rt.array_view(keys)] == ["a", "b"]

    def test_class(self, rt):
        assert rt.as_string(rt.call_method(rt.load_string("1"), "class")) == "Integer"
        obj = rt.new_object("Planet")
        assert rt.as_string(rt.call_method(obj, "class")) == "Planet"

    def test_object_to_s(self, rt):
        plain = rt.new_object("Planet")
        named = rt.new_object("Planet", to_s="Earth")
        assert rt.as_string(plain) == "#<Planet>"
        assert rt.as_string(named) == "Earth"


# ---------------------------------------------------------------------------
# Error objects
# ---------------------------------------------------------------------------

class TestErrorObjects:
    def test_make_error_object(self, rt):
        err = rt.make_error_object("boom")
        assert rt.class_name(err) == "RuntimeError"
        assert rt.as_string(rt.call_method(err, "message")) == "boom"
        assert rt.type_of(rt.call_method(err, "backtrace")) == D.NIL

    def test_undefined_error_class(self, rt):
        rt.undefine_class("RuntimeError")
        with pytest.raises(RuntimeException, match="NameError"):
            rt.make_error_object("boom")

    def test_set_backtrace_validates(self, rt):
        err = rt.make_error_object("boom")
        with pytest.raises(RuntimeException, match="TypeError"):
            rt.call_method(err, "set_backtrace", rt.from_python([1]))
