"""
Unit tests for the host module (Python reflection side).

Covers:
  • ParamKind classification and acceptance rules
  • MemberDescriptor arity helpers / SignatureShape matching and scoring
  • PythonHost member tables (fields, properties, methods, statics, privates,
    overrides, slots, ClassVar, C-implemented methods)
  • PythonHost invocation (call / get_value / set_value / unbox / iterate)
  • PythonHost.find_type / register_type / is_alive
  • TypeShape dumps (text, JSON, search)
  • get_host factory
"""

import ctypes
import json
from dataclasses import dataclass
from typing import ClassVar, Optional

import pytest

from modbridge.exceptions import UnsupportedHostError
from modbridge.host import (
    MemberDescriptor,
    MemberKind,
    ParameterInfo,
    ParamKind,
    PythonHost,
    SignatureShape,
    TableHost,
    describe_type,
    get_host,
    register_host,
)


# ── Fixtures ──────────────────────────────────────────────────────────────────

class Widget:
    count: int = 5
    title: Optional[str] = None
    _secret: int = 1
    kind_name: ClassVar[str] = "widget"
    registry = {}

    def __init__(self, count: int = 5) -> None:
        self.count = count

    @property
    def label(self) -> str:
        return f"widget#{self.count}"

    def scaled(self, factor: int) -> int:
        return self.count * factor

    def total(self, *values: int) -> int:
        return self.count + sum(values)

    @staticmethod
    def make() -> "Widget":
        return Widget(1)

    @classmethod
    def named(cls, name: str) -> str:
        return f"{cls.__name__}:{name}"


class Gadget(Widget):
    def scaled(self, factor: int) -> int:
        return -1


class Slotted:
    __slots__ = ("x", "y")

    def __init__(self) -> None:
        self.x = 1
        self.y = 2


@dataclass
class Point:
    x: float = 0.0
    y: float = 0.0


@pytest.fixture
def host() -> PythonHost:
    return PythonHost()


def _by_name(host: PythonHost, cls: type) -> dict[str, MemberDescriptor]:
    return {d.name: d for d in host.members(cls)}


# ── ParamKind ─────────────────────────────────────────────────────────────────

class TestParamKind:
    def test_of_value_bool_before_int(self):
        assert ParamKind.of_value(True) is ParamKind.BOOL
        assert ParamKind.of_value(3) is ParamKind.INT

    def test_of_value_misc(self):
        assert ParamKind.of_value(None) is ParamKind.ANY
        assert ParamKind.of_value(1.5) is ParamKind.FLOAT
        assert ParamKind.of_value("x") is ParamKind.STR
        assert ParamKind.of_value([1]) is ParamKind.SEQUENCE
        assert ParamKind.of_value(object()) is ParamKind.OBJECT

    def test_of_type_names_from_dumps(self):
        assert ParamKind.of_type("int32") is ParamKind.INT
        assert ParamKind.of_type("String") is ParamKind.STR
        assert ParamKind.of_type("Building") is ParamKind.OBJECT

    def test_of_type_generics(self):
        assert ParamKind.of_type(list[int]) is ParamKind.SEQUENCE
        assert ParamKind.of_type(None) is ParamKind.ANY

    def test_float_accepts_int_but_not_reverse(self):
        assert ParamKind.FLOAT.accepts(ParamKind.INT)
        assert not ParamKind.INT.accepts(ParamKind.FLOAT)

    def test_any_accepts_everything(self):
        assert ParamKind.ANY.accepts(ParamKind.STR)
        assert ParamKind.STR.accepts(ParamKind.ANY)


# ── MemberDescriptor / SignatureShape ─────────────────────────────────────────

class TestSignatureShape:
    def _method(self, *kinds: ParamKind, defaults: int = 0, variadic: bool = False) -> MemberDescriptor:
        params = tuple(
            ParameterInfo(name=f"p{i}", kind=k, has_default=i >= len(kinds) - defaults)
            for i, k in enumerate(kinds)
        )
        return MemberDescriptor("m", MemberKind.METHOD, "T", parameters=params, variadic=variadic)

    def test_fields_only_accept_zero_arity(self):
        field = MemberDescriptor("f", MemberKind.FIELD, "T")
        assert field.accepts_arity(0)
        assert not field.accepts_arity(1)

    def test_defaults_lower_min_arity(self):
        method = self._method(ParamKind.INT, ParamKind.INT, defaults=1)
        assert method.min_arity == 1
        assert method.max_arity == 2
        assert SignatureShape(arity=1).matches(method)
        assert not SignatureShape(arity=3).matches(method)

    def test_variadic_has_no_upper_bound(self):
        method = self._method(variadic=True)
        assert method.max_arity is None
        assert SignatureShape(arity=7).matches(method)

    def test_none_arity_matches_anything(self):
        assert SignatureShape().matches(self._method(ParamKind.INT))

    def test_kinds_do_not_filter_only_rank(self):
        shape = SignatureShape.from_args(["text"])
        int_method = self._method(ParamKind.INT)
        str_method = self._method(ParamKind.STR)
        assert shape.matches(int_method)
        assert shape.score(str_method) > shape.score(int_method)

    def test_str_of_descriptor(self):
        method = self._method(ParamKind.INT, variadic=True)
        assert str(method) == "T.m(p0, *)"


# ── PythonHost: member tables ─────────────────────────────────────────────────

class TestPythonHostMembers:
    def test_annotated_field_is_instance_field(self, host):
        count = _by_name(host, Widget)["count"]
        assert count.kind is MemberKind.FIELD
        assert count.is_static is False
        assert count.writable is True
        assert count.value_type is int

    def test_property(self, host):
        label = _by_name(host, Widget)["label"]
        assert label.kind is MemberKind.PROPERTY
        assert label.readable and not label.writable
        assert label.value_type is str

    def test_method_parameters(self, host):
        scaled = _by_name(host, Widget)["scaled"]
        assert scaled.kind is MemberKind.METHOD
        assert [p.name for p in scaled.parameters] == ["factor"]
        assert scaled.parameters[0].kind is ParamKind.INT
        assert scaled.value_type is int

    def test_varargs_method(self, host):
        total = _by_name(host, Widget)["total"]
        assert total.variadic is True
        assert total.accepts_arity(4)

    def test_static_and_class_methods(self, host):
        members = _by_name(host, Widget)
        assert members["make"].is_static
        assert members["named"].is_static
        assert [p.name for p in members["named"].parameters] == ["name"]

    def test_classvar_and_plain_class_attribute_are_static(self, host):
        members = _by_name(host, Widget)
        assert members["kind_name"].is_static
        assert members["registry"].is_static
        assert members["registry"].kind is MemberKind.FIELD

    def test_dunders_never_exposed(self, host):
        assert not any(n.startswith("__") for n in _by_name(host, Widget))

    def test_private_members_toggle(self):
        assert "_secret" in _by_name(PythonHost(include_private=True), Widget)
        assert "_secret" not in _by_name(PythonHost(include_private=False), Widget)

    def test_override_comes_first_and_hides_base(self, host):
        members = list(host.members(Gadget))
        scaled = [d for d in members if d.name == "scaled"]
        assert len(scaled) == 1
        assert scaled[0].declaring_type.endswith("Gadget")
        count = next(d for d in members if d.name == "count")
        assert count.declaring_type.endswith("Widget")

    def test_slots_are_fields(self, host):
        members = _by_name(host, Slotted)
        assert members["x"].kind is MemberKind.FIELD
        assert members["y"].writable

    def test_dataclass_fields(self, host):
        members = _by_name(host, Point)
        assert members["x"].kind is MemberKind.FIELD
        assert members["x"].value_type is float

    def test_c_methods_are_callable(self, host):
        append = _by_name(host, list)["append"]
        assert append.kind is MemberKind.METHOD
        assert append.accepts_arity(1)

    def test_non_class_token_rejected(self, host):
        with pytest.raises(TypeError):
            host.members("Widget")


# ── PythonHost: invocation ────────────────────────────────────────────────────

class TestPythonHostInvocation:
    def test_call_method(self, host):
        w = Widget(4)
        assert host.call(_by_name(host, Widget)["scaled"], w, [3]) == 12

    def test_call_static_and_classmethod(self, host):
        members = _by_name(host, Widget)
        assert isinstance(host.call(members["make"], Widget, []), Widget)
        assert host.call(members["named"], Widget, ["x"]) == "Widget:x"

    def test_call_instance_method_on_type_fails(self, host):
        with pytest.raises(TypeError):
            host.call(_by_name(host, Widget)["scaled"], Widget, [1])

    def test_zero_arg_call_on_field_reads_it(self, host):
        assert host.call(_by_name(host, Widget)["count"], Widget(7), []) == 7

    def test_get_and_set_field(self, host):
        w = Widget()
        count = _by_name(host, Widget)["count"]
        host.set_value(count, w, 11)
        assert host.get_value(count, w) == 11

    def test_set_read_only_property_raises(self, host):
        with pytest.raises(AttributeError):
            host.set_value(_by_name(host, Widget)["label"], Widget(), "x")

    def test_static_write_goes_to_type(self, host):
        registry = _by_name(host, Widget)["kind_name"]
        try:
            host.set_value(registry, Widget(), "changed")
            assert Widget.kind_name == "changed"
        finally:
            Widget.kind_name = "widget"

    def test_c_method_call(self, host):
        items = [1]
        host.call(_by_name(host, list)["append"], items, [2])
        assert items == [1, 2]

    def test_unbox_ctypes(self, host):
        assert host.unbox(ctypes.c_int(7)) == 7
        assert host.unbox("x") == "x"

    def test_iterate(self, host):
        assert host.iterate((1, 2, 3)) == [1, 2, 3]
        assert host.iterate({"a": 1}) == ["a"]
        assert host.iterate("abc") is None
        assert host.iterate(5) is None


# ── PythonHost: types & validity ──────────────────────────────────────────────

class TestPythonHostTypes:
    def test_type_name_is_qualified(self, host):
        assert host.type_name(Widget).endswith(".Widget")
        assert host.type_name(int) == "int"

    def test_find_type_module_attr(self, host):
        import collections
        assert host.find_type("collections:OrderedDict") is collections.OrderedDict
        assert host.find_type("collections.OrderedDict") is collections.OrderedDict

    def test_find_type_registered_alias(self, host):
        host.register_type(Point, alias="PointNative")
        assert host.find_type("PointNative") is Point
        assert host.find_type("Point") is Point

    def test_find_type_unknown(self, host):
        assert host.find_type("NoSuchTypeAnywhere123") is None
        assert host.find_type("") is None

    def test_is_alive(self):
        host = PythonHost(alive_check=lambda h: not getattr(h, "destroyed", False))
        w = Widget()
        assert host.is_alive(w)
        w.destroyed = True
        assert not host.is_alive(w)
        assert not host.is_alive(None)

    def test_base_names(self, host):
        assert host.base_names(Gadget) == ("Widget",)


# ── TypeShape ─────────────────────────────────────────────────────────────────

class TestTypeShape:
    def test_describe_type(self, host):
        shape = describe_type(host, Gadget)
        assert shape.name.endswith("Gadget")
        assert shape.bases == ["Widget"]
        assert shape.find_member("SCALED").declaring.endswith("Gadget")

    def test_to_text_marks_inherited(self, host):
        text = describe_type(host, Gadget).to_text()
        assert text.splitlines()[0].endswith(": Widget]")
        assert "scaled(factor) -> int" in text
        assert "count: int [field]" in text

    def test_to_text_declared_only(self, host):
        text = describe_type(host, Gadget).to_text(inherited=False)
        assert "scaled" in text
        assert "count" not in text

    def test_to_json(self, host):
        data = json.loads(describe_type(host, Widget).to_json())
        names = {m["name"] for m in data["members"]}
        assert {"count", "label", "scaled"} <= names
        make = next(m for m in data["members"] if m["name"] == "make")
        assert make["static"] is True

    def test_search_camel_case_tokens(self):
        from modbridge.host import MemberShape, TypeShape
        shape = TypeShape(name="Game", members=[
            MemberShape(name="_gameEventBus", kind="field", type="", declaring="Game"),
            MemberShape(name="score", kind="field", type="", declaring="Game"),
        ])
        assert [m.name for m in shape.search("eventbus")] == ["_gameEventBus"]


# ── Factory ───────────────────────────────────────────────────────────────────

class TestGetHost:
    def test_known_hosts(self):
        assert isinstance(get_host(), PythonHost)
        assert isinstance(get_host("TABLE"), TableHost)

    def test_options_forwarded(self):
        host = get_host("python", include_private=False)
        assert "_secret" not in _by_name(host, Widget)

    def test_unknown_raises(self):
        with pytest.raises(UnsupportedHostError):
            get_host("il2cpp-remote")

    def test_register_host(self):
        register_host("custom-test", PythonHost)
        assert isinstance(get_host("custom-test"), PythonHost)
