import pytest

from mycs import ScriptRunner
from mycs.mycs_serialize import class_graph, deserialize, serialize

SHAPES = """
interface Shape { function area(); }
class Base { public id = 1; function describe() { return "base"; } }
class Square extends Base implements Shape {
    side;
    public override function area() { return this.side * this.side; }
}
"""


def graph():
    runner = ScriptRunner()
    res = runner.run(SHAPES)
    assert res.status == 'success', res.error_message
    return class_graph(runner.context.classes)


def test_class_graph_shape():
    g = graph()
    assert [c["name"] for c in g] == ["Base", "Square"]
    base, square = g
    assert base == {
        "index": 0,
        "name": "Base",
        "base": None,
        "interfaces": [],
        "fields": [{"name": "id", "access": "public", "initialized": True}],
        "methods": [{"name": "describe", "access": "private", "params": [], "virtual": False, "override": False}],
    }
    assert square["base"] == 0
    assert square["interfaces"] == ["Shape"]
    assert square["fields"] == [{"name": "side", "access": "private", "initialized": False}]
    assert square["methods"][0]["override"] is True


@pytest.mark.parametrize("fmt", ["json", "yaml"])
def test_class_graph_survives_text_round_trip(fmt):
    g = graph()
    assert deserialize(serialize(g, fmt=fmt), fmt=fmt) == g


def test_yaml_keeps_key_order():
    text = serialize({"b": 1, "a": 2}, fmt="yaml")
    assert text.index("b:") < text.index("a:")


def test_compact_json():
    assert serialize({"a": [1, 2]}, fmt="json", pretty=False) == '{"a": [1, 2]}'


def test_unknown_format_is_rejected():
    with pytest.raises(ValueError):
        serialize({}, fmt="xml")
    with pytest.raises(ValueError):
        deserialize("", fmt="toml")
