import pytest

from fsl.fsl_datatypes import ScriptSyntaxError
from fsl.fsl_serialize import deserialize, detect_format


def test_detect_format_by_suffix_and_hint():
    assert detect_format("x.yaml") == "yaml"
    assert detect_format("x.YML") == "yaml"
    assert detect_format("x.json") == "json"
    assert detect_format("script") == "json"
    assert detect_format(data_hint='{"init": []}') == "json"
    assert detect_format(data_hint="init: []") == "yaml"


def test_deserialize_json_bytes_and_text():
    assert deserialize(b'{"init": [], "x": 1}', fmt="json") == {"init": [], "x": 1}
    assert deserialize('{"x": 1.5}') == {"x": 1.5}


def test_deserialize_yaml():
    src = "x: 2\ninit:\n  - cmd: print\n    value: '#x'\n"
    assert deserialize(src, fmt="yaml") == {"x": 2, "init": [{"cmd": "print", "value": "#x"}]}


@pytest.mark.parametrize("src,fmt", [
    ('{"init": [', "json"),
    ('{"x": NaN, "init": []}', "json"),
    ("init: [unclosed", "yaml"),
])
def test_malformed_documents_raise_syntax_error(src, fmt):
    with pytest.raises(ScriptSyntaxError):
        deserialize(src, fmt=fmt)


@pytest.mark.parametrize("src", [
    '{"x": 1' + "0" * 400 + ', "init": []}',
    '{"x": 1e400, "init": []}',
    '{"init": [{"cmd": "print", "value": -1e999}]}',
])
def test_numbers_outside_float64_range_are_syntax_errors(src):
    with pytest.raises(ScriptSyntaxError) as ei:
        deserialize(src, fmt="json")
    assert "out of range" in str(ei.value)


def test_numbers_inside_float64_range_decode():
    doc = deserialize('{"big": 1' + "0" * 300 + ', "tiny": 1e-300, "max": 1.7976931348623157e308}', fmt="json")
    assert doc["big"] == 10 ** 300
    assert doc["tiny"] == 1e-300
    assert doc["max"] == 1.7976931348623157e308
