import json

import pytest

from fsl import ScriptRunner


def run(doc, runner=None):
    runner = runner or ScriptRunner()
    res = runner.handle_script(json.dumps(doc))
    return runner, res


def test_create_binds_in_root_with_no_output():
    runner, res = run({"init": [{"cmd": "create", "id": "x", "value": 5}]})
    assert res.status == "success", res.error_message
    assert runner.root.variables["x"] == "5"
    assert res.side_effects == []


def test_add_stores_full_precision_form():
    runner, res = run({"init": [{"cmd": "add", "id": "y", "operand1": 3, "operand2": 4}]})
    assert res.status == "success", res.error_message
    assert runner.root.variables["y"] == "7.000000"


@pytest.mark.parametrize("cmd,expected", [
    ("add", "7.500000"), ("sub", "-2.500000"), ("mul", "12.500000"), ("div", "0.500000"),
])
def test_arithmetic(cmd, expected):
    runner, res = run({"init": [{"cmd": cmd, "id": "r", "operand1": 2.5, "operand2": "5"}]})
    assert res.status == "success", res.error_message
    assert runner.root.variables["r"] == expected


@pytest.mark.parametrize("a,expected", [(1, "+Inf"), (-1, "-Inf"), (0, "NaN")])
def test_division_by_zero_is_not_an_error(a, expected):
    runner, res = run({"init": [{"cmd": "div", "id": "r", "operand1": a, "operand2": 0}]})
    assert res.status == "success", res.error_message
    assert runner.root.variables["r"] == expected


def test_print_formats_numbers_and_passes_strings_through():
    _, res = run({"init": [
        {"cmd": "print", "value": "3.5"},
        {"cmd": "print", "value": "hello"},
        {"cmd": "print", "value": 7},
    ]})
    assert res.status == "success", res.error_message
    assert res.output == ["3.5000", "hello", "7.0000"]


def test_print_of_unbound_reference_prints_undefined():
    _, res = run({"init": [{"cmd": "print", "value": "#nope"}]})
    assert res.output == ["undefined"]


def test_update_and_delete_existing_variable():
    runner, res = run({
        "v": 1,
        "init": [
            {"cmd": "update", "id": "v", "value": 2},
            {"cmd": "print", "value": "#v"},
            {"cmd": "delete", "id": "v"},
        ],
    })
    assert res.status == "success", res.error_message
    assert res.output == ["2.0000"]
    assert "v" not in runner.root.variables


@pytest.mark.parametrize("cmd", ["update", "delete"])
def test_update_delete_absent_variable_fail(cmd):
    runner, res = run({"init": [{"cmd": cmd, "id": "ghost", "value": 1}]})
    assert res.status == "error"
    assert res.error_kind == "UndefinedVariableOperation"
    assert f'{cmd} failed, variable "ghost" is undefined' in res.error_message
    assert "ghost" not in runner.root.variables


def test_non_numeric_operand_fails():
    _, res = run({"init": [{"cmd": "mul", "id": "r", "operand1": "abc", "operand2": 2}]})
    assert res.status == "error"
    assert res.error_kind == "NumericConversionError"
    assert 'cannot convert "operand1" = "abc" to float' in res.error_message


@pytest.mark.parametrize("entry,attr", [
    ({"cmd": "create", "id": "x"}, "value"),
    ({"cmd": "print"}, "value"),
    ({"cmd": "add", "id": "x", "operand1": 1}, "operand2"),
    ({"cmd": "delete"}, "id"),
])
def test_missing_attribute(entry, attr):
    _, res = run({"init": [entry]})
    assert res.status == "error"
    assert res.error_kind == "MissingArgument"
    assert f'missing "{attr}" argument' in res.error_message


def test_primitives_read_attributes_frame_local_only():
    # 'value' exists in the root, but the print frame itself has no 'value'.
    _, res = run({"value": 1, "init": [{"cmd": "print"}]})
    assert res.status == "error"
    assert res.error_kind == "MissingArgument"


def test_print_of_non_finite_result_uses_inf_nan_spelling():
    runner, res = run({"init": [
        {"cmd": "div", "id": "up", "operand1": 1, "operand2": 0},
        {"cmd": "div", "id": "down", "operand1": -1, "operand2": 0},
        {"cmd": "div", "id": "nothing", "operand1": 0, "operand2": 0},
        {"cmd": "print", "value": "#up"},
        {"cmd": "print", "value": "#down"},
        {"cmd": "print", "value": "#nothing"},
    ]})
    assert res.status == "success", res.error_message
    assert res.output == ["+Inf", "-Inf", "NaN"]


def test_non_finite_text_feeds_back_into_arithmetic():
    runner, res = run({"init": [
        {"cmd": "div", "id": "r", "operand1": 1, "operand2": 0},
        {"cmd": "mul", "id": "s", "operand1": "#r", "operand2": -2},
    ]})
    assert res.status == "success", res.error_message
    assert runner.root.variables["s"] == "-Inf"
