from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    BadAssignTargetError,
    BadIndexError,
    CallArityError,
    IndexOutOfBoundsError,
    MethodNotFoundError,
    MissingKeyError,
    TypeMismatchError,
    make_interpreter,
    run_capture,
    run_program,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("[10, 20, 30][1]", ("number", 20), None, id="vec-index"),
    pytest.param("let v = [1, 2]\nv[1] = 5\nv", ("vec", [1, 5]), None, id="vec-index-assign"),
    pytest.param("let v = [[1], [2]]\nv[1][0] = 9\nv", ("display", "[[1], [9]]"), None, id="nested-index-assign"),
    pytest.param("[1, 2][2]", None, IndexOutOfBoundsError, id="vec-index-past-end"),
    pytest.param("[1, 2][-1]", None, IndexOutOfBoundsError, id="vec-negative-index"),
    pytest.param("[1, 2][0.5]", None, BadIndexError, id="vec-fractional-index"),
    pytest.param('[1, 2]["0"]', None, BadIndexError, id="vec-string-index"),
    pytest.param("let v = []\nv[0] = 1", None, IndexOutOfBoundsError, id="vec-assign-past-end"),
    pytest.param('let d = {a: 1}\nd["a"]', ("number", 1), None, id="dict-index"),
    pytest.param('let d = {a: 1}\nd["b"]', None, MissingKeyError, id="dict-missing-key"),
    pytest.param("let d = {a: 1}\nd[0]", None, BadIndexError, id="dict-num-key"),
    pytest.param('let d = {}\nd["k"] = 2\nd', ("dict", {"k": 2}), None, id="dict-insert"),
    pytest.param('let d = {"two words": 1}\nd["two words"]', ("number", 1), None, id="dict-string-key"),
    pytest.param("let d = {a: 1, a: 2}\nd", ("display", "{a: 2}"), None, id="dict-duplicate-key"),
    pytest.param('let d = {if: 1}\nd["if"]', ("number", 1), None, id="dict-keyword-key"),
    pytest.param("5[0]", None, BadIndexError, id="index-num"),
    pytest.param('"abc"[0]', None, BadIndexError, id="index-string"),
    pytest.param('let s = "abc"\ns[0] = "x"', None, BadAssignTargetError, id="assign-into-string"),
    pytest.param("let n = nil\nn[0] = 1", None, BadAssignTargetError, id="assign-into-nil"),
    pytest.param("let v = [1, 2]\nv.len()", ("number", 2), None, id="vec-len-method"),
    pytest.param("let v = [1]\nv.push(2)\nv", ("vec", [1, 2]), None, id="vec-push-method"),
    pytest.param("let v = [1, 2]\nv.pop()", ("number", 2), None, id="vec-pop-method"),
    pytest.param("[].pop()", None, BadIndexError, id="vec-pop-empty"),
    pytest.param("let v = [1]\npush(v, 2)\nlen(v)", ("number", 2), None, id="push-native"),
    pytest.param("let d = {a: 1, b: 2}\nd.keys()", ("vec", ["a", "b"]), None, id="dict-keys-method"),
    pytest.param('let d = {a: 1}\nd.has("a")', ("bool", True), None, id="dict-has-method"),
    pytest.param('let d = {a: 1}\nhas(d, "z")', ("bool", False), None, id="has-native"),
    pytest.param("let d = {a: 1}\nd.len()", ("number", 1), None, id="dict-len-method"),
    pytest.param("len(0..5)", ("number", 5), None, id="len-range"),
    pytest.param("len(5..0)", ("number", 0), None, id="len-empty-range"),
    pytest.param("len(5)", None, TypeMismatchError, id="len-num"),
    pytest.param("[1].frob()", None, MethodNotFoundError, id="unknown-vec-method"),
    pytest.param("let n = 1\nn.len()", None, MethodNotFoundError, id="method-on-num"),
    pytest.param("[1].push()", None, CallArityError, id="method-arity"),
    pytest.param("push([1])", None, CallArityError, id="native-arity"),
    pytest.param('push("s", 1)', None, TypeMismatchError, id="push-non-vec"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_collection_scenarios(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_vec_aliasing_is_shared() -> None:
    result = run_program(
        dedent(
            """\
            let a = [1, 2]
            let b = a
            b[0] = 99
            a.push(3)
            [a, b]
            """
        )
    )
    assert str(result) == "[[99, 2, 3], [99, 2, 3]]"


def test_dict_passed_to_function_is_shared() -> None:
    result = run_program(
        dedent(
            """\
            fn tag(d) { d["seen"] = true }
            let d = {}
            tag(d)
            d["seen"]
            """
        )
    )
    assert str(result) == "true"


def test_container_inside_container_is_shared() -> None:
    result = run_program(
        dedent(
            """\
            let inner = []
            let outer = {items: inner}
            inner.push(1)
            outer["items"]
            """
        )
    )
    assert str(result) == "[1]"


def test_dict_preserves_insertion_order() -> None:
    result = run_program('let d = {z: 1, a: 2}\nd["m"] = 3\nd["z"] = 4\nd')
    assert str(result) == "{z: 4, a: 2, m: 3}"


def test_bound_method_keeps_receiver() -> None:
    result = run_program("let v = [1]\nlet p = v.push\np(2)\np(3)\nv")
    assert str(result) == "[1, 2, 3]"


def test_setfield_evaluates_base_index_value_in_order() -> None:
    output = run_capture(
        dedent(
            """\
            fn say(x) {
              print(x)
              return x
            }
            let v = [0]
            say(v)[say(0)] = say(7)
            """
        )
    )
    assert output == "[0]\n0\n7\n"


def test_index_error_message() -> None:
    with pytest.raises(IndexOutOfBoundsError) as exc_info:
        run_program("[1, 2, 3][5]")

    assert exc_info.value.index == 5
    assert exc_info.value.length == 3


def test_dict_missing_key_then_insert() -> None:
    interp = make_interpreter()
    interp.run("let d = {}")

    with pytest.raises(MissingKeyError):
        interp.run('d["k"]')

    interp.run('d["k"] = "v"')
    assert str(interp.run('d["k"]')) == "v"


def test_vec_get_set_get() -> None:
    interp = make_interpreter()
    interp.run("let v = [1, 2, 3]")

    assert str(interp.run("v[1]")) == "2"
    assert str(interp.run("v[1] = 20")) == "20"
    assert str(interp.run("v[1]")) == "20"
