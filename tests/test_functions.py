from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    CallArityError,
    NotCallableError,
    UnboundNameError,
    run_capture,
    run_program,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("fn add(a, b) { return a + b }\nadd(2, 3)", ("number", 5), None, id="named-fn"),
    pytest.param("fn f() { 1 }\nf()", ("nil", None), None, id="no-return-yields-nil"),
    pytest.param("fn f() { return }\nf()", ("nil", None), None, id="bare-return-yields-nil"),
    pytest.param("let sq = fn(x) { return x * x }\nsq(4)", ("number", 16), None, id="lambda-call"),
    pytest.param("(fn(x) { return x + 1 })(1)", ("number", 2), None, id="immediate-lambda-call"),
    pytest.param(
        dedent(
            """\
            fn fact(n) {
              if n <= 1 { return 1 }
              return n * fact(n - 1)
            }
            fact(10)
            """
        ),
        ("number", 3628800),
        None,
        id="recursion",
    ),
    pytest.param(
        dedent(
            """\
            fn is_even(n) { if n == 0 { return true }
              return is_odd(n - 1) }
            fn is_odd(n) { if n == 0 { return false }
              return is_even(n - 1) }
            is_even(10)
            """
        ),
        ("bool", True),
        None,
        id="mutual-recursion",
    ),
    pytest.param(
        dedent(
            """\
            fn apply(f, x) { return f(x) }
            apply(fn(n) { return n * 3 }, 5)
            """
        ),
        ("number", 15),
        None,
        id="higher-order",
    ),
    pytest.param(
        dedent(
            """\
            fn adder(n) { return fn(x) { return x + n } }
            adder(10)(5)
            """
        ),
        ("number", 15),
        None,
        id="curried-closure",
    ),
    pytest.param("fn f(a) { return a }\nf()", None, CallArityError, id="too-few-args"),
    pytest.param("fn f(a) { return a }\nf(1, 2)", None, CallArityError, id="too-many-args"),
    pytest.param("len(1, 2)", None, CallArityError, id="native-too-many-args"),
    pytest.param("let x = 5\nx(1)", None, NotCallableError, id="call-num"),
    pytest.param('"s"()', None, NotCallableError, id="call-string"),
    pytest.param("nil()", None, NotCallableError, id="call-nil"),
    pytest.param("undefined_fn()", None, UnboundNameError, id="call-unbound"),
    pytest.param("fn f() { return 1 }\nf == f", ("bool", True), None, id="named-fn-equals-itself"),
    pytest.param("let g = fn() { }\ng == g", ("bool", False), None, id="lambda-never-equal"),
    pytest.param("len == len", ("bool", False), None, id="native-never-equal"),
    pytest.param("fn f() { }\nf", ("func", "<func f>"), None, id="named-fn-display"),
    pytest.param("fn() { }", ("func", "<lambda func>"), None, id="lambda-display"),
    pytest.param("print", ("func", "<native func print>"), None, id="native-display"),
    pytest.param("let v = [1]\nv.push", ("func", "<native func push>"), None, id="bound-method-display"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_function_scenarios(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_closure_outlives_defining_frame() -> None:
    source = dedent(
        """\
        fn counter() {
          let n = 0
          return fn() {
            n = n + 1
            return n
          }
        }
        let c = counter()
        c()
        c()
        c()
        """
    )
    assert str(run_program(source)) == "3"


def test_closures_capture_by_shared_binding() -> None:
    source = dedent(
        """\
        let x = 1
        let get = fn() { return x }
        x = 2
        get()
        """
    )
    assert str(run_program(source)) == "2"


def test_closure_writes_visible_to_definer() -> None:
    source = dedent(
        """\
        let total = 0
        fn bump(by) { total = total + by }
        bump(2)
        bump(3)
        total
        """
    )
    assert str(run_program(source)) == "5"


def test_separate_closures_have_separate_state() -> None:
    source = dedent(
        """\
        fn counter() {
          let n = 0
          return fn() {
            n = n + 1
            return n
          }
        }
        let a = counter()
        let b = counter()
        a()
        a()
        [a(), b()]
        """
    )
    assert str(run_program(source)) == "[3, 1]"


def test_later_definitions_in_defining_scope_are_visible() -> None:
    source = dedent(
        """\
        fn call_helper() { return helper() }
        fn helper() { return "late" }
        call_helper()
        """
    )
    assert str(run_program(source)) == "late"


def test_params_shadow_outer_names() -> None:
    source = dedent(
        """\
        let x = "outer"
        fn f(x) { x = "param" }
        f(1)
        x
        """
    )
    assert str(run_program(source)) == "outer"


def test_caller_locals_not_visible_to_callee() -> None:
    source = dedent(
        """\
        fn peek() { return secret }
        fn caller() {
          let secret = 1
          return peek()
        }
        caller()
        """
    )
    with pytest.raises(UnboundNameError):
        run_program(source)


def test_arguments_evaluated_left_to_right() -> None:
    source = dedent(
        """\
        fn say(x) {
          print(x)
          return x
        }
        fn pair(a, b) { }
        pair(say(1), say(2))
        """
    )
    assert run_capture(source) == "1\n2\n"


def test_print_joins_args_with_spaces() -> None:
    assert run_capture('print("a", 1, [2], nil)') == "a 1 [2] nil\n"


def test_arity_error_message() -> None:
    with pytest.raises(CallArityError) as exc_info:
        run_program("fn f(a, b) { }\nf(1)")

    assert exc_info.value.expected == 2
    assert exc_info.value.got == 1
    assert "<func f>" in str(exc_info.value)
