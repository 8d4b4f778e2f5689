from __future__ import annotations

import shutil
from pathlib import Path
from textwrap import dedent

import pytest

from brash.cmd import Argv, CmdOp, Op
from brash.launcher import Launcher
from brash.types import BrString
from tests.support.harness import (
    ProcessError,
    RecordingLauncher,
    UnboundNameError,
    make_interpreter,
    run_capture,
)

needs_posix_tools = pytest.mark.skipif(
    any(shutil.which(tool) is None for tool in ("sh", "echo", "tr", "cat", "yes", "head")),
    reason="requires sh, echo, tr, cat, yes and head",
)


# ---------------- Resolution and environment (no processes) ----------------


def test_words_are_resolved_before_launch() -> None:
    launcher = RecordingLauncher()
    interp = make_interpreter(launcher)
    interp.run('let n = 3\n$ echo n={n} "{n} items" plain')

    assert launcher.calls == ["echo n=3 3 items plain"]


def test_operators_survive_resolution() -> None:
    launcher = RecordingLauncher()
    interp = make_interpreter(launcher)
    interp.run("let f = \"out.txt\"\n$ a | b && c > {f}")

    assert launcher.calls == ["a | b && c > out.txt"]


def test_failed_interpolation_launches_nothing() -> None:
    launcher = RecordingLauncher()
    interp = make_interpreter(launcher)

    with pytest.raises(UnboundNameError):
        interp.run("$ echo {missing}")

    assert launcher.calls == []


def test_only_exported_bindings_reach_the_child() -> None:
    launcher = RecordingLauncher()
    interp = make_interpreter(launcher, environ={"HOME": "/home/me"})
    interp.run(
        dedent(
            """\
            export A = 1
            let B = 2
            export C
            $ env
            """
        )
    )

    assert launcher.envs == [{"A": "1", "C": "nil"}]


def test_inherited_variable_can_be_re_exported() -> None:
    launcher = RecordingLauncher()
    interp = make_interpreter(launcher, environ={"HOME": "/home/me"})
    interp.run("export HOME = HOME\n$ env")

    assert launcher.envs == [{"HOME": "/home/me"}]


def test_block_local_export_is_scoped() -> None:
    launcher = RecordingLauncher()
    interp = make_interpreter(launcher)
    interp.run(
        dedent(
            """\
            {
              export TMP_FLAG = "on"
              $ inner
            }
            $ outer
            """
        )
    )

    assert launcher.envs == [{"TMP_FLAG": "on"}, {}]


def test_hash_inside_word_is_kept() -> None:
    launcher = RecordingLauncher()
    interp = make_interpreter(launcher)
    interp.run("$ curl http://host/page#top # fetch it")

    assert launcher.calls == ["curl http://host/page#top"]


def test_exit_status_is_recorded_not_raised() -> None:
    launcher = RecordingLauncher(statuses={"false": 1})
    interp = make_interpreter(launcher)
    interp.run("$ false")

    assert interp.status == 1


def test_capture_mode_appends_line_break() -> None:
    launcher = RecordingLauncher(outputs={"ls": "a\nb"})
    assert run_capture("$ ls\n$ ls", launcher) == "a\nb\na\nb\n"


def test_capture_mode_collects_print() -> None:
    launcher = RecordingLauncher(outputs={"date": "today\n"})
    assert run_capture('print("before")\n$ date\nprint("after")', launcher) == "before\ntoday\n\nafter\n"


def test_command_expression_returns_raw_output() -> None:
    launcher = RecordingLauncher(outputs={"ls -1": "a\nb\n"})
    interp = make_interpreter(launcher)
    result = interp.run("let files = `ls -1`.lines()\nfiles")

    assert str(result) == "['a', 'b']"


def test_command_expression_sees_exports() -> None:
    launcher = RecordingLauncher()
    interp = make_interpreter(launcher)
    interp.run('export MODE = "fast"\nlet out = `run`')

    assert launcher.envs == [{"MODE": "fast"}]


# ---------------- Real processes ----------------


@needs_posix_tools
def test_capture_echo() -> None:
    assert run_capture("$ echo hi") == "hi\n\n"


@needs_posix_tools
def test_pipeline_output() -> None:
    interp = make_interpreter()
    assert interp.run("`echo hi | tr a-z A-Z`") == BrString("HI\n")


@needs_posix_tools
def test_three_stage_pipeline() -> None:
    interp = make_interpreter()
    assert interp.run("`echo abc | tr a-z A-Z | tr B x`") == BrString("AxC\n")


@needs_posix_tools
def test_exported_variable_reaches_process() -> None:
    interp = make_interpreter()
    result = interp.run("export GREETING = \"hey\"\n`sh -c 'echo $GREETING'`")
    assert result == BrString("hey\n")


@needs_posix_tools
def test_unexported_variable_does_not_reach_process() -> None:
    interp = make_interpreter()
    result = interp.run("let SECRET = \"x\"\n`sh -c 'echo [$SECRET]'`")
    assert result == BrString("[]\n")


@needs_posix_tools
def test_write_redirect(tmp_path: Path) -> None:
    target = tmp_path / "out.txt"
    interp = make_interpreter()
    interp.stack.define("target", BrString(str(target)))
    interp.run("$ echo hello > {target}")

    assert target.read_text() == "hello\n"


@needs_posix_tools
def test_read_redirect(tmp_path: Path) -> None:
    source = tmp_path / "in.txt"
    source.write_text("quiet\n")
    interp = make_interpreter()
    interp.stack.define("source", BrString(str(source)))

    assert interp.run("`tr a-z A-Z < {source}`") == BrString("QUIET\n")


@needs_posix_tools
def test_stderr_pipe() -> None:
    output = run_capture("$ sh -c 'echo oops 1>&2' *| tr a-z A-Z")
    assert output == "OOPS\n\n"


@needs_posix_tools
def test_all_write_redirect(tmp_path: Path) -> None:
    target = tmp_path / "both.txt"
    interp = make_interpreter()
    interp.stack.define("target", BrString(str(target)))
    interp.run("$ sh -c 'echo out; echo err 1>&2' &> {target}")

    assert target.read_text() == "out\nerr\n"


@needs_posix_tools
def test_stderr_write_leaves_stdout(tmp_path: Path) -> None:
    target = tmp_path / "err.txt"
    interp = make_interpreter()
    interp.stack.define("target", BrString(str(target)))
    out = interp.run("`sh -c 'echo out; echo err 1>&2' *> {target}`")

    assert out == BrString("out\n")
    assert target.read_text() == "err\n"


@needs_posix_tools
@pytest.mark.parametrize(
    "source, expected",
    [
        pytest.param("$ sh -c 'exit 1' && echo no || echo yes", "yes\n\n", id="and-skips-on-failure"),
        pytest.param("$ echo first && echo second", "first\nsecond\n\n", id="and-runs-on-success"),
        pytest.param("$ echo ok || echo never", "ok\n\n", id="or-skips-on-success"),
        pytest.param("$ sh -c 'exit 2' || echo rescued", "rescued\n\n", id="or-runs-on-failure"),
    ],
)
def test_logical_commands(source: str, expected: str) -> None:
    assert run_capture(source) == expected


@needs_posix_tools
def test_nonzero_exit_is_not_an_error() -> None:
    interp = make_interpreter()
    interp.run("$ sh -c 'exit 3'")
    assert interp.status == 3


@needs_posix_tools
def test_sequential_statements_wait_for_completion(tmp_path: Path) -> None:
    target = tmp_path / "seq.txt"
    interp = make_interpreter()
    interp.stack.define("target", BrString(str(target)))
    result = interp.run("$ sh -c 'sleep 0.1; echo done' > {target}\n`cat {target}`")

    assert result == BrString("done\n")


def test_missing_program_raises_process_error() -> None:
    interp = make_interpreter()

    with pytest.raises(ProcessError) as exc_info:
        interp.run("$ brash-no-such-program-xyz --flag")

    assert exc_info.value.cmd == "brash-no-such-program-xyz --flag"
    assert exc_info.value.line == 1


def test_unopenable_redirect_raises_process_error(tmp_path: Path) -> None:
    interp = make_interpreter()
    interp.stack.define("target", BrString(str(tmp_path / "missing" / "out.txt")))

    with pytest.raises(ProcessError):
        interp.run("$ echo hi > {target}")


def test_redirect_needs_one_file_name() -> None:
    with pytest.raises(ProcessError):
        make_interpreter().run("$ echo hi > a b")


def test_logical_operator_inside_pipe_is_rejected() -> None:
    cmd = Op(Argv(["echo", "a"]), CmdOp.OUT_PIPE, Op(Argv(["cat"]), CmdOp.AND, Argv(["cat"])))

    with pytest.raises(ProcessError):
        Launcher().run(cmd, {})


@needs_posix_tools
def test_missing_program_on_pipe_lhs() -> None:
    with pytest.raises(ProcessError) as exc_info:
        make_interpreter().run("$ brash-no-such-program-xyz | cat")

    assert "brash-no-such-program-xyz" in str(exc_info.value)


@needs_posix_tools
def test_missing_program_on_pipe_rhs_does_not_hang() -> None:
    # `yes` never stops writing, so it only exits once the pipe's read end is gone
    with pytest.raises(ProcessError) as exc_info:
        make_interpreter().run("$ yes | brash-no-such-program-xyz")

    assert exc_info.value.cmd == "brash-no-such-program-xyz"


@needs_posix_tools
def test_upstream_sigpipe_ends_pipe_quietly() -> None:
    assert run_capture("$ yes | head -n 1") == "y\n\n"


@needs_posix_tools
def test_upstream_sigpipe_keeps_final_status() -> None:
    interp = make_interpreter()
    interp.run("$ yes | sh -c 'head -n 1 > /dev/null; exit 4'")

    assert interp.status == 4


@needs_posix_tools
def test_killed_command_raises_process_error() -> None:
    with pytest.raises(ProcessError) as exc_info:
        make_interpreter().run("$ sh -c 'kill -9 $$'")

    assert "signal 9" in str(exc_info.value)
    assert exc_info.value.line == 1


@needs_posix_tools
def test_killed_final_stage_raises_process_error() -> None:
    with pytest.raises(ProcessError) as exc_info:
        make_interpreter().run("$ echo hi | sh -c 'kill -TERM $$'")

    assert "signal 15" in str(exc_info.value)


@needs_posix_tools
def test_killed_stage_still_waits_for_later_stages(tmp_path: Path) -> None:
    target = tmp_path / "late.txt"
    interp = make_interpreter()
    interp.stack.define("target", BrString(str(target)))

    with pytest.raises(ProcessError):
        interp.run("$ sh -c 'kill -9 $$' | sh -c 'sleep 0.2; echo late' > {target}")

    assert target.read_text() == "late\n"
