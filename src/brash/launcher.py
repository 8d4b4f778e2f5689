"""
Process launcher: runs resolved command trees as OS processes.

`&&`/`||` run their operands one after the other; pipes start both sides
concurrently, wired through `os.pipe()`; redirections open the file named by
the right-hand word. The launcher blocks until every process it started has
exited.
"""

from __future__ import annotations

import os
import signal
import subprocess
import tempfile
from typing import IO, List, Mapping, Optional, Union

from .cmd import Argv, Cmd, CmdOp, Op, render
from .types import ProcessError

Stream = Optional[Union[int, IO[bytes]]]

class Launcher:
    def run(self, cmd: Cmd, env: Mapping[str, str]) -> int:
        """Run `cmd` on the inherited standard streams and return its exit status."""
        return self._run(cmd, env, None, None, None)

    def run_capture(self, cmd: Cmd, env: Mapping[str, str]) -> str:
        """Run `cmd` and return everything it wrote to stdout and stderr."""
        with tempfile.TemporaryFile() as buf:
            self._run(cmd, env, None, buf, buf)
            buf.seek(0)
            return buf.read().decode("utf-8", errors="replace")

    # ------------------------------------------------------------------

    def _run(self, cmd: Cmd, env: Mapping[str, str], stdin: Stream, stdout: Stream, stderr: Stream) -> int:
        if isinstance(cmd, Op) and cmd.op.is_logical:
            status = self._run(cmd.lhs, env, stdin, stdout, stderr)

            if (status == 0) == (cmd.op is CmdOp.AND):
                return self._run(cmd.rhs, env, stdin, stdout, stderr)

            return status

        procs = self._start(cmd, env, stdin, stdout, stderr)
        statuses = [proc.wait() for proc in procs]
        last = len(procs) - 1

        for i, (proc, status) in enumerate(zip(procs, statuses)):
            if status >= 0:
                continue

            # an upstream stage dying of SIGPIPE is how a pipe normally ends
            if i < last and -status == signal.SIGPIPE:
                continue

            raise ProcessError(f"Process '{_argv0(proc)}' was terminated by signal {-status}", render(cmd))

        return statuses[last]

    def _start(self, cmd: Cmd, env: Mapping[str, str], stdin: Stream, stdout: Stream, stderr: Stream) -> List[subprocess.Popen]:
        if isinstance(cmd, Argv):
            return [self._spawn(cmd, env, stdin, stdout, stderr)]

        if not isinstance(cmd, Op):
            raise ProcessError(f"Cannot run unresolved command '{render(cmd)}'")

        if cmd.op.is_logical:
            raise ProcessError(f"'{cmd.op.value}' cannot be used inside a pipe or redirection", render(cmd))

        if cmd.op.is_pipe:
            return self._start_pipe(cmd, env, stdin, stdout, stderr)

        path = _redirect_target(cmd)

        if cmd.op.is_read:
            with _open(cmd, path, "rb") as src:
                return self._start(cmd.lhs, env, src, stdout, stderr)

        with _open(cmd, path, "wb") as dst:
            return self._start(
                cmd.lhs,
                env,
                stdin,
                dst if cmd.op.takes_stdout else stdout,
                dst if cmd.op.takes_stderr else stderr,
            )

    def _start_pipe(self, cmd: Op, env: Mapping[str, str], stdin: Stream, stdout: Stream, stderr: Stream) -> List[subprocess.Popen]:
        read_fd, write_fd = os.pipe()

        try:
            left = self._start(
                cmd.lhs,
                env,
                stdin,
                write_fd if cmd.op.takes_stdout else stdout,
                write_fd if cmd.op.takes_stderr else stderr,
            )
        except BaseException:
            os.close(read_fd)
            raise
        finally:
            # the parent's copy must go, or the reader never sees EOF
            os.close(write_fd)

        try:
            right = self._start(cmd.rhs, env, read_fd, stdout, stderr)
        except BaseException:
            # close the read end first so blocked writers get EPIPE and exit
            os.close(read_fd)
            for proc in left:
                proc.wait()
            raise

        os.close(read_fd)
        return left + right

    def _spawn(self, argv: Argv, env: Mapping[str, str], stdin: Stream, stdout: Stream, stderr: Stream) -> subprocess.Popen:
        try:
            return subprocess.Popen(argv.words, stdin=stdin, stdout=stdout, stderr=stderr, env=dict(env))
        except OSError as exc:
            raise ProcessError(f"Failed to spawn '{argv.words[0]}': {exc.strerror or exc}", argv.render()) from exc

def _redirect_target(cmd: Op) -> str:
    target = cmd.rhs

    if not isinstance(target, Argv) or len(target.words) != 1:
        raise ProcessError(f"Redirection '{cmd.op.value}' needs exactly one file name", render(cmd))

    return target.words[0]

def _argv0(proc: subprocess.Popen) -> str:
    args = proc.args
    if isinstance(args, (list, tuple)) and args:
        return str(args[0])
    return str(args)

def _open(cmd: Op, path: str, mode: str) -> IO[bytes]:
    try:
        return open(path, mode)
    except OSError as exc:
        raise ProcessError(f"Cannot open '{path}': {exc.strerror or exc}", render(cmd)) from exc
