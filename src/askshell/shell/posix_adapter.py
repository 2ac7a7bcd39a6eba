"""POSIX shell adapter that streams output while capturing it."""

from __future__ import annotations

import codecs
import locale
import os
import selectors
import subprocess
import sys
from typing import TextIO

from .base import CommandResult, ShellAdapter

DEFAULT_SHELL = "/bin/sh"
_READ_CHUNK_BYTES = 4096


class PosixShellAdapter(ShellAdapter):
    """Adapter for command execution via the user's ``$SHELL -c``.

    The command string goes to the shell unsplit, so pipes, redirects and
    globs behave as they would at an interactive prompt.
    """

    def __init__(
        self,
        executable: str | None = None,
        *,
        stream_output: bool = True,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.executable = executable or _default_executable()
        self.stream_output = stream_output
        self._stdout = stdout
        self._stderr = stderr

    @property
    def name(self) -> str:
        return os.path.basename(self.executable) or "sh"

    def execute(self, command: str, *, cwd: str | None = None) -> CommandResult:
        self.log_request(command, cwd=cwd)
        started = self.monotonic_now()
        try:
            process = subprocess.Popen(
                [self.executable, "-c", command],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=cwd,
            )
        except FileNotFoundError:
            result = CommandResult(
                command=command,
                shell=self.name,
                returncode=127,
                stdout="",
                stderr=f"shell executable not found: {self.executable}",
                executed=False,
            )
            self._echo(result.stderr + "\n", self._stderr or sys.stderr)
            self.log_result(result)
            return result

        with process:
            stdout_chunks, stderr_chunks = self._pump(process)
            returncode = process.wait()
        result = CommandResult(
            command=command,
            shell=self.name,
            returncode=returncode,
            stdout=_normalize_output(b"".join(stdout_chunks)),
            stderr=_normalize_output(b"".join(stderr_chunks)),
            duration_seconds=self.monotonic_now() - started,
        )
        self.log_result(result)
        return result

    def _pump(self, process: subprocess.Popen[bytes]) -> tuple[list[bytes], list[bytes]]:
        """Read both pipes until EOF, echoing each chunk as it arrives."""
        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        targets = (
            (process.stdout, stdout_chunks, self._stdout or sys.stdout),
            (process.stderr, stderr_chunks, self._stderr or sys.stderr),
        )
        with selectors.DefaultSelector() as selector:
            for pipe, chunks, stream in targets:
                if pipe is None:
                    continue
                decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
                selector.register(pipe, selectors.EVENT_READ, (chunks, stream, decoder))

            while selector.get_map():
                for key, _events in selector.select():
                    chunks, stream, decoder = key.data
                    chunk = os.read(key.fd, _READ_CHUNK_BYTES)
                    if not chunk:
                        self._echo(decoder.decode(b"", final=True), stream)
                        selector.unregister(key.fileobj)
                        key.fileobj.close()
                        continue
                    chunks.append(chunk)
                    self._echo(decoder.decode(chunk), stream)
        return stdout_chunks, stderr_chunks

    def _echo(self, text: str, stream: TextIO) -> None:
        if not self.stream_output or not text:
            return
        stream.write(text)
        stream.flush()


def _default_executable() -> str:
    return os.environ.get("SHELL") or DEFAULT_SHELL


def _normalize_output(payload: bytes | str | None) -> str:
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload

    for encoding in ("utf-8", "utf-8-sig", locale.getpreferredencoding(False)):
        try:
            return payload.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            continue
    return payload.decode("utf-8", errors="replace")
