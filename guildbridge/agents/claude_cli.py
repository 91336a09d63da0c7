"""Async wrapper around one-shot Claude CLI invocations."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from asyncio import StreamReader
from asyncio.subprocess import Process
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from ..core.config import DEFAULT_COMMAND, DEFAULT_PREAMBLE, DEFAULT_TIMEOUT_SECONDS
from ..core.errors import InvocationExitError, InvocationLaunchError, InvocationTimeout
from ..core.models import ConversationMessage
from .transcript import SessionTranscript

LOGGER = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024
EMPTY_OUTPUT_PLACEHOLDER = "Claude responded but produced no output."

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_LINE_BREAKS = re.compile(r"[\r\n]+")


def clean_output(raw: str) -> str:
    """Strip terminal escapes, collapse blank lines and trim."""
    text = _ANSI_ESCAPE.sub("", raw)
    text = _LINE_BREAKS.sub("\n", text).strip()
    return text or EMPTY_OUTPUT_PLACEHOLDER


@dataclass
class _ProcessSession:
    id: str
    process: Process
    started_at: float
    stdout: List[bytes] = field(default_factory=list)
    stderr: List[bytes] = field(default_factory=list)

    @property
    def pid(self) -> int:
        return self.process.pid


class ClaudeCli:
    """Runs the Claude CLI once per call; every session is killed and released on exit."""

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        preamble: str = DEFAULT_PREAMBLE,
        transcript: Optional[SessionTranscript] = None,
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> None:
        self._command = list(command or DEFAULT_COMMAND)
        self._timeout = timeout
        self._preamble = preamble
        self._transcript = transcript
        self._cwd = cwd
        self._env = env

    def build_prompt(self, question: str, history: Sequence[ConversationMessage] = ()) -> str:
        parts = [self._preamble]
        if history:
            lines = ["Previous conversation in this channel:"]
            lines.extend(f"{message.role}: {message.content}" for message in history)
            parts.append("\n".join(lines))
        parts.append(question)
        return "\n\n".join(parts)

    async def ask(self, question: str, history: Sequence[ConversationMessage] = ()) -> str:
        return await self.invoke(self.build_prompt(question, history))

    async def invoke(self, prompt_text: str) -> str:
        """Run the CLI with `prompt_text` on stdin and return its cleaned stdout.

        Raises InvocationLaunchError, InvocationExitError or InvocationTimeout.
        Partial output is discarded on failure. Cancelling the caller kills the
        subprocess as well.
        """
        session = await self._launch(prompt_text)
        outcome = "cancelled"
        try:
            try:
                exit_code = await asyncio.wait_for(
                    self._communicate(session, prompt_text), timeout=self._timeout
                )
            except asyncio.TimeoutError as exc:
                outcome = "timeout"
                LOGGER.warning(
                    "Claude CLI pid=%s exceeded %.0fs timeout, killing", session.pid, self._timeout
                )
                raise InvocationTimeout(self._timeout) from exc

            if exit_code != 0:
                outcome = f"exit {exit_code}"
                stderr = b"".join(session.stderr).decode("utf-8", errors="replace").strip()
                LOGGER.warning("Claude CLI pid=%s exited with code %s", session.pid, exit_code)
                raise InvocationExitError(exit_code, stderr)

            outcome = "exit 0"
            return clean_output(b"".join(session.stdout).decode("utf-8", errors="replace"))
        finally:
            await self._release(session, outcome)

    async def _launch(self, prompt_text: str) -> _ProcessSession:
        session_id = uuid4().hex[:8]
        if self._transcript:
            self._transcript.session_started(session_id, self._command, prompt_text)
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self._cwd) if self._cwd else None,
                env=self._env,
            )
        except OSError as exc:
            if self._transcript:
                self._transcript.session_finished(session_id, "launch failed", 0.0)
            raise InvocationLaunchError(f"Failed to spawn Claude CLI: {exc}") from exc

        LOGGER.info("Started Claude CLI pid=%s session=%s", process.pid, session_id)
        return _ProcessSession(id=session_id, process=process, started_at=time.monotonic())

    async def _communicate(self, session: _ProcessSession, prompt_text: str) -> int:
        process = session.process
        readers = [
            asyncio.create_task(self._pump(session, process.stdout, "stdout", session.stdout)),
            asyncio.create_task(self._pump(session, process.stderr, "stderr", session.stderr)),
        ]
        try:
            if process.stdin is not None:
                process.stdin.write(prompt_text.encode("utf-8"))
                try:
                    await process.stdin.drain()
                except (BrokenPipeError, ConnectionResetError):
                    # The exit code and stderr describe why the CLI stopped reading.
                    LOGGER.debug("Claude CLI pid=%s closed stdin early", session.pid)
                process.stdin.close()
            await asyncio.gather(*readers)
            return await process.wait()
        finally:
            for task in readers:
                task.cancel()
            await asyncio.gather(*readers, return_exceptions=True)

    async def _pump(
        self,
        session: _ProcessSession,
        reader: Optional[StreamReader],
        stream_name: str,
        buffer: List[bytes],
    ) -> None:
        if reader is None:
            return
        while True:
            chunk = await reader.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            buffer.append(chunk)
            if self._transcript:
                self._transcript.chunk(session.id, stream_name, chunk)

    async def _release(self, session: _ProcessSession, outcome: str) -> None:
        process = session.process
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
        duration = time.monotonic() - session.started_at
        session.stdout.clear()
        session.stderr.clear()
        if self._transcript:
            self._transcript.session_finished(session.id, outcome, duration)
        LOGGER.info(
            "Claude CLI session=%s pid=%s finished (%s) in %.2fs", session.id, session.pid, outcome, duration
        )
