"""Thin async wrapper over the git executable."""

import asyncio
import logging
import os
import re
import shutil

logger = logging.getLogger(__name__)

_CREDENTIALS_RE = re.compile(r"(https?://)[^@/\s]+@")


class GitError(Exception):
    """Raised when a git command exits with a non-zero status."""


def redact(text: str) -> str:
    """Hide credentials embedded in HTTPS URLs."""
    return _CREDENTIALS_RE.sub(r"\1***@", text)


class GitClient:
    """Runs git commands as subprocesses."""

    def __init__(self, git_path: str | None = None) -> None:
        self._git_path = git_path

    def _resolve(self) -> str:
        git_path = self._git_path or shutil.which("git")
        if not git_path:
            raise GitError("git not found in PATH")
        return git_path

    async def _run(self, *args: str) -> str:
        proc = await asyncio.create_subprocess_exec(
            self._resolve(),
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise GitError(redact(message) or f"git {args[0]} failed ({proc.returncode})")
        return stdout.decode("utf-8", errors="replace")

    async def clone(self, url: str, dest: str) -> None:
        """Clone `url` into `dest` (which may already exist but must be empty)."""
        await self._run("clone", url, dest)
        logger.info("Cloned %s into %s", redact(url), dest)
