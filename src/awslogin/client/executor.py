"""Subprocess executor for the external CLIs awslogin drives.

Every interaction with the outside world (``aws``, ``docker``, ``op``) goes
through :class:`CommandExecutor`. It runs a single program to completion,
returns its stripped stdout, and turns any failure into a
:class:`~awslogin.exceptions.CommandError`. Callers wrap that error in the
domain error for what they were attempting.

Child processes inherit the current environment at call time, so
credentials published by :mod:`awslogin.session` are picked up by every
later call in the same process.

No timeouts are applied: a hung child hangs the caller.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Optional, Sequence

from awslogin.exceptions import CommandError

logger = logging.getLogger(__name__)


class CommandExecutor:
    """Run external programs and capture their output.

    Tests substitute a fake with the same two methods rather than patching
    :mod:`subprocess`.
    """

    def run(self, args: Sequence[str], input: Optional[str] = None) -> str:
        """Run *args* and return stdout with surrounding whitespace removed.

        Args:
            args: Program and arguments. Never passed through a shell.
            input: Optional text fed to the program's stdin.

        Returns:
            The program's standard output, stripped.

        Raises:
            CommandError: If the program cannot be started or exits non-zero.
        """
        argv = list(args)
        logger.debug("Running %s", " ".join(argv[:3]))
        try:
            result = subprocess.run(
                argv,
                input=input,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise CommandError(argv, None, str(exc)) from exc

        if result.returncode != 0:
            logger.debug("%s exited with status %d", argv[0], result.returncode)
            raise CommandError(argv, result.returncode, result.stderr.strip())
        return result.stdout.strip()

    def succeeds(self, args: Sequence[str]) -> bool:
        """Return ``True`` if *args* runs and exits zero. Never raises."""
        try:
            self.run(args)
        except CommandError:
            return False
        return True
