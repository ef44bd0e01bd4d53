"""Section runner: executes one section's command on its schedule.

Each runner owns its output cache and publishes a Block to the aggregator
only when the command output changes.
"""

import asyncio
import logging
import os
import signal
import time
from typing import Optional

from .config import Section
from .errors import CommandFailedError
from .models import Block

logger = logging.getLogger(__name__)

SHELL = "sh"


def kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """SIGKILL the shell and everything it started."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    logger.debug(f"Killed command process group {proc.pid}")


class SectionRunner:
    """Runs a section's command repeatedly and publishes changed output."""

    def __init__(self, section: Section, sender: asyncio.Queue):
        """Initialize section runner.

        Args:
            section: Section configuration
            sender: Update channel into the aggregator
        """
        self.section = section
        self.sender = sender
        self.cache: Optional[str] = None

    async def execute(self) -> str:
        """Run the command through the shell and return its trimmed stdout.

        The shell runs in its own process group, which is killed if the
        runner is cancelled mid-command.

        Raises:
            CommandFailedError: If the command cannot be spawned or exits unsuccessfully
        """
        command = self.section.command
        logger.debug(f"[{self.section.name}] Running: {command}")

        try:
            proc = await asyncio.create_subprocess_exec(
                SHELL, "-c", command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise CommandFailedError(self.section.name, command, f"spawn error: {e}") from e

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            kill_process_group(proc)
            await proc.wait()
            raise

        if proc.returncode != 0:
            if proc.returncode < 0:
                exit_info = f"killed by signal {-proc.returncode}"
            else:
                exit_info = f"exit status {proc.returncode}"
            raise CommandFailedError(
                self.section.name, command, exit_info, stderr.decode(errors="replace").strip()
            )

        return stdout.decode(errors="replace").rstrip()

    async def run_cycle(self) -> bool:
        """Execute the command once and publish a block if the output changed.

        Returns:
            True if a block was published
        """
        output = await self.execute()

        if output == self.cache:
            return False

        self.cache = output
        await self.sender.put(Block.for_section(self.section.name, output))
        logger.debug(f"[{self.section.name}] Published: {output!r}")
        return True

    async def run(self) -> None:
        """Main loop. Returns after the first cycle for oneshot sections."""
        logger.info(f"[{self.section.name}] Runner started (interval={self.section.interval})")

        while True:
            tick = time.monotonic()
            await self.run_cycle()

            if self.section.is_oneshot:
                logger.info(f"[{self.section.name}] Oneshot section done")
                return

            elapsed = time.monotonic() - tick
            await asyncio.sleep(max(0.0, self.section.period - elapsed))
