"""
Status Slayer engine.

Wires one SectionRunner per configured section, the Aggregator, the output
writer and (optionally) the ClickEventListener, and supervises them: the first
task that fails brings the whole engine down.
"""

import asyncio
import logging
import sys
from typing import List, Optional, TextIO

from .aggregator import Aggregator
from .click_listener import ClickEventListener
from .config import Config
from .section_runner import SectionRunner

logger = logging.getLogger(__name__)

# Small on purpose: a slow aggregator applies backpressure to the runners
UPDATE_CHANNEL_CAPACITY = 1
STATUS_CHANNEL_CAPACITY = 1


async def open_stdin_reader() -> asyncio.StreamReader:
    """Attach an asyncio stream reader to the process's stdin."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader


class Engine:
    """Composition root owning all channels and tasks."""

    def __init__(
        self,
        config: Config,
        output: Optional[TextIO] = None,
        click_reader: Optional[asyncio.StreamReader] = None,
        pretty: bool = False,
    ):
        """
        Initialize engine.

        Args:
            config: Validated configuration
            output: Stream receiving protocol output (defaults to stdout)
            click_reader: Click event stream (defaults to stdin when click
                events are enabled)
            pretty: Pretty-print JSON output
        """
        self.config = config
        self.output = output
        self.click_reader = click_reader
        self.pretty = pretty

        self.updates: Optional[asyncio.Queue] = None
        self.statuses: Optional[asyncio.Queue] = None
        self.aggregator: Optional[Aggregator] = None
        self.runners: List[SectionRunner] = []
        self.click_listener: Optional[ClickEventListener] = None
        self.output_closed = False

    async def _write_statuses(self) -> None:
        """Output sink: print every protocol string as soon as it arrives.

        Returns when the bar host closes its end of the pipe.
        """
        output = self.output or sys.stdout
        while True:
            status = await self.statuses.get()
            try:
                print(status, file=output, flush=True)
            except BrokenPipeError:
                logger.info("Output closed by bar host, shutting down")
                self.output_closed = True
                return

    async def _build(self) -> None:
        self.updates = asyncio.Queue(maxsize=UPDATE_CHANNEL_CAPACITY)
        self.statuses = asyncio.Queue(maxsize=STATUS_CHANNEL_CAPACITY)

        self.aggregator = Aggregator(
            self.config.sections,
            receiver=self.updates,
            sender=self.statuses,
            min_interval=self.config.min_interval_seconds,
            click_events=self.config.click_events,
            pretty=self.pretty,
        )
        self.runners = [SectionRunner(section, self.updates) for section in self.config.sections]

        if self.config.click_events:
            reader = self.click_reader or await open_stdin_reader()
            self.click_listener = ClickEventListener(reader)

    async def run(self) -> None:
        """Run until a task fails, every task has finished, or the output is closed.

        Raises:
            StslayerError: Whatever the first failing task raised
        """
        await self._build()

        tasks = [
            asyncio.create_task(self._write_statuses(), name="output"),
            asyncio.create_task(self.aggregator.run(), name="aggregator"),
        ]
        for runner in self.runners:
            tasks.append(asyncio.create_task(runner.run(), name=f"section:{runner.section.name}"))
        if self.click_listener:
            tasks.append(asyncio.create_task(self.click_listener.run(), name="click-events"))

        logger.info(f"Engine started with {len(self.runners)} sections")

        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
                for task in done:
                    if not task.cancelled() and task.exception() is not None:
                        logger.error(f"Task {task.get_name()} failed: {task.exception()}")
                        raise task.exception()
                    logger.debug(f"Task {task.get_name()} finished")
                if self.output_closed:
                    break
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        logger.info("All tasks finished")
