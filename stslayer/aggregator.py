"""Aggregator: merges section updates into one ordered status snapshot.

The aggregator is the only owner of the snapshot and the section index. All
changes arrive as Blocks on its inbound queue and are applied inside its single
receive loop, so no locking is needed.

Output protocol (swaybar):
- Header JSON object, followed by a line containing "[" (an infinite array)
- One JSON array of blocks per emission, each followed by ","
The array is never closed.
"""

import asyncio
import json
import logging
from time import monotonic
from typing import Any, Dict, List, Optional, Sequence

from .config import Section
from .errors import ConfigInvalidError, IdentityNotFoundError
from .models import COMMAND_KIND, Block, Header, SectionId

logger = logging.getLogger(__name__)


class Aggregator:
    """Maintains the ordered snapshot and gates emissions."""

    def __init__(
        self,
        sections: Sequence[Section],
        receiver: asyncio.Queue,
        sender: asyncio.Queue,
        min_interval: float = 1.0,
        click_events: bool = False,
        pretty: bool = False,
    ):
        """Initialize aggregator.

        Args:
            sections: Configured sections, in display order
            receiver: Update channel fed by the section runners
            sender: Channel of serialized protocol strings for the output sink
            min_interval: Minimum seconds between emissions after the first one
            click_events: Value advertised in the protocol header
            pretty: Pretty-print JSON output

        Raises:
            ConfigInvalidError: If no sections are given or two share a name
        """
        if not sections:
            raise ConfigInvalidError("at least one section must be defined")

        self.section_index: Dict[SectionId, int] = {}
        for n, section in enumerate(sections):
            section_id = SectionId(COMMAND_KIND, section.name)
            if section_id in self.section_index:
                raise ConfigInvalidError(f"duplicate section name {section.name!r}")
            self.section_index[section_id] = n

        self.receiver = receiver
        self.sender = sender
        self.min_interval = min_interval
        self.pretty = pretty
        self.header = Header(click_events=click_events)
        self.status: List[Block] = []
        self.last_sent: Optional[float] = None

    def _to_json(self, value: Any) -> str:
        if self.pretty:
            return json.dumps(value, indent=2)
        return json.dumps(value, separators=(",", ":"))

    def get_header(self) -> str:
        """Header object followed by the opening bracket of the status array."""
        return f"{self._to_json(self.header.to_json())}\n["

    def get_status(self) -> str:
        """Current snapshot as a JSON array with a trailing comma."""
        return f"{self._to_json([block.to_json() for block in self.status])},"

    def index_of(self, block: Block) -> int:
        """Snapshot slot of the block's section.

        Raises:
            IdentityNotFoundError: If the block belongs to no configured section
        """
        section_id = SectionId.for_block(block)
        try:
            return self.section_index[section_id]
        except KeyError:
            raise IdentityNotFoundError(section_id) from None

    async def wait_for_initial_blocks(self) -> None:
        """Startup barrier: collect one block per section, then build the snapshot.

        A section that reports more than once before the barrier completes
        keeps only its latest block.
        """
        initial: Dict[int, Block] = {}
        while len(initial) < len(self.section_index):
            block = await self.receiver.get()
            initial[self.index_of(block)] = block
            logger.debug(f"Initial block {len(initial)}/{len(self.section_index)}: {block.instance}")

        self.status = [initial[n] for n in sorted(initial)]
        logger.info(f"All {len(self.status)} sections reported, starting output")

    def apply(self, block: Block) -> int:
        """Replace the snapshot slot of the block's section.

        Returns:
            The slot index that was replaced
        """
        n = self.index_of(block)
        self.status[n] = block
        return n

    def should_emit(self) -> bool:
        """True when more than min_interval has passed since the last emission."""
        if self.last_sent is None:
            return True
        return monotonic() - self.last_sent > self.min_interval

    async def emit(self) -> None:
        await self.sender.put(self.get_status())
        self.last_sent = monotonic()

    async def run(self) -> None:
        """Main receive loop. Runs until cancelled."""
        await self.wait_for_initial_blocks()

        await self.sender.put(self.get_header())
        await self.emit()

        while True:
            block = await self.receiver.get()
            self.apply(block)

            if self.should_emit():
                await self.emit()
            else:
                # Coalesced: the next passing update emits the latest state
                logger.debug(f"Deferred update for {block.instance}")
