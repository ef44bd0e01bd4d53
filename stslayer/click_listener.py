"""Click event listener for the swaybar input stream.

swaybar writes an infinite JSON array to the status command's stdin: a first
line containing "[" followed by one event object per line, every object after
the first prefixed with ",". Events are decoded and logged only.
"""

import asyncio
import json
import logging
from typing import Optional

from .errors import MalformedClickEventError
from .models import ClickEvent

logger = logging.getLogger(__name__)


def parse_click_event(line: str) -> ClickEvent:
    """Decode one event line.

    Raises:
        MalformedClickEventError: If the line is not a valid event object
    """
    payload = line.strip()
    if payload.startswith(","):
        payload = payload[1:].lstrip()

    try:
        return ClickEvent.from_json(json.loads(payload))
    except json.JSONDecodeError as e:
        raise MalformedClickEventError(line, f"invalid JSON: {e}") from e
    except KeyError as e:
        raise MalformedClickEventError(line, f"missing field {e}") from e
    except TypeError as e:
        raise MalformedClickEventError(line, str(e)) from e


class ClickEventListener:
    """Reads and decodes click events from the bar host."""

    def __init__(self, reader: asyncio.StreamReader):
        self.reader = reader
        self.events_received = 0

    async def _readline(self) -> Optional[str]:
        try:
            data = await self.reader.readline()
        except ValueError as e:
            # StreamReader reports a line over its buffer limit as ValueError
            raise MalformedClickEventError("<line over reader limit>", "line too long") from e
        if not data:
            return None
        return data.decode(errors="replace")

    async def run(self) -> None:
        """Read events until EOF.

        Raises:
            MalformedClickEventError: If the envelope or an event is malformed
        """
        logger.info("Click event listener started")

        first = await self._readline()
        if first is None:
            logger.info("Click event stream closed before it started")
            return
        if first.strip() != "[":
            raise MalformedClickEventError(first, "stream must start with '['")

        while True:
            line = await self._readline()
            if line is None:
                break
            if not line.strip():
                continue

            event = parse_click_event(line)
            self.events_received += 1
            logger.info(
                f"Click event: {event.name}/{event.instance} button={event.button} "
                f"at ({event.x}, {event.y})"
            )

        logger.info(f"Click event stream closed after {self.events_received} events")
