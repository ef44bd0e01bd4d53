"""Core data models for swaybar protocol status blocks and click events.

See: https://man.archlinux.org/man/swaybar-protocol.7.en
"""

import signal
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional, Union

# Block name used for every section backed by a shell command
COMMAND_KIND = "command"

# Pixel count, or a sample string whose rendered width is used
MinWidth = Union[int, str]


class Align(str, Enum):
    """Text alignment inside a block."""
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


class Markup(str, Enum):
    """Markup used when parsing block text."""
    PANGO = "pango"
    NONE = "none"


@dataclass(frozen=True)
class SectionId:
    """Identity of a section inside the status snapshot."""

    kind: str
    name: str

    @classmethod
    def for_block(cls, block: "Block") -> "SectionId":
        return cls(block.name, block.instance)

    def __str__(self) -> str:
        return f"{self.kind}:{self.name}"


@dataclass
class Block:
    """A single status block in the swaybar protocol format.

    Field order matches the order the host protocol documents, and is the
    order in which fields are serialized.
    """

    full_text: str                              # Text to display
    short_text: Optional[str] = None            # Used when the bar runs out of space
    color: Optional[str] = None                 # #RRGGBB or #RRGGBBAA
    background: Optional[str] = None
    border: Optional[str] = None
    border_top: Optional[int] = None            # Border sizes (pixels)
    border_bottom: Optional[int] = None
    border_left: Optional[int] = None
    border_right: Optional[int] = None
    min_width: Optional[MinWidth] = None        # Defaults to the width of full_text
    align: Optional[Align] = None
    name: str = COMMAND_KIND                    # Block identifier for click events
    instance: str = ""                          # Section name
    urgent: bool = False
    separator: bool = True
    separator_block_width: Optional[int] = None
    markup: Markup = Markup.NONE

    def __post_init__(self):
        if self.min_width is None:
            self.min_width = self.full_text

    @classmethod
    def for_section(cls, section_name: str, full_text: str) -> "Block":
        """Build the block published for a command section's output."""
        return cls(full_text=full_text, name=COMMAND_KIND, instance=section_name)

    def to_json(self) -> Dict[str, Any]:
        """Convert to swaybar protocol JSON format.

        Omits unset optional fields.
        """
        data = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            data[key] = value
        return data


@dataclass(frozen=True)
class Header:
    """Protocol header sent once before the status array."""

    version: int = 1
    click_events: bool = False
    cont_signal: int = int(signal.SIGCONT)
    stop_signal: int = int(signal.SIGSTOP)

    def to_json(self) -> Dict[str, Any]:
        return asdict(self)


class MouseButton(Enum):
    """Mouse button codes from the swaybar protocol."""
    LEFT = 1
    MIDDLE = 2
    RIGHT = 3
    SCROLL_UP = 4
    SCROLL_DOWN = 5


@dataclass
class ClickEvent:
    """A click event sent by swaybar on the status command's stdin."""

    name: Optional[str]         # Block name
    instance: Optional[str]     # Block instance
    button: int                 # X11 button number
    x: int                      # Absolute click coordinates
    y: int
    event: Optional[int] = None         # evdev event code
    relative_x: Optional[int] = None    # Coordinates relative to the block
    relative_y: Optional[int] = None
    width: Optional[int] = None         # Block size
    height: Optional[int] = None
    scale: Optional[float] = None

    @property
    def mouse_button(self) -> Optional[MouseButton]:
        """Known mouse button, or None for extra buttons."""
        try:
            return MouseButton(self.button)
        except ValueError:
            return None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ClickEvent":
        """Parse from swaybar protocol JSON.

        Args:
            data: Click event JSON object from stdin

        Returns:
            ClickEvent instance

        Raises:
            KeyError: If a required field is missing
            TypeError: If the payload is not a JSON object
        """
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")

        return cls(
            name=data.get("name"),
            instance=data.get("instance"),
            button=data["button"],
            x=data["x"],
            y=data["y"],
            event=data.get("event"),
            relative_x=data.get("relative_x"),
            relative_y=data.get("relative_y"),
            width=data.get("width"),
            height=data.get("height"),
            scale=data.get("scale"),
        )
