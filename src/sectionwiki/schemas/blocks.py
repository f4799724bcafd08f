"""Rich-editor block models.

Field names are snake_case in Python and camelCase on the wire, which is what
the editor widget reads and writes (``originalLevel``, ``colorLevel``...).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BlockType(str, Enum):
    """Discriminant of a block."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"


class InlineText(BaseModel):
    """A run of inline text inside a block."""

    type: str = "text"
    text: str
    styles: dict[str, bool] = Field(default_factory=dict)


class BlockProps(BaseModel):
    """Block properties.

    Attributes:
        level: Visual heading level the editor renders, at most 3.
        original_level: Semantic level of the heading (1-99). Authoritative.
        tags: Section tags carried through the editor untouched.
        color_level: Display-only palette index, cycles 1..6 with depth.
        indent_px: Display-only left indentation.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    level: int | None = None
    original_level: int | None = None
    tags: list[str] = Field(default_factory=list)
    color_level: int | None = None
    indent_px: int | None = None


class Block(BaseModel):
    """A heading or paragraph node of the editor document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    type: BlockType
    props: BlockProps = Field(default_factory=BlockProps)
    content: list[InlineText] = Field(default_factory=list)
    children: list["Block"] = Field(default_factory=list)

    @property
    def text(self) -> str:
        """Plain text of the block's inline content."""
        return "".join(item.text for item in self.content if item.type == "text")
