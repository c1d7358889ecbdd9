"""Comment placement policy per structural category."""

# Module responsibilities:
# - Model the per-category display options as one validated, immutable record.
# - Resolve (category, option, comment presence) into a placement action.

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError
from .nodes import CommentType


class CommentDisplayOption(str, Enum):
    """Options for replaceable categories."""

    DISPLAY_NAME = "display_name"
    HIDDEN = "hidden"
    COMMENT = "comment"


class CommentVisibility(str, Enum):
    """Options for categories whose comments can never replace content."""

    HIDDEN = "hidden"
    COMMENT = "comment"


class Placement(str, Enum):
    """What the writer does with a comment at one structural juncture."""

    SKIP = "skip"
    SWAP = "swap"
    EMIT = "emit"


class DisplayModeConfig(BaseModel):
    """Comment rendering options used by the display layout.

    Replaceable categories (mapping, sequence, key, value) accept
    ``display_name``; the other three only ``hidden`` or ``comment``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    document: CommentVisibility = CommentVisibility.HIDDEN
    mapping: CommentDisplayOption = CommentDisplayOption.DISPLAY_NAME
    sequence: CommentDisplayOption = CommentDisplayOption.DISPLAY_NAME
    key: CommentDisplayOption = CommentDisplayOption.DISPLAY_NAME
    value: CommentDisplayOption = CommentDisplayOption.DISPLAY_NAME
    key_value_pair: CommentVisibility = CommentVisibility.HIDDEN
    item: CommentVisibility = CommentVisibility.HIDDEN

    @classmethod
    def all_comments(cls) -> "DisplayModeConfig":
        """Configuration that keeps every comment as its own comment cell."""

        return cls(
            document=CommentVisibility.COMMENT,
            mapping=CommentDisplayOption.COMMENT,
            sequence=CommentDisplayOption.COMMENT,
            key=CommentDisplayOption.COMMENT,
            value=CommentDisplayOption.COMMENT,
            key_value_pair=CommentVisibility.COMMENT,
            item=CommentVisibility.COMMENT,
        )

    def option_for(self, category: CommentType) -> CommentDisplayOption:
        return CommentDisplayOption(getattr(self, category.value).value)


def resolve_placement(
    category: CommentType,
    option: CommentDisplayOption | CommentVisibility,
    has_comment: bool,
) -> Placement:
    """Decide how a comment of ``category`` is rendered.

    Args:
        category: Structural position of the comment.
        option: Configured option for that category.
        has_comment: Whether the node actually carries comment text.

    Returns:
        ``SKIP`` when nothing is written, ``SWAP`` when the comment text becomes the
        displayed content, ``EMIT`` when it is written as marker-prefixed cells.

    Raises:
        ConfigurationError: When ``display_name`` is requested for a category that
            is not replaceable.
    """

    resolved = CommentDisplayOption(option.value)
    if resolved is CommentDisplayOption.DISPLAY_NAME and not category.replaceable:
        raise ConfigurationError(f"{category.value} comments cannot use display_name")
    if not has_comment or resolved is CommentDisplayOption.HIDDEN:
        return Placement.SKIP
    if resolved is CommentDisplayOption.DISPLAY_NAME:
        return Placement.SWAP
    return Placement.EMIT


__all__ = [
    "CommentDisplayOption",
    "CommentVisibility",
    "Placement",
    "DisplayModeConfig",
    "resolve_placement",
]
