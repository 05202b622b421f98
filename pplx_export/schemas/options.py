"""Output option enums shared by renderers, assembler and preferences."""

from enum import Enum


class SpacingPolicy(str, Enum):
    """Blank-line policy applied to rendered Markdown."""

    STANDARD = "standard"  # runs of blank lines capped at one
    COMPACT = "compact"    # no blank lines except one before each table


class Layout(str, Enum):
    """Document layout."""

    FULL = "full"        # User/Assistant labels and dividers
    CONCISE = "concise"  # assistant content only, minimal dividers


class OutputMethod(str, Enum):
    """Where the finished document goes."""

    DOWNLOAD = "download"
    CLIPBOARD = "clipboard"
