"""Browser capability protocols.

Duck typing protocols for everything the extractor needs from the live
page - enables FakePageDriver substitution in tests.

- PageDriver: content queries, simulated interaction, clipboard, capture
- CitationUrlResolver: pins host-internal citation URLs onto the markup
- FocusPrompt: surfaces the recoverable "click the page" pause
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from pplx_export.schemas.conversation import Role


# =============================================================================
# Page snapshots
# =============================================================================

@dataclass(frozen=True)
class TurnBlock:
    """A mounted turn block as seen at one scroll position.

    Attributes:
        role: User query or assistant answer
        markup: Outer HTML for answers, plain text for queries
        top: Vertical document offset, used for ordering
    """

    role: Role
    markup: str
    top: float


@dataclass(frozen=True)
class CopyControl:
    """A visible copy button belonging to a query or an answer.

    Attributes:
        control_id: Handle the driver stamped on the control
        role: Which kind of turn the control copies
        top: Vertical document offset
    """

    control_id: str
    role: Role
    top: float


@dataclass(frozen=True)
class ScrollState:
    """Position of the conversation's scroll container."""

    top: float
    client_height: float
    scroll_height: float

    @property
    def at_bottom(self) -> bool:
        return self.top + self.client_height >= self.scroll_height - 2


# =============================================================================
# Protocols
# =============================================================================

@runtime_checkable
class PageDriver(Protocol):
    """Protocol for the live conversation page.

    Defines the interface the extraction strategies drive. Implemented by
    PlaywrightPageDriver in production and FakePageDriver in tests. Driver
    failures surface as PageInteractionError.
    """

    # --- focus -------------------------------------------------------------

    async def has_focus(self) -> bool:
        """Whether the page document currently has focus."""
        ...

    async def request_focus(self) -> None:
        """Bring the page to the front and focus it."""
        ...

    # --- scrolling ---------------------------------------------------------

    async def scroll_to_top(self) -> None:
        ...

    async def scroll_to_bottom(self) -> None:
        ...

    async def page_down(self, factor: float = 0.85) -> None:
        """Scroll the conversation container down by a fraction of its height."""
        ...

    async def scroll_state(self) -> ScrollState:
        ...

    # --- content -----------------------------------------------------------

    async def query_turn_blocks(self) -> list[TurnBlock]:
        """Mounted query and answer blocks, in document order."""
        ...

    async def click_expanders(self, limit: int) -> int:
        """Click collapsed "show more" style controls.

        Args:
            limit: Maximum number of controls to click

        Returns:
            Number of controls clicked
        """
        ...

    async def is_deep_research(self) -> bool:
        """Whether the thread shows a research report."""
        ...

    async def open_research_panel(self) -> bool:
        """Open the research report panel; False when it cannot be found."""
        ...

    # --- copy controls and clipboard -------------------------------------

    async def query_copy_controls(self) -> list[CopyControl]:
        """Visible query/answer copy controls, excluding code-block ones."""
        ...

    async def trigger_control(self, control_id: str) -> None:
        """Scroll a stamped control into view and click it."""
        ...

    async def read_clipboard(self) -> str:
        """Read clipboard text.

        Raises:
            FocusLostError: If the page lost focus
            ClipboardAccessError: If the read was denied otherwise
        """
        ...

    # --- export capture ----------------------------------------------------

    async def install_capture_patch(self) -> None:
        """Hook anchor-click downloads and object-URL creation in the page."""
        ...

    async def take_captured_payloads(self) -> list[str]:
        """Drain the raw payloads (text or data: URIs) captured so far."""
        ...

    async def remove_capture_patch(self) -> None:
        """Restore the page's original primitives."""
        ...

    async def trigger_export(self, deep_research: bool = False) -> bool:
        """Invoke the host's own Markdown export; False when unavailable."""
        ...

    # --- navigation blocker ----------------------------------------------

    async def install_nav_blocker(self) -> None:
        """Suppress external-link clicks and window.open while extracting."""
        ...

    async def remove_nav_blocker(self) -> None:
        ...

    # --- page info ---------------------------------------------------------

    async def page_title(self) -> str:
        ...

    async def page_url(self) -> str:
        ...

    async def sleep(self, ms: int) -> None:
        """Wait in page time; the fake driver returns immediately."""
        ...


@runtime_checkable
class CitationUrlResolver(Protocol):
    """Protocol for pinning citation URLs held only in host component state.

    Resolution is best effort: on failure nothing is pinned and markers
    fall back to their direct links or visible labels.
    """

    async def pin_citation_urls(self) -> int:
        """Copy hidden citation URLs onto the data-pplx-urls attribute.

        Returns:
            Number of markers that received URLs
        """
        ...


@runtime_checkable
class FocusPrompt(Protocol):
    """Protocol for the dismissible "page needs focus" prompt."""

    def show(self) -> None:
        ...

    def hide(self) -> None:
        ...


class NullFocusPrompt:
    """FocusPrompt that shows nothing."""

    def show(self) -> None:
        pass

    def hide(self) -> None:
        pass


__all__ = [
    "CitationUrlResolver",
    "CopyControl",
    "FocusPrompt",
    "NullFocusPrompt",
    "PageDriver",
    "ScrollState",
    "TurnBlock",
]
