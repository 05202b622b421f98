"""Capture bridge for the host page's own Markdown export.

The page's export normally ends in a file download. While the bridge is
installed, anchor-click downloads and object-URL creation are intercepted
in the page and their payloads handed to Python instead.
"""

from __future__ import annotations

import base64
import binascii
from types import TracebackType
from urllib.parse import unquote

from pplx_export.browser.protocols import PageDriver
from pplx_export.core.exceptions import CaptureTimeoutError
from pplx_export.core.logging import get_logger
from pplx_export.schemas.conversation import StrategyName


logger = get_logger(__name__)


def decode_payload(raw: str) -> str:
    """Decode a captured payload: data: URIs (base64 or percent-encoded) or text.

    Example:
        >>> decode_payload("data:text/markdown;charset=utf-8,%23%20Hi")
        '# Hi'
        >>> decode_payload("data:text/markdown;base64,IyBIaQ==")
        '# Hi'
    """
    if not raw.startswith("data:"):
        return raw

    header, _, data = raw.partition(",")
    if ";base64" in header:
        try:
            return base64.b64decode(data).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            logger.debug("Undecodable base64 payload", size=len(data))
            return ""
    return unquote(data)


class CaptureBridge:
    """Scoped interception of the page's download primitives.

    Use as an async context manager so the page's original primitives are
    restored on every exit path:

        async with CaptureBridge(driver, timeout_ms=15000, poll_ms=100) as bridge:
            await driver.trigger_export()
            markdown = await bridge.await_capture()
    """

    def __init__(self, driver: PageDriver, timeout_ms: int, poll_ms: int) -> None:
        self.driver = driver
        self.timeout_ms = timeout_ms
        self.poll_ms = max(1, poll_ms)
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    async def install(self) -> None:
        await self.driver.install_capture_patch()
        self._installed = True

    async def uninstall(self) -> None:
        if not self._installed:
            return
        self._installed = False
        await self.driver.remove_capture_patch()

    async def await_capture(self, timeout_ms: int | None = None) -> str:
        """Poll for the first non-empty payload.

        Args:
            timeout_ms: Override of the bridge's timeout

        Returns:
            Decoded payload text

        Raises:
            CaptureTimeoutError: If nothing usable arrived in time
        """
        timeout = self.timeout_ms if timeout_ms is None else timeout_ms
        polls = max(1, timeout // self.poll_ms)
        for _ in range(polls):
            for raw in await self.driver.take_captured_payloads():
                text = decode_payload(raw)
                if text.strip():
                    logger.debug("Export payload captured", size=len(text))
                    return text
            await self.driver.sleep(self.poll_ms)

        raise CaptureTimeoutError(
            f"Export payload did not arrive within {timeout}ms",
            operation="await_capture",
            timeout_ms=timeout,
            strategy=StrategyName.EXPORT_CAPTURE.value,
        )

    async def __aenter__(self) -> CaptureBridge:
        await self.install()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.uninstall()


__all__ = [
    "CaptureBridge",
    "decode_payload",
]
