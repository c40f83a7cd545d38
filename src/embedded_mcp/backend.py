"""Automation backend interface and the mock implementation.

Tool handlers never touch a device directly; they call through an
:class:`AutomationBackend`. The mock here returns deterministic text after a
simulated delay, which keeps the protocol layer testable without a real UI
automation framework.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable


@runtime_checkable
class AutomationBackend(Protocol):
    """Capability the automation tools delegate to."""

    async def tap_button(
        self, *, text: str | None, resource_id: str | None, timeout_ms: float
    ) -> str:
        """Tap a button located by text or resource ID."""
        ...

    async def input_text(
        self,
        *,
        text: str,
        field_id: str | None,
        field_hint: str | None,
        clear_first: bool,
    ) -> str:
        """Type text into a field."""
        ...

    async def get_screen_info(self, *, include_invisible: bool, max_depth: int) -> str:
        """Describe the current screen."""
        ...

    async def scroll(
        self, *, direction: str, distance: str, container_id: str | None
    ) -> str:
        """Scroll the screen or a container."""
        ...


class MockAutomationBackend:
    """Canned-response backend with simulated latency."""

    TAP_DELAY = 0.1
    INPUT_DELAY = 0.05
    SCREEN_DELAY = 0.2
    SCROLL_DELAY = 0.1

    def __init__(self, latency_scale: float = 1.0) -> None:
        """Create the mock backend.

        Args:
            latency_scale: Multiplier applied to every simulated delay. ``0``
                still yields to the event loop once.

        """
        self.latency_scale = latency_scale

    async def _delay(self, seconds: float) -> None:
        await asyncio.sleep(seconds * self.latency_scale)

    async def tap_button(
        self, *, text: str | None, resource_id: str | None, timeout_ms: float
    ) -> str:
        if text is not None:
            target = f"button with text '{text}'"
        elif resource_id is not None:
            target = f"button with resource ID '{resource_id}'"
        else:
            raise ValueError("Either 'text' or 'resourceId' parameter is required")
        await self._delay(self.TAP_DELAY)
        return f"Successfully tapped {target} (timeout: {timeout_ms:g}ms)"

    async def input_text(
        self,
        *,
        text: str,
        field_id: str | None,
        field_hint: str | None,
        clear_first: bool,
    ) -> str:
        if field_id is not None:
            target = f"field with ID '{field_id}'"
        elif field_hint is not None:
            target = f"field with hint '{field_hint}'"
        else:
            target = "focused text field"
        await self._delay(self.INPUT_DELAY)
        action = "cleared and entered" if clear_first else "appended"
        return f"Successfully {action} text '{text}' into {target}"

    async def get_screen_info(self, *, include_invisible: bool, max_depth: int) -> str:
        await self._delay(self.SCREEN_DELAY)
        lines = [
            "Screen Analysis Results:",
            "- Screen size: 1080x2340 pixels",
            "- Orientation: Portrait",
            "- Visible elements: 12 buttons, 3 text fields, 1 scroll view",
        ]
        if include_invisible:
            lines.append("- Hidden elements: 2 buttons, 1 progress bar")
        lines.append(f"- UI hierarchy depth: {max_depth} levels scanned")
        lines.append("- Current activity: com.example.MainActivity")
        return "\n".join(lines)

    async def scroll(
        self, *, direction: str, distance: str, container_id: str | None
    ) -> str:
        await self._delay(self.SCROLL_DELAY)
        target = f"container '{container_id}'" if container_id else "main screen"
        return f"Successfully scrolled {direction} ({distance} distance) on {target}"
