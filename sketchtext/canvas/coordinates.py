"""Input event types and their mapping to surface-local coordinates.

Pointer (mouse/pen) and touch input arrive in viewport (client)
coordinates. The surface draws in its own pixel space, so every event is
shifted by the surface's bounding-box origin at the time it is handled.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Point:
    """A position in surface-local pixel coordinates."""

    x: float
    y: float


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned layout box in viewport coordinates."""

    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class TouchPoint:
    """A single contact point of a touch event."""

    client_x: float
    client_y: float
    identifier: int = 0


@dataclass(frozen=True)
class PointerEvent:
    """A mouse or pen event positioned in viewport coordinates."""

    client_x: float
    client_y: float


@dataclass(frozen=True)
class TouchEvent:
    """A touch event with its active and changed contact points.

    ``touches`` lists the contacts still on the surface; on release it is
    empty and the lifted contact is only found in ``changed_touches``.
    """

    touches: tuple[TouchPoint, ...] = field(default_factory=tuple)
    changed_touches: tuple[TouchPoint, ...] = field(default_factory=tuple)

    def primary_touch(self) -> TouchPoint | None:
        """Return the tracked contact point, or ``None`` if there is none."""
        if self.touches:
            return self.touches[0]
        if self.changed_touches:
            return self.changed_touches[0]
        return None


InputEvent = PointerEvent | TouchEvent


def map_event(event: InputEvent, bounds: Bounds) -> Point:
    """Convert an input event to surface-local coordinates.

    Only the first active touch is tracked; on release the first changed
    touch stands in for it. Additional contacts are ignored.

    Args:
        event: Pointer or touch event in viewport coordinates.
        bounds: The surface's bounding box at the time of the event.

    Returns:
        Position relative to the surface's top-left corner.

    Raises:
        ValueError: If a touch event carries no contact points.
    """
    if isinstance(event, TouchEvent):
        touch = event.primary_touch()
        if touch is None:
            raise ValueError("Touch event carries no touch points")
        client_x, client_y = touch.client_x, touch.client_y
    else:
        client_x, client_y = event.client_x, event.client_y

    return Point(x=client_x - bounds.left, y=client_y - bounds.top)
