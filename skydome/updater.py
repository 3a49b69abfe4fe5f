"""
Updater — the lighting sink that SkyControl feeds once per frame.

Receives a LightingSnapshot, keeps it for inspection, and pushes its parts
to whatever scene objects were registered:

    main light         set_color(rgb), set_direction(propagation)
    ambient light      set_color(rgb)
    shadow filters     set_shadow_intensity(x)
    shadow renderers   set_shadow_intensity(x)
    bloom filters      set_bloom_intensity(x)
    viewports          set_background_color(rgb)

Anything with those methods works; no scene-graph types are required.
"""
from __future__ import annotations
import logging
import math
from typing import List, Optional, Protocol

from .core import validate
from .core.coords import is_unit_vector
from .core.errors import InvalidArgumentError
from .core.types import Color, LightingSnapshot, Vector3
from .atmosphere.sky_light import MAX_BLOOM


_log = logging.getLogger(__name__)


class DirectionalLight(Protocol):
    def set_color(self, color: Color) -> None: ...
    def set_direction(self, direction: Vector3) -> None: ...


class AmbientLight(Protocol):
    def set_color(self, color: Color) -> None: ...


class ShadowSink(Protocol):
    def set_shadow_intensity(self, intensity: float) -> None: ...


class BloomSink(Protocol):
    def set_bloom_intensity(self, intensity: float) -> None: ...


class ViewPort(Protocol):
    def set_background_color(self, color: Color) -> None: ...


def check_snapshot(snapshot: LightingSnapshot) -> LightingSnapshot:
    """Reject a snapshot whose values fall outside their documented ranges."""
    validate.require_not_none(snapshot, "snapshot")
    validate.fraction(snapshot.shadow_intensity, "shadow intensity")
    validate.in_range(snapshot.bloom_intensity, "bloom intensity", 0.0, MAX_BLOOM)
    d = snapshot.main_direction
    validate.non_zero_vector(d, "direction", 3)
    if not is_unit_vector(d):
        raise InvalidArgumentError(f"direction should be a unit vector (got {d})")
    for name in ("ambient_color", "background_color", "main_color"):
        color = getattr(snapshot, name)
        if len(color) != 3 or not all(math.isfinite(c) and c >= 0.0 for c in color):
            raise InvalidArgumentError(f"bad {name}: {color!r}")
    return snapshot


class Updater:
    """Fan-out of lighting snapshots to registered scene objects."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._log = logger or _log
        self.main_light:    Optional[DirectionalLight] = None
        self.ambient_light: Optional[AmbientLight]     = None
        self._shadow_filters:   List[ShadowSink] = []
        self._shadow_renderers: List[ShadowSink] = []
        self._bloom_filters:    List[BloomSink]  = []
        self._viewports:        List[ViewPort]   = []
        self._last: Optional[LightingSnapshot] = None

    # ── Registration ─────────────────────────────────────────────────────────

    def set_main_light(self, light: Optional[DirectionalLight]) -> None:
        self.main_light = light

    def set_ambient_light(self, light: Optional[AmbientLight]) -> None:
        self.ambient_light = light

    def add_shadow_filter(self, shadow_filter: ShadowSink) -> None:
        self._add(self._shadow_filters, shadow_filter, "shadow filter")

    def remove_shadow_filter(self, shadow_filter: ShadowSink) -> None:
        self._remove(self._shadow_filters, shadow_filter, "shadow filter")

    def add_shadow_renderer(self, renderer: ShadowSink) -> None:
        self._add(self._shadow_renderers, renderer, "shadow renderer")

    def remove_shadow_renderer(self, renderer: ShadowSink) -> None:
        self._remove(self._shadow_renderers, renderer, "shadow renderer")

    def add_bloom_filter(self, bloom_filter: BloomSink) -> None:
        self._add(self._bloom_filters, bloom_filter, "bloom filter")

    def remove_bloom_filter(self, bloom_filter: BloomSink) -> None:
        self._remove(self._bloom_filters, bloom_filter, "bloom filter")

    def add_viewport(self, viewport: ViewPort) -> None:
        self._add(self._viewports, viewport, "viewport")

    def remove_viewport(self, viewport: ViewPort) -> None:
        self._remove(self._viewports, viewport, "viewport")

    # ── Last values ──────────────────────────────────────────────────────────

    @property
    def last_snapshot(self) -> Optional[LightingSnapshot]:
        return self._last

    @property
    def ambient_color(self) -> Optional[Color]:
        return self._last.ambient_color if self._last else None

    @property
    def background_color(self) -> Optional[Color]:
        return self._last.background_color if self._last else None

    @property
    def main_color(self) -> Optional[Color]:
        return self._last.main_color if self._last else None

    @property
    def direction(self) -> Optional[Vector3]:
        return self._last.main_direction if self._last else None

    @property
    def shadow_intensity(self) -> float:
        return self._last.shadow_intensity if self._last else 0.0

    @property
    def bloom_intensity(self) -> float:
        return self._last.bloom_intensity if self._last else 0.0

    # ── Update ───────────────────────────────────────────────────────────────

    def update(self, snapshot: LightingSnapshot) -> None:
        """Validate, store and apply one frame's lighting."""
        try:
            check_snapshot(snapshot)
        except InvalidArgumentError:
            self._log.error("rejected lighting snapshot %r", snapshot)
            raise
        self._last = snapshot

        if self.ambient_light is not None:
            self.ambient_light.set_color(snapshot.ambient_color)
        if self.main_light is not None:
            d = snapshot.main_direction
            # lights shine away from their source
            self.main_light.set_direction((-d[0], -d[1], -d[2]))
            self.main_light.set_color(snapshot.main_color)

        for sink in self._shadow_filters + self._shadow_renderers:
            sink.set_shadow_intensity(snapshot.shadow_intensity)
        for sink in self._bloom_filters:
            sink.set_bloom_intensity(snapshot.bloom_intensity)
        for viewport in self._viewports:
            viewport.set_background_color(snapshot.background_color)

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _add(self, items: list, item, what: str) -> None:
        validate.require_not_none(item, what)
        if any(x is item for x in items):
            self._log.warning("%s already added", what)
            return
        items.append(item)

    def _remove(self, items: list, item, what: str) -> None:
        for i, x in enumerate(items):
            if x is item:
                del items[i]
                return
        self._log.warning("%s not removed: never added", what)
