"""Tests for the lighting fan-out."""

import dataclasses
import logging
from unittest.mock import MagicMock

import pytest

from skydome.core.errors import InvalidArgumentError
from skydome.core.types import LightingSnapshot
from skydome.updater import Updater, check_snapshot


@pytest.fixture
def snapshot():
    """A plausible daytime snapshot."""
    return LightingSnapshot(
        ambient_color=(0.2, 0.2, 0.2),
        background_color=(0.4, 0.6, 1.0),
        main_color=(0.8, 0.8, 0.75),
        main_direction=(0.0, 1.0, 0.0),
        shadow_intensity=0.6,
        bloom_intensity=1.2,
    )


@pytest.fixture
def updater():
    return Updater()


class TestFanOut:
    """Tests for pushing a snapshot to scene objects."""

    def test_empty_updater(self, updater, snapshot):
        """With nothing registered the snapshot should just be stored."""
        assert updater.last_snapshot is None
        assert updater.shadow_intensity == 0.0
        updater.update(snapshot)
        assert updater.last_snapshot is snapshot
        assert updater.main_color == snapshot.main_color
        assert updater.direction == snapshot.main_direction
        assert updater.bloom_intensity == 1.2

    def test_lights(self, updater, snapshot):
        """The main light should shine away from its source."""
        main, ambient = MagicMock(), MagicMock()
        updater.set_main_light(main)
        updater.set_ambient_light(ambient)
        updater.update(snapshot)
        main.set_direction.assert_called_once_with((-0.0, -1.0, -0.0))
        main.set_color.assert_called_once_with((0.8, 0.8, 0.75))
        ambient.set_color.assert_called_once_with((0.2, 0.2, 0.2))

    def test_filters_and_viewports(self, updater, snapshot):
        """Every registered sink should receive its value."""
        shadow_filter, renderer = MagicMock(), MagicMock()
        bloom, viewport = MagicMock(), MagicMock()
        updater.add_shadow_filter(shadow_filter)
        updater.add_shadow_renderer(renderer)
        updater.add_bloom_filter(bloom)
        updater.add_viewport(viewport)
        updater.update(snapshot)
        shadow_filter.set_shadow_intensity.assert_called_once_with(0.6)
        renderer.set_shadow_intensity.assert_called_once_with(0.6)
        bloom.set_bloom_intensity.assert_called_once_with(1.2)
        viewport.set_background_color.assert_called_once_with((0.4, 0.6, 1.0))

    def test_removed_sink_not_called(self, updater, snapshot):
        """A removed sink should no longer be updated."""
        bloom = MagicMock()
        updater.add_bloom_filter(bloom)
        updater.remove_bloom_filter(bloom)
        updater.update(snapshot)
        bloom.set_bloom_intensity.assert_not_called()

    def test_remove_each_kind(self, updater, snapshot):
        """Removed renderers and viewports should no longer be updated."""
        renderer, viewport = MagicMock(), MagicMock()
        updater.add_shadow_renderer(renderer)
        updater.add_viewport(viewport)
        updater.remove_shadow_renderer(renderer)
        updater.remove_viewport(viewport)
        updater.update(snapshot)
        renderer.set_shadow_intensity.assert_not_called()
        viewport.set_background_color.assert_not_called()

    def test_duplicate_add_warns(self, updater, snapshot, caplog):
        """Adding twice should warn and register once."""
        viewport = MagicMock()
        updater.add_viewport(viewport)
        with caplog.at_level(logging.WARNING, logger="skydome.updater"):
            updater.add_viewport(viewport)
        assert "viewport already added" in caplog.text
        updater.update(snapshot)
        viewport.set_background_color.assert_called_once()

    def test_remove_unknown_warns(self, updater, caplog):
        """Removing something never added should warn."""
        with caplog.at_level(logging.WARNING, logger="skydome.updater"):
            updater.remove_shadow_filter(MagicMock())
        assert "never added" in caplog.text


class TestValidation:
    """Tests for snapshot checks."""

    @pytest.mark.parametrize("field,value", [
        ("shadow_intensity", 1.5),
        ("bloom_intensity", 2.0),
        ("main_direction", (0.0, 2.0, 0.0)),
        ("main_direction", (0.0, 0.0, 0.0)),
        ("main_color", (-0.1, 0.0, 0.0)),
        ("ambient_color", (0.1, 0.1)),
    ])
    def test_rejects(self, snapshot, field, value):
        """Out-of-range snapshot values should be rejected."""
        bad = dataclasses.replace(snapshot, **{field: value})
        with pytest.raises(InvalidArgumentError):
            check_snapshot(bad)

    def test_rejected_update_keeps_previous(self, updater, snapshot):
        """A rejected snapshot should not replace the last good one."""
        updater.update(snapshot)
        bad = LightingSnapshot((0, 0, 0), (0, 0, 0), (0, 0, 0), (1.0, 1.0, 0.0), 0.0, 0.0)
        with pytest.raises(InvalidArgumentError):
            updater.update(bad)
        assert updater.last_snapshot is snapshot
