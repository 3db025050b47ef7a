"""
Debug Metrics Configuration.

This module provides the policies that decide whether a mutation becomes
an event and whether that event is printed when the metrics are closed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

# Instrumentation is compiled out under ``python -O``.
INSTRUMENTATION_ENABLED: bool = __debug__


@dataclass(frozen=True)
class DebugMetricsConfig:
    """
    Configuration for a DebugMetrics instance.

    The configuration is an immutable snapshot, fixed for the lifetime
    of the metrics it is given to. Use default_config() or
    default_on_config() for the two common setups.

    Attributes:
        process_all_events: Record (and print) an event for every mutation,
            even when no recording rule matches the key
        record_label_changes: Reserved; stored but not consulted
        all_labels_every_event: Merge every current label into each event
    """

    process_all_events: bool = False
    record_label_changes: bool = False
    all_labels_every_event: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DebugMetricsConfig":
        """
        Create a DebugMetricsConfig from a dictionary (e.g., from JSON).

        A ``preset`` key selects the starting point, the remaining keys
        override its fields:

        ```json
        {"preset": "default_on", "all_labels_every_event": false}
        ```

        Args:
            data: Dictionary with configuration values

        Returns:
            DebugMetricsConfig instance
        """
        if not data:
            return cls()

        data = dict(data)
        preset_name = data.pop("preset", None)
        base_config = get_preset(preset_name) if preset_name else cls()

        return cls(
            process_all_events=bool(data.get("process_all_events", base_config.process_all_events)),
            record_label_changes=bool(data.get("record_label_changes", base_config.record_label_changes)),
            all_labels_every_event=bool(data.get("all_labels_every_event", base_config.all_labels_every_event)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the config to a dictionary (for JSON serialization)."""
        return {
            "process_all_events": self.process_all_events,
            "record_label_changes": self.record_label_changes,
            "all_labels_every_event": self.all_labels_every_event,
        }


def default_config() -> DebugMetricsConfig:
    """
    Get the default configuration.

    Nothing is recorded unless a recording rule asks for it, and
    nothing is printed unless a drop hook asks for it.
    """
    return DebugMetricsConfig()


def default_on_config() -> DebugMetricsConfig:
    """
    Get a configuration that records and prints everything.

    Every mutation produces an event and every event carries the
    full label table.
    """
    return DebugMetricsConfig(
        process_all_events=True,
        record_label_changes=True,
        all_labels_every_event=True,
    )


PRESETS = {
    "default": default_config,
    "default_on": default_on_config,
}


def get_preset(name: str) -> DebugMetricsConfig:
    """
    Get a preset configuration by name.

    Available presets:
    - default: Opt-in recording via rules and drop hooks
    - default_on: Capture and print everything

    Raises:
        ValueError: If preset name is unknown
    """
    if name not in PRESETS:
        raise ValueError(
            f"Unknown preset '{name}'. Available: {list(PRESETS.keys())}"
        )
    return PRESETS[name]()
