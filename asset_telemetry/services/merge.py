"""
Merge a consumption sample into an asset's live state.

The live-state group is replaced as a whole: every field comes from the one
sample, and a field the sample does not carry is cleared rather than left
over from an earlier reading. Nothing outside the group is touched.

CHANGELOG:
- 2026-10-08: Initial creation (STORY-106)

TODO:
- None
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from asset_telemetry.models import ConsumptionSample

if TYPE_CHECKING:
    from asset_telemetry.db.models import Asset

LIVE_STATE_FIELDS: tuple[str, ...] = (
    "last_consumption_value",
    "last_consumption_timestamp",
    "current_consumption_wh",
    "current_instant_amps",
    "current_instant_amps_l1",
    "current_instant_amps_l2",
    "current_instant_amps_l3",
    "current_instant_volts",
    "current_instant_volts_l1",
    "current_instant_volts_l2",
    "current_instant_volts_l3",
    "current_instant_watts",
    "current_instant_watts_l1",
    "current_instant_watts_l2",
    "current_instant_watts_l3",
    "current_state_of_charge",
)
"""Asset attributes written by a merge, and only by a merge."""


def live_state_from_sample(sample: ConsumptionSample) -> dict[str, Any]:
    """Map a sample onto the asset's live-state attributes.

    Returns:
        A dict with exactly the keys of :data:`LIVE_STATE_FIELDS`.
    """
    state: dict[str, Any] = {name: getattr(sample, name, None) for name in LIVE_STATE_FIELDS}
    last = sample.last_consumption
    state["last_consumption_value"] = last.value if last is not None else None
    state["last_consumption_timestamp"] = last.timestamp if last is not None else None
    return state


def merge_consumption(asset: Asset, sample: ConsumptionSample) -> None:
    """Replace the live-state group of ``asset`` with the values of ``sample``."""
    for name, value in live_state_from_sample(sample).items():
        setattr(asset, name, value)
