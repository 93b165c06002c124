"""
Tests for merging a consumption sample into an asset's live state.

CHANGELOG:
- 2026-10-08: Initial creation (STORY-106)

TODO:
- None
"""

from datetime import UTC, datetime

from asset_telemetry.models import ConsumptionSample
from asset_telemetry.services.merge import (
    LIVE_STATE_FIELDS,
    live_state_from_sample,
    merge_consumption,
)
from tests.conftest import make_asset, make_sample


class TestLiveStateFromSample:
    def test_keys_are_exactly_the_live_state_group(self) -> None:
        assert set(live_state_from_sample(make_sample())) == set(LIVE_STATE_FIELDS)

    def test_last_consumption_is_flattened(self) -> None:
        state = live_state_from_sample(make_sample())

        assert state["last_consumption_value"] == 152_000.0
        assert state["last_consumption_timestamp"] == datetime(2026, 10, 1, 12, 0, tzinfo=UTC)

    def test_missing_last_consumption_clears_both(self) -> None:
        state = live_state_from_sample(ConsumptionSample(current_instant_watts=1.0))

        assert state["last_consumption_value"] is None
        assert state["last_consumption_timestamp"] is None


class TestMergeConsumption:
    """merge_consumption replaces the live-state group as a whole."""

    def test_copies_sample_values(self) -> None:
        asset = make_asset()

        merge_consumption(asset, make_sample(current_instant_watts_l2=333.0))

        assert asset.current_instant_watts == 1000.0
        assert asset.current_instant_watts_l2 == 333.0
        assert asset.current_consumption_wh == 250.0
        assert asset.last_consumption_value == 152_000.0

    def test_fields_absent_from_sample_are_cleared(self) -> None:
        asset = make_asset(
            current_state_of_charge=80.0,
            current_instant_amps_l1=9.9,
            last_consumption_value=1.0,
        )

        merge_consumption(asset, ConsumptionSample(current_instant_watts=5.0))

        assert asset.current_instant_watts == 5.0
        assert asset.current_state_of_charge is None
        assert asset.current_instant_amps_l1 is None
        assert asset.last_consumption_value is None

    def test_other_attributes_untouched(self) -> None:
        asset = make_asset(static_value_watt=500.0, fluctuation_percent=10.0)

        merge_consumption(asset, make_sample())

        assert asset.name == "Main meter"
        assert asset.site_area_id == "sa-1"
        assert asset.connection_id == "conn-1"
        assert asset.static_value_watt == 500.0
        assert asset.fluctuation_percent == 10.0
        assert asset.dynamic_asset is True
