"""
Modbus TCP connector for three-phase energy meters.

Connects to the meter (or a Modbus TCP gateway in front of it), reads the
register groups defined in registers.py with a short inter-group delay, and
turns the raw words into one ConsumptionSample.

Unlike a polling daemon this connector runs once per request, so failures are
not retried here: a connect failure, a Modbus error response or a transport
error is raised as ConnectorFailureError and the caller decides what it means.

CHANGELOG:
- 2026-10-11: Decode float32 registers only (STORY-111)
- 2026-10-07: Bound every call by the connection timeout (STORY-104)
- 2026-10-06: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
import math
import struct
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pymodbus.client import AsyncModbusTcpClient
from pymodbus.exceptions import ModbusException

from asset_telemetry.connectors.base import (
    AssetConnector,
    ConnectionSettings,
    ConsumptionSink,
    call_with_timeout,
)
from asset_telemetry.connectors.registers import (
    ALL_GROUPS,
    ALL_REGISTERS,
    PHASES_GROUP,
    RegisterDef,
    RegisterGroup,
)
from asset_telemetry.errors import ConnectorFailureError
from asset_telemetry.models import ConsumptionSample, LastConsumption

if TYPE_CHECKING:
    from asset_telemetry.db.models import Asset

logger = logging.getLogger(__name__)

DEFAULT_MODBUS_PORT = 502
DEFAULT_UNIT_ID = 1
INTER_REGISTER_DELAY_MS = 20
"""Pause between two group reads; many gateways drop back-to-back requests."""

_PHASES = (1, 2, 3)


class ModbusMeterConnector(AssetConnector):
    """Connector reading a three-phase meter over Modbus TCP.

    Uses ``settings.host``, ``settings.port`` (default 502) and
    ``settings.unit_id`` (default 1).

    Raises:
        ValueError: If the connection settings carry no host.
    """

    connection_type = "modbus"

    def __init__(
        self,
        tenant_id: str,
        settings: ConnectionSettings,
        *,
        timeout_s: float,
        sink: ConsumptionSink | None = None,
        inter_register_delay_ms: int = INTER_REGISTER_DELAY_MS,
    ) -> None:
        super().__init__(tenant_id, settings, timeout_s=timeout_s, sink=sink)
        if not settings.host:
            raise ValueError(f"Modbus connection '{settings.id}' has no host")
        self._host = settings.host
        self._port = settings.port or DEFAULT_MODBUS_PORT
        self._unit_id = settings.unit_id if settings.unit_id is not None else DEFAULT_UNIT_ID
        self._inter_register_delay_ms = inter_register_delay_ms

    def _create_client(self) -> AsyncModbusTcpClient:
        return AsyncModbusTcpClient(self._host, port=self._port, timeout=self.timeout_s)

    async def check_connection(self) -> None:
        """Connect and read the per-phase group."""
        client = self._create_client()
        try:
            await call_with_timeout(
                self._read(client, [PHASES_GROUP]),
                self.timeout_s,
                operation="check_connection",
                connection_id=self.connection_id,
            )
        finally:
            client.close()

    async def read_consumptions(self, asset: Asset) -> list[ConsumptionSample]:
        """Read all register groups and decode them into a single sample.

        Returns:
            A one-element list, or an empty list when the meter answered
            with missing or out-of-range values.
        """
        client = self._create_client()
        try:
            raw = await call_with_timeout(
                self._read(client, ALL_GROUPS),
                self.timeout_s,
                operation="retrieve_consumptions",
                connection_id=self.connection_id,
            )
        finally:
            client.close()

        sample = normalize_reading(
            raw,
            previous_value=asset.last_consumption_value,
            previous_ts=asset.last_consumption_timestamp,
            ended_at=datetime.now(UTC),
        )
        if sample is None:
            logger.warning(
                "Meter reading of asset %s via connection %s was unusable",
                asset.id,
                self.connection_id,
            )
            return []
        return [sample]

    async def _read(
        self,
        client: AsyncModbusTcpClient,
        groups: list[RegisterGroup],
    ) -> dict[str, list[int]]:
        """Connect and read ``groups``, wrapping protocol errors."""
        try:
            return await _do_read(
                client,
                groups,
                unit_id=self._unit_id,
                inter_register_delay_ms=self._inter_register_delay_ms,
            )
        except (ModbusException, OSError) as exc:
            raise ConnectorFailureError(
                f"Modbus communication with {self._host}:{self._port} failed: {exc}",
                detailed_messages={
                    "connectionID": self.connection_id,
                    "error": type(exc).__name__,
                },
            ) from exc


# ---------------------------------------------------------------------------
# Read sequence
# ---------------------------------------------------------------------------


async def _do_read(
    client: AsyncModbusTcpClient,
    groups: list[RegisterGroup],
    *,
    unit_id: int,
    inter_register_delay_ms: int,
) -> dict[str, list[int]]:
    """Execute the read sequence on an already-created client.

    Args:
        client: An AsyncModbusTcpClient instance (not yet connected).
        groups: Register groups to read, in order.
        unit_id: Modbus unit ID passed as ``device_id``.
        inter_register_delay_ms: Inter-group delay in milliseconds.

    Returns:
        Dict of ``{register_name: [raw_word, ...]}``.

    Raises:
        ConnectorFailureError: If the connect fails or a group read returns a
            Modbus error response.
    """
    ok = await client.connect()
    if not ok:
        raise ConnectorFailureError(
            "Failed to connect to Modbus device",
            detailed_messages={"unitID": unit_id},
        )

    delay_s = inter_register_delay_ms / 1000.0
    result: dict[str, list[int]] = {}

    for idx, group in enumerate(groups):
        if idx > 0 and delay_s > 0:
            await asyncio.sleep(delay_s)

        response = await client.read_input_registers(
            group.start_address,
            count=group.count,
            device_id=unit_id,
        )
        if response.isError():
            raise ConnectorFailureError(
                f"Modbus error reading group '{group.group_name}'",
                detailed_messages={
                    "group": group.group_name,
                    "address": group.start_address,
                    "count": group.count,
                    "unitID": unit_id,
                },
            )

        _extract_register_values(group, response.registers, result)

    return result


def _extract_register_values(
    group: RegisterGroup,
    raw_words: list[int],
    out: dict[str, list[int]],
) -> None:
    """Slice group-level raw words into per-register word lists."""
    for reg in group.registers:
        offset = reg.address - group.start_address
        out[reg.name] = raw_words[offset : offset + reg.word_count]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _convert_f32(hi: int, lo: int) -> float:
    """Assemble two words (high word first) into an IEEE-754 float32."""
    return struct.unpack(">f", struct.pack(">HH", hi & 0xFFFF, lo & 0xFFFF))[0]


def _extract_value(reg_def: RegisterDef, raw: dict[str, list[int]]) -> float | None:
    """Decode, scale and range-check one register.

    Returns ``None`` if the register is missing, short, not a number or
    outside its valid range.
    """
    name = reg_def.name
    words = raw.get(name)
    if words is None:
        logger.warning("Register '%s': missing from raw data", name)
        return None
    if len(words) < reg_def.word_count:
        logger.warning(
            "Register '%s': expected %d words for %s, got %d",
            name,
            reg_def.word_count,
            reg_def.reg_type,
            len(words),
        )
        return None

    value = _convert_f32(words[0], words[1])

    if math.isnan(value) or math.isinf(value):
        logger.warning("Register '%s': not a number (raw words=%s)", name, words)
        return None

    scaled = value * reg_def.scale

    if reg_def.valid_range is not None:
        lo, hi = reg_def.valid_range
        if not (lo <= scaled <= hi):
            logger.warning(
                "Register '%s': scaled value %.4g (raw words=%s) outside valid range (%s, %s)",
                name,
                scaled,
                words,
                lo,
                hi,
            )
            return None

    return scaled


def normalize_reading(
    raw: dict[str, list[int]],
    *,
    previous_value: float | None,
    previous_ts: datetime | None,
    ended_at: datetime,
) -> ConsumptionSample | None:
    """Convert raw meter registers into a ConsumptionSample.

    Pure function: no I/O and no clock, the reading time is passed in.

    The cumulative import energy becomes ``last_consumption`` (in Wh). When
    the asset already holds an earlier cumulative value, the difference is
    the interval energy ``current_consumption_wh`` and the interval starts at
    the earlier reading's timestamp.

    Args:
        raw: Dict of register name to raw words.
        previous_value: The asset's previous cumulative value in Wh.
        previous_ts: Timestamp of the previous cumulative value.
        ended_at: Time of this reading.

    Returns:
        The sample, or ``None`` if any register is missing or invalid.
    """
    values: dict[str, float] = {}
    for name, reg_def in ALL_REGISTERS.items():
        value = _extract_value(reg_def, raw)
        if value is None:
            return None
        values[name] = value

    energy_wh = values["total_import_energy"] * 1000.0

    consumption_wh: float | None = None
    started_at = ended_at
    if previous_value is not None:
        delta = energy_wh - previous_value
        if delta >= 0:
            consumption_wh = delta
        else:
            # Meter replaced or counter reset
            logger.warning(
                "Cumulative energy went backwards (%.1f Wh -> %.1f Wh)",
                previous_value,
                energy_wh,
            )
        if previous_ts is not None and previous_ts < ended_at:
            started_at = previous_ts

    volts = [values[f"volts_l{p}"] for p in _PHASES]
    amps = [values[f"amps_l{p}"] for p in _PHASES]

    return ConsumptionSample(
        started_at=started_at,
        ended_at=ended_at,
        last_consumption=LastConsumption(value=energy_wh, timestamp=ended_at),
        current_consumption_wh=consumption_wh,
        current_instant_volts=sum(volts) / len(volts),
        current_instant_volts_l1=volts[0],
        current_instant_volts_l2=volts[1],
        current_instant_volts_l3=volts[2],
        current_instant_amps=sum(amps),
        current_instant_amps_l1=amps[0],
        current_instant_amps_l2=amps[1],
        current_instant_amps_l3=amps[2],
        current_instant_watts=values["total_power"],
        current_instant_watts_l1=values["watts_l1"],
        current_instant_watts_l2=values["watts_l2"],
        current_instant_watts_l3=values["watts_l3"],
    )
