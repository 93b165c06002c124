"""
Three-phase energy meter Modbus TCP register map.

Input registers (function code 0x04) of a three-phase meter in the common
Eastron SDM630 layout: every quantity is an IEEE-754 float32 spread over two
16-bit words, high word first.

Registers are organised into contiguous groups so the connector can issue
one ``read_input_registers`` call per group.

CHANGELOG:
- 2026-10-11: Restrict registers to float32 (STORY-111)
- 2026-10-06: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RegisterDef:
    """Definition of a single meter register.

    Attributes:
        address: Modbus input register start address.
        name: Unique identifier used as dict key.
        reg_type: Data type; only ``"F32"`` is supported.
        unit: Engineering unit string (e.g. ``"V"``, ``"kWh"``).
        scale: Multiplicative factor applied to the decoded value.
        valid_range: Optional ``(min, max)`` for the scaled value.
        description: Free-text description.
        word_count: Number of 16-bit words, always 2 for ``"F32"``.
    """

    address: int
    name: str
    reg_type: str
    unit: str
    scale: float = 1.0
    valid_range: tuple[float, float] | None = None
    description: str = ""
    word_count: int = field(default=2, repr=False)

    def __post_init__(self) -> None:  # noqa: D105
        if self.reg_type != "F32":
            msg = f"Register '{self.name}': unsupported type '{self.reg_type}'"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class RegisterGroup:
    """A contiguous range of registers read in one call.

    Attributes:
        group_name: Group identifier (e.g. ``"phases"``).
        start_address: First register address of the batch.
        count: Total number of 16-bit words to read.
        registers: Registers within the range.
    """

    group_name: str
    start_address: int
    count: int
    registers: list[RegisterDef]


def _phase(
    address: int,
    quantity: str,
    phase: int,
    unit: str,
    valid_range: tuple[float, float],
) -> RegisterDef:
    return RegisterDef(
        address=address,
        name=f"{quantity}_l{phase}",
        reg_type="F32",
        unit=unit,
        valid_range=valid_range,
        description=f"Phase {phase} {quantity}",
    )


# ---------------------------------------------------------------------------
# Per-phase group (addresses 0-17)
# ---------------------------------------------------------------------------

_VOLTS_RANGE = (0.0, 500.0)
_AMPS_RANGE = (0.0, 1000.0)
_WATTS_RANGE = (-250_000.0, 250_000.0)

PHASES_GROUP = RegisterGroup(
    group_name="phases",
    start_address=0,
    count=18,  # 0..17 inclusive, nine float32 values
    registers=[
        _phase(0, "volts", 1, "V", _VOLTS_RANGE),
        _phase(2, "volts", 2, "V", _VOLTS_RANGE),
        _phase(4, "volts", 3, "V", _VOLTS_RANGE),
        _phase(6, "amps", 1, "A", _AMPS_RANGE),
        _phase(8, "amps", 2, "A", _AMPS_RANGE),
        _phase(10, "amps", 3, "A", _AMPS_RANGE),
        _phase(12, "watts", 1, "W", _WATTS_RANGE),
        _phase(14, "watts", 2, "W", _WATTS_RANGE),
        _phase(16, "watts", 3, "W", _WATTS_RANGE),
    ],
)

# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

TOTAL_POWER_GROUP = RegisterGroup(
    group_name="total_power",
    start_address=52,
    count=2,
    registers=[
        RegisterDef(
            address=52,
            name="total_power",
            reg_type="F32",
            unit="W",
            valid_range=(-750_000.0, 750_000.0),
            description="Total system active power, positive = import",
        ),
    ],
)

ENERGY_GROUP = RegisterGroup(
    group_name="energy",
    start_address=72,
    count=2,
    registers=[
        RegisterDef(
            address=72,
            name="total_import_energy",
            reg_type="F32",
            unit="kWh",
            valid_range=(0.0, 100_000_000.0),
            description="Cumulative imported active energy",
        ),
    ],
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

ALL_GROUPS: list[RegisterGroup] = [
    PHASES_GROUP,
    TOTAL_POWER_GROUP,
    ENERGY_GROUP,
]
"""All register groups in read order."""

ALL_REGISTERS: dict[str, RegisterDef] = {
    reg.name: reg for group in ALL_GROUPS for reg in group.registers
}
"""Flat lookup of every register by name."""
