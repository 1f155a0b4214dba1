"""Grid carbon intensity data by region.

Values are grams of CO2 emitted per kilowatt-hour delivered by the grid
(gCO2/kWh). The energy mix of a region (coal, gas, nuclear, hydro, wind)
decides how much CO2 the same kWh carries.
"""

from __future__ import annotations

from carbonlint.models.carbon_models import CarbonIntensityEntry

FALLBACK_REGION = "GLOBAL-AVG"

CARBON_INTENSITY: dict[str, CarbonIntensityEntry] = {
    # Americas
    "US-WEST": CarbonIntensityEntry(210, "California, USA"),
    "US-EAST": CarbonIntensityEntry(386, "Virginia, USA"),
    "US-CENTRAL": CarbonIntensityEntry(420, "Texas, USA"),
    # Europe
    "EU-WEST": CarbonIntensityEntry(276, "Ireland, EU"),
    "EU-NORTH": CarbonIntensityEntry(25, "Sweden, EU"),
    "EU-CENTRAL": CarbonIntensityEntry(338, "Germany, EU"),
    # Asia-Pacific
    "ASIA-EAST": CarbonIntensityEntry(544, "Japan"),
    "ASIA-SOUTH": CarbonIntensityEntry(708, "India"),
    "OCEANIA": CarbonIntensityEntry(520, "Australia"),
    # Fallback
    FALLBACK_REGION: CarbonIntensityEntry(475, "Global Average"),
}


def resolve_region(region: str | None) -> tuple[str, CarbonIntensityEntry]:
    """Look up a region, falling back to the global average.

    Parameters
    ----------
    region : str | None
        Region code (e.g. "EU-NORTH"). Case-insensitive.

    Returns
    -------
    tuple[str, CarbonIntensityEntry]
        The region code that was actually used and its entry.
    """
    code = (region or "").strip().upper()
    if code in CARBON_INTENSITY:
        return code, CARBON_INTENSITY[code]
    return FALLBACK_REGION, CARBON_INTENSITY[FALLBACK_REGION]


def get_grid_intensity(region: str | None) -> float:
    """Get gCO2/kWh for a region, or the global average if unknown."""
    return resolve_region(region)[1].gco2_kwh


def list_regions() -> dict[str, CarbonIntensityEntry]:
    """Return all region code to intensity entry mappings."""
    return dict(CARBON_INTENSITY)
