"""Settings and reference table CLI command implementations."""

from __future__ import annotations

import json

from pydantic import ValidationError

from carbonlint.carbon.grid_intensity import FALLBACK_REGION, list_regions
from carbonlint.carbon.hardware import DEFAULT_PROFILE, list_hardware_profiles
from carbonlint.carbon.store import SettingsStore
from carbonlint.models.carbon_models import Settings
from carbonlint.report import HEADING_UNDERLINE, SECTION_SEP


def parse_overrides(overrides: tuple[str, ...]) -> dict[str, str]:
    """Parse KEY=VALUE pairs.

    Raises
    ------
    ValueError
        If a pair has no ``=`` or an empty key.
    """
    parsed: dict[str, str] = {}
    for item in overrides:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid setting '{item}', expected KEY=VALUE")
        parsed[key] = value.strip()
    return parsed


def update_settings(overrides: dict[str, str]) -> Settings:
    """Apply overrides on top of the current settings and persist them.

    Keys may be snake_case or the stored camelCase names.

    Raises
    ------
    ValueError
        If a key is unknown or a value fails validation.
    """
    store = SettingsStore()
    current = store.load()

    known = set(Settings.model_fields)
    aliases = {
        info.alias: name for name, info in Settings.model_fields.items() if info.alias
    }
    merged = current.model_dump()
    for key, value in overrides.items():
        name = aliases.get(key, key)
        if name not in known:
            raise ValueError(f"Unknown setting '{key}'")
        merged[name] = value

    try:
        return store.save(merged)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValueError(f"Invalid settings: {errors}") from exc


def show_settings(overrides: tuple[str, ...], output_json: bool) -> None:
    """Print current settings, applying ``overrides`` first when given.

    Raises
    ------
    ValueError
        If an override is malformed or invalid.
    """
    if overrides:
        settings = update_settings(parse_overrides(overrides))
    else:
        settings = SettingsStore().load()

    if output_json:
        print(json.dumps(settings.to_dict(), indent=2))
        return

    print(SECTION_SEP)
    print("  carbonlint settings")
    print(SECTION_SEP)
    print(f"\n  Region:       {settings.region}")
    print(f"  PUE:          {settings.pue:.2f}")
    print(f"  Hardware:     {settings.hardware_profile}")
    print("\n  [Thresholds]")
    print(f"  {HEADING_UNDERLINE}")
    print(f"  Max carbon:   {settings.max_carbon:g} g per run")
    print(f"  Max energy:   {settings.max_energy:g} kWh per run")
    print(f"  Fail builds:  {'yes' if settings.fail_on_threshold else 'no'}")
    print(f"  Suggestions:  {'on' if settings.suggestions_enabled else 'off'}")
    print("\n  Change with: carbonlint settings --set region=EU-NORTH")


def show_regions(output_json: bool) -> None:
    """Display all grid regions and their carbon intensities."""
    regions = list_regions()

    if output_json:
        print(json.dumps({k: v.to_dict() for k, v in regions.items()}, indent=2))
        return

    print(SECTION_SEP)
    print("  grid carbon intensity by region")
    print(SECTION_SEP)
    print(f"\n  {'Region':<12} {'gCO2/kWh':>10}  {'Location'}")
    print(f"  {HEADING_UNDERLINE * 3}")

    for code, entry in sorted(regions.items(), key=lambda kv: kv[1].gco2_kwh):
        print(f"  {code:<12} {entry.gco2_kwh:>10.0f}  {entry.region}")

    fallback = regions[FALLBACK_REGION]
    print("\n  Set your region with: carbonlint settings --set region=<code>")
    print(
        f"  Unknown regions fall back to {FALLBACK_REGION} "
        f"({fallback.gco2_kwh:g} gCO2/kWh)."
    )


def show_hardware(output_json: bool) -> None:
    """Display the hardware power profiles used by the energy model."""
    profiles = list_hardware_profiles()

    if output_json:
        print(json.dumps({k: v.to_dict() for k, v in profiles.items()}, indent=2))
        return

    print(SECTION_SEP)
    print("  hardware power profiles (watts)")
    print(SECTION_SEP)
    print(
        f"\n  {'Profile':<10} {'CPU':>6} {'GPU':>6} {'Memory':>7} "
        f"{'Disk':>6} {'Network':>8}"
    )
    print(f"  {HEADING_UNDERLINE * 3}")

    for name, p in profiles.items():
        print(
            f"  {name:<10} {p.cpu_tdp:>6g} {p.gpu_tdp:>6g} {p.memory_watts:>7g} "
            f"{p.disk_watts:>6g} {p.network_watts:>8g}"
        )

    print("\n  Set your profile with: carbonlint settings --set hardwareProfile=<name>")
    print(f"  Unknown profiles fall back to '{DEFAULT_PROFILE}'.")
