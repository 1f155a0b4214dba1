"""Static hardware power profiles.

Each profile gives nameplate wattages used as the power draw of a
component at 100% utilization.
"""

from __future__ import annotations

from carbonlint.models.carbon_models import HardwareProfile

DEFAULT_PROFILE = "default"

HARDWARE_PROFILES: dict[str, HardwareProfile] = {
    DEFAULT_PROFILE: HardwareProfile(
        cpu_tdp=65, gpu_tdp=0, memory_watts=3, disk_watts=5, network_watts=2
    ),
    "laptop": HardwareProfile(
        cpu_tdp=28, gpu_tdp=0, memory_watts=2, disk_watts=3, network_watts=1
    ),
    "desktop": HardwareProfile(
        cpu_tdp=95, gpu_tdp=150, memory_watts=5, disk_watts=8, network_watts=3
    ),
    "server": HardwareProfile(
        cpu_tdp=150, gpu_tdp=300, memory_watts=10, disk_watts=15, network_watts=5
    ),
}


def resolve_hardware_profile(name: str | None) -> tuple[str, HardwareProfile]:
    """Look up a hardware profile, falling back to ``default``.

    Parameters
    ----------
    name : str | None
        Profile name (e.g. "server"). Case-insensitive.

    Returns
    -------
    tuple[str, HardwareProfile]
        The profile name that was actually used and the profile.
    """
    key = (name or "").strip().lower()
    if key in HARDWARE_PROFILES:
        return key, HARDWARE_PROFILES[key]
    return DEFAULT_PROFILE, HARDWARE_PROFILES[DEFAULT_PROFILE]


def list_hardware_profiles() -> dict[str, HardwareProfile]:
    """Return all profile name to profile mappings."""
    return dict(HARDWARE_PROFILES)
