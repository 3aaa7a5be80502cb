"""
Container capacity comparisons.

Every check of accumulated volume against container capacity goes
through here so the packer and any reporting agree on what "full" means.
"""

from config.shipping import CONTAINER_CAPACITY_M3, CAPACITY_TOLERANCE_M3


def fits_within_capacity(
    volume_m3: float,
    capacity_m3: float = CONTAINER_CAPACITY_M3,
    tolerance_m3: float = CAPACITY_TOLERANCE_M3,
) -> bool:
    """
    Check whether a volume fits in a container.

    76.00000004 m³ in a 76 m³ container fits; 76.02 does not.

    Args:
        volume_m3: Accumulated volume
        capacity_m3: Container capacity
        tolerance_m3: Floating-point slack

    Returns:
        True if volume is at or below capacity (within tolerance)
    """
    return volume_m3 <= capacity_m3 + tolerance_m3


def utilization_pct(
    volume_m3: float,
    capacity_m3: float = CONTAINER_CAPACITY_M3,
) -> float:
    """
    Percentage utilization of a single container.

    Returns:
        Utilization percentage (0-100)
    """
    if capacity_m3 <= 0:
        return 0.0
    return min(100.0, (volume_m3 / capacity_m3) * 100)
