"""
Unit Registry for Scene and Earth Distances.

This module provides a centralized unit system using the `pint` library so
that conversions between metres, kilometres and disk scene units are done
in one place. The disk unit is defined from the planar scale factor, which
keeps the disk layout and the planar distance readout consistent.

Example Usage
-------------
>>> from common.units import Q_
>>> Q_(3, 'disk_unit').to('km')
<Quantity(600.0, 'kilometer')>
"""

from typing import Union

import pint
from pint import UnitRegistry as PintUnitRegistry

from common.constants import SceneConstants

# Create the global unit registry
ureg = PintUnitRegistry()
ureg.define(
    f"disk_unit = {SceneConstants.PLANAR_SCALE_FACTOR.value} * kilometer"
)

# Convenience alias for creating quantities
Q_ = ureg.Quantity


def to_kilometers(value: Union[float, pint.Quantity], unit: str = "m") -> float:
    """Convert a length to kilometres.

    Parameters
    ----------
    value : float or pint.Quantity
        The length. Bare numbers are interpreted in `unit`.
    unit : str
        Unit of a bare number (default: metres).

    Returns
    -------
    float
        The length in kilometres.
    """
    if not isinstance(value, pint.Quantity):
        value = Q_(value, unit)
    return float(value.to("km").magnitude)


def to_disk_units(value: Union[float, pint.Quantity], unit: str = "m") -> float:
    """Convert a length on Earth's surface to disk scene units."""
    if not isinstance(value, pint.Quantity):
        value = Q_(value, unit)
    return float(value.to("disk_unit").magnitude)


def validate_length(quantity: pint.Quantity) -> bool:
    """Check that a quantity is a length.

    Raises
    ------
    pint.DimensionalityError
        If the quantity is not a length.
    """
    expected = ureg.get_dimensionality("[length]")
    if quantity.dimensionality != expected:
        raise pint.DimensionalityError(
            quantity.units,
            "[length]",
            quantity.dimensionality,
            expected
        )
    return True
