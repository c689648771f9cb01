from decimal import Decimal, ROUND_HALF_UP
from typing import Union
from cozyhaven.models.rooms import BedType
from cozyhaven.utils.constants import (
    ADULT_SURCHARGE_RATE,
    BED_TYPE_THRESHOLDS,
    CHILD_SURCHARGE_RATE,
    CURRENCY_PLACES,
)
from cozyhaven.utils.custom_exceptions import InvalidOccupancy, UnknownBedType


def _to_bed_type(bed_type: Union[BedType, str]) -> BedType:
    if isinstance(bed_type, BedType):
        return bed_type
    try:
        return BedType(str(bed_type).upper())
    except ValueError:
        allowed = ", ".join(b.value for b in BedType)
        raise UnknownBedType(f"Unknown bed type {bed_type!r}. Allowed: {allowed}") from None


def occupancy_threshold(bed_type: Union[BedType, str]) -> int:
    return BED_TYPE_THRESHOLDS[_to_bed_type(bed_type).value]


def compute_price(
    base_fare: Decimal,
    bed_type: Union[BedType, str],
    num_adults: int,
    num_children: int = 0,
) -> Decimal:
    """Price of one stay for the given occupancy.

    Up to the bed type's threshold the base fare covers everyone. Past it,
    each adult over the threshold adds 40% of the fare and every child adds
    20%. The adult term uses ``num_adults - threshold`` as is, so it turns
    negative when children alone push occupancy over the threshold.
    """
    bed = _to_bed_type(bed_type)
    if num_adults < 1:
        raise InvalidOccupancy("At least one adult is required")
    if num_children < 0:
        raise InvalidOccupancy("Number of children cannot be negative")
    base_fare = Decimal(str(base_fare))
    if base_fare <= 0:
        raise ValueError("Base fare must be positive")

    threshold = occupancy_threshold(bed)
    total = base_fare
    if num_adults + num_children > threshold:
        additional_charge = (
            base_fare * ADULT_SURCHARGE_RATE * (num_adults - threshold)
            + base_fare * CHILD_SURCHARGE_RATE * num_children
        )
        total = base_fare + additional_charge

    return total.quantize(CURRENCY_PLACES, rounding=ROUND_HALF_UP)
