import unittest
from decimal import Decimal

from cozyhaven.models.rooms import BedType
from cozyhaven.services.pricing_service import compute_price, occupancy_threshold
from cozyhaven.utils.custom_exceptions import InvalidOccupancy, UnknownBedType


class TestComputePrice(unittest.TestCase):

    def test_double_within_threshold(self):
        self.assertEqual(compute_price(Decimal("100.00"), BedType.DOUBLE, 2, 0), Decimal("100.00"))

    def test_double_one_adult_over(self):
        self.assertEqual(compute_price(Decimal("100.00"), BedType.DOUBLE, 3, 0), Decimal("140.00"))

    def test_king_adult_and_child_over(self):
        self.assertEqual(compute_price(Decimal("200.00"), BedType.KING, 5, 1), Decimal("320.00"))

    def test_single_children_push_over_threshold(self):
        self.assertEqual(compute_price(Decimal("150.00"), BedType.SINGLE, 1, 2), Decimal("210.00"))

    def test_boundary_per_bed_type(self):
        fare = Decimal("100.00")
        for bed, threshold in ((BedType.SINGLE, 1), (BedType.DOUBLE, 2), (BedType.KING, 4)):
            with self.subTest(bed=bed):
                self.assertEqual(compute_price(fare, bed, threshold, 0), fare)
                # one more adult crosses the threshold
                self.assertEqual(compute_price(fare, bed, threshold + 1, 0), Decimal("140.00"))

    def test_children_at_threshold_have_no_surcharge(self):
        self.assertEqual(compute_price(Decimal("100.00"), BedType.KING, 2, 2), Decimal("100.00"))

    def test_all_children_charged_once_threshold_crossed(self):
        # 2 adults + 1 child on a DOUBLE: adult term is 0, the child still pays 20%
        self.assertEqual(compute_price(Decimal("100.00"), BedType.DOUBLE, 2, 1), Decimal("120.00"))

    def test_adult_term_goes_negative_below_threshold(self):
        # 100 + 0.4*100*(1-2) + 0.2*100*3 = 120
        self.assertEqual(compute_price(Decimal("100.00"), BedType.DOUBLE, 1, 3), Decimal("120.00"))

    def test_rounds_to_two_places(self):
        self.assertEqual(compute_price(Decimal("99.99"), BedType.SINGLE, 1, 1), Decimal("119.99"))
        self.assertEqual(compute_price(Decimal("10.05"), BedType.SINGLE, 2, 0), Decimal("14.07"))

    def test_accepts_bed_type_strings(self):
        self.assertEqual(compute_price(Decimal("100.00"), "double", 3, 0), Decimal("140.00"))

    def test_accepts_numeric_fare(self):
        self.assertEqual(compute_price(100, BedType.DOUBLE, 3, 0), Decimal("140.00"))

    def test_unknown_bed_type(self):
        with self.assertRaises(UnknownBedType):
            compute_price(Decimal("100.00"), "QUEEN", 1, 0)

    def test_no_adults(self):
        with self.assertRaises(InvalidOccupancy):
            compute_price(Decimal("100.00"), BedType.DOUBLE, 0, 2)

    def test_negative_children(self):
        with self.assertRaises(InvalidOccupancy):
            compute_price(Decimal("100.00"), BedType.DOUBLE, 1, -1)

    def test_non_positive_fare(self):
        with self.assertRaises(ValueError):
            compute_price(Decimal("0"), BedType.DOUBLE, 1, 0)

    def test_occupancy_threshold(self):
        self.assertEqual(occupancy_threshold(BedType.SINGLE), 1)
        self.assertEqual(occupancy_threshold("king"), 4)


if __name__ == "__main__":
    unittest.main()
