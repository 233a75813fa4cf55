import sys
import unittest
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from erp_core.aggregation import (
    MAX_CHART_POINTS,
    ReductionMode,
    aggregate_rows,
    detect_reduction_mode,
    drill_down,
    is_date_axis,
)


class ReductionModeTests(unittest.TestCase):
    def test_rate_columns_average(self):
        self.assertEqual(detect_reduction_mode([], "Yield Rate"), ReductionMode.AVERAGE)
        self.assertEqual(detect_reduction_mode([], "達成率"), ReductionMode.AVERAGE)

    def test_identifier_columns_count(self):
        self.assertEqual(detect_reduction_mode([], "Order No"), ReductionMode.COUNT)
        self.assertEqual(detect_reduction_mode([], "工單"), ReductionMode.COUNT)

    def test_text_values_count_instead_of_sum(self):
        rows = [{"Status": None}, {"Status": "Open"}, {"Status": 3}]
        self.assertEqual(detect_reduction_mode(rows, "Status"), ReductionMode.COUNT)

    def test_numeric_text_sums(self):
        rows = [{"Revenue": "12.5"}, {"Revenue": "n/a"}]
        self.assertEqual(detect_reduction_mode(rows, "Revenue"), ReductionMode.SUM)


class AggregateRowsTests(unittest.TestCase):
    def test_large_dataset_reduces_to_twelve_largest_groups(self):
        rows = [{"Region": f"R{n % 20:02d}", "Revenue": n % 20 + 1} for n in range(10_000)]
        points = aggregate_rows(rows, "Region", "Revenue")
        self.assertEqual(len(points), MAX_CHART_POINTS)
        self.assertEqual(points[0]["name"], "R19")
        self.assertEqual(points[0]["value"], 10_000.0)
        self.assertEqual(points[-1]["name"], "R08")
        values = [p["value"] for p in points]
        self.assertEqual(values, sorted(values, reverse=True))

    def test_points_carry_both_column_and_generic_keys(self):
        rows = [{"Region": "North", "Revenue": 100}, {"Region": "North", "Revenue": "50"}]
        points = aggregate_rows(rows, "Region", "Revenue")
        self.assertEqual(points, [{"Region": "North", "Revenue": 150.0, "name": "North", "value": 150.0}])

    def test_average_mode(self):
        rows = [
            {"Line": "A", "Yield Rate": 0.9},
            {"Line": "A", "Yield Rate": 0.8},
            {"Line": "B", "Yield Rate": 0.5},
        ]
        points = aggregate_rows(rows, "Line", "Yield Rate")
        self.assertEqual([p["name"] for p in points], ["A", "B"])
        self.assertAlmostEqual(points[0]["value"], 0.85)
        self.assertAlmostEqual(points[1]["value"], 0.5)

    def test_text_rates_average_their_leading_number(self):
        rows = [{"Line": "A", "達成率": "85%"}, {"Line": "A", "達成率": "95%"}, {"Line": "B", "達成率": " 70.5 %"}]
        points = aggregate_rows(rows, "Line", "達成率")
        self.assertEqual([(p["name"], p["value"]) for p in points], [("A", 90.0), ("B", 70.5)])

    def test_same_column_for_category_and_value_keeps_category(self):
        rows = [{"Region": "N"}, {"Region": "N"}, {"Region": "S"}]
        points = aggregate_rows(rows, "Region", "Region")
        self.assertEqual(points[0], {"Region": "N", "name": "N", "value": 2.0})

    def test_count_mode_counts_rows(self):
        rows = [
            {"Region": "North", "Order No": "SO-1"},
            {"Region": "North", "Order No": "SO-2"},
            {"Region": "South", "Order No": "SO-3"},
        ]
        points = aggregate_rows(rows, "Region", "Order No")
        self.assertEqual([(p["name"], p["value"]) for p in points], [("North", 2.0), ("South", 1.0)])

    def test_text_value_column_is_counted(self):
        rows = [{"Region": "North", "Status": "Open"}, {"Region": "North", "Status": "Closed"}]
        points = aggregate_rows(rows, "Region", "Status")
        self.assertEqual(points[0]["value"], 2.0)

    def test_date_axis_keeps_most_recent_periods_in_order(self):
        periods = [f"2023-{m:02d}-01" for m in (10, 11, 12)] + [f"2024-{m:02d}-01" for m in range(1, 13)]
        rows = [{"Period": p, "Qty": 1} for p in reversed(periods)]
        points = aggregate_rows(rows, "Period", "Qty")
        self.assertEqual([p["name"] for p in points], periods[3:])

    def test_undated_groups_sort_before_dated_ones(self):
        rows = [
            {"Ship Date": "2024-01-05", "Qty": 1},
            {"Ship Date": "pending", "Qty": 2},
            {"Ship Date": "2024-01-03", "Qty": 3},
        ]
        points = aggregate_rows(rows, "Ship Date", "Qty")
        self.assertEqual([p["name"] for p in points], ["pending", "2024-01-03", "2024-01-05"])

    def test_blank_categories_are_skipped(self):
        rows = [
            {"Region": None, "Revenue": 5},
            {"Region": "", "Revenue": 5},
            {"Region": "North", "Revenue": 5},
        ]
        points = aggregate_rows(rows, "Region", "Revenue")
        self.assertEqual([p["name"] for p in points], ["North"])

    def test_integral_float_categories_group_with_integers(self):
        rows = [{"Plant": 101.0, "Qty": 1}, {"Plant": 101, "Qty": 2}, {"Plant": 102, "Qty": 1}]
        points = aggregate_rows(rows, "Plant", "Qty")
        self.assertEqual(points[0]["name"], "101")
        self.assertEqual(points[0]["value"], 3.0)

    def test_missing_or_empty_inputs(self):
        rows = [{"Region": "North", "Revenue": 5}]
        self.assertEqual(aggregate_rows([], "Region", "Revenue"), [])
        self.assertEqual(aggregate_rows(rows, "Nope", "Revenue"), [])
        self.assertEqual(aggregate_rows(rows, "", "Revenue"), [])


class DateAxisTests(unittest.TestCase):
    def test_header_keywords_mark_date_axis(self):
        self.assertTrue(is_date_axis([], "Order Date"))
        self.assertTrue(is_date_axis([], "出貨日"))

    def test_values_mark_date_axis(self):
        rows = [{"Period": "2024/01/31"}, {"Period": "2024/02/29"}]
        self.assertTrue(is_date_axis(rows, "Period"))
        self.assertFalse(is_date_axis([{"Region": "North"}], "Region"))


class DrillDownTests(unittest.TestCase):
    def test_drill_down_filters_by_text_value(self):
        rows = [
            {"Region": "North", "Plant": 101.0},
            {"Region": "South", "Plant": 102},
            {"Region": "North", "Plant": 101},
        ]
        self.assertEqual(len(drill_down(rows, "Region", "North")), 2)
        self.assertEqual(len(drill_down(rows, "Plant", "101")), 2)
        self.assertEqual(drill_down(rows, "Region", "West"), [])
        self.assertEqual(len(rows), 3)


if __name__ == "__main__":
    unittest.main()
