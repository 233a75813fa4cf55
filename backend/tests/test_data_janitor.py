import sys
import unittest
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from erp_core.data_janitor import (
    clean_dataset,
    clean_dataset_in_place,
    clean_dataset_with_report,
    discover_column_roles,
    find_column,
    find_date_candidates,
)
from erp_core.keywords import COLUMN_ROLE_KEYWORDS, ROLE_DOCUMENT, contains_keyword


class ColumnRoleDiscoveryTests(unittest.TestCase):
    def test_find_column_returns_first_match_case_insensitively(self):
        headers = ["Customer", "order date", "Order Qty"]
        self.assertEqual(find_column(headers, ("Order",)), "order date")

    def test_find_column_prefers_preferred_headers(self):
        headers = ["Order No", "Order Date"]
        self.assertEqual(find_column(headers, ("order",), preferred=["Order Date"]), "Order Date")

    def test_find_column_skips_excluded_headers(self):
        headers = ["Planned Date", "Order Date"]
        self.assertEqual(find_column(headers, ("date",), exclude={"Planned Date"}), "Order Date")
        self.assertIsNone(find_column(headers, ("diff",)))

    def test_english_roles_do_not_share_a_column(self):
        headers = ["Order No", "Order Date", "Planned Delivery Date", "Actual Arrival Date", "Diff Days"]
        candidates = ["Order Date", "Planned Delivery Date", "Actual Arrival Date"]
        roles = discover_column_roles(headers, candidates)
        self.assertEqual(roles["predicted"], "Planned Delivery Date")
        self.assertEqual(roles["actual"], "Actual Arrival Date")
        self.assertEqual(roles["difference"], "Diff Days")
        self.assertEqual(roles["document"], "Order Date")

    def test_chinese_predicted_finish_is_not_taken_as_actual(self):
        headers = ["訂單日期", "預計完工日", "實際完工日", "差異天數"]
        roles = discover_column_roles(headers, ["訂單日期", "預計完工日", "實際完工日"])
        self.assertEqual(roles["predicted"], "預計完工日")
        self.assertEqual(roles["actual"], "實際完工日")
        self.assertEqual(roles["difference"], "差異天數")
        self.assertEqual(roles["document"], "訂單日期")

    def test_missing_roles_are_none(self):
        roles = discover_column_roles(["Region", "Revenue"], [])
        self.assertEqual(set(roles.values()), {None})

    def test_document_keywords_are_configuration(self):
        self.assertIn("訂單", COLUMN_ROLE_KEYWORDS[ROLE_DOCUMENT])

    def test_date_candidates_by_name_or_values(self):
        rows = [{"Ship Time": "x", "Posted": "2024/01/10", "Region": "North"}]
        self.assertEqual(find_date_candidates(rows, list(rows[0].keys())), ["Ship Time", "Posted"])

    def test_keyword_case_does_not_matter(self):
        self.assertTrue(contains_keyword("ORDER DATE", ("Order",)))
        self.assertTrue(contains_keyword("order date", ("ORDER",)))
        self.assertFalse(contains_keyword("Region", ("Order",)))


class DataCleanerTests(unittest.TestCase):
    def test_predicted_before_document_takes_document_year(self):
        rows = [{"Order Date": "20240110", "Planned Delivery Date": "20230215"}]
        cleaned = clean_dataset(rows, current_year=2030)
        self.assertEqual(cleaned[0]["Planned Delivery Date"], "20240215")

    def test_implausible_year_borrows_document_year(self):
        rows = [{"訂單日期": "2024/03/01", "預計交貨日": "0024/03/15"}]
        cleaned = clean_dataset(rows, current_year=2030)
        self.assertEqual(cleaned[0]["預計交貨日"], "2024/03/15")
        self.assertEqual(cleaned[0]["訂單日期"], "2024/03/01")

    def test_implausible_year_without_reference_uses_current_year(self):
        rows = [{"Ship Date": "0025/06/15", "Region": "North"}]
        cleaned = clean_dataset(rows, current_year=2031)
        self.assertEqual(cleaned[0]["Ship Date"], "2031/06/15")

    def test_unnamed_date_column_with_year_typos_is_repaired(self):
        rows = [{"交期": "0024/03/15", "數量": 5}, {"交期": "0024/04/15", "數量": 7}]
        cleaned = clean_dataset(rows, current_year=2030)
        self.assertEqual([r["交期"] for r in cleaned], ["2030/03/15", "2030/04/15"])

    def test_compact_dates_are_repaired(self):
        rows = [{"Order Date": "20240110", "Target Date": "00240120"}]
        cleaned = clean_dataset(rows, current_year=2030)
        self.assertEqual(cleaned[0]["Target Date"], "20240120")

    def test_difference_days_are_recomputed(self):
        rows = [
            {"Order Date": "20240201", "Planned Date": "20240301", "Actual Date": "20240305", "Diff Days": 0},
            {"Order Date": "20240201", "Planned Date": "20240310", "Actual Date": "20240308", "Diff Days": None},
            {"Order Date": "20240201", "Planned Date": "20240310", "Actual Date": None, "Diff Days": 7},
        ]
        cleaned = clean_dataset(rows, current_year=2030)
        self.assertEqual(cleaned[0]["Diff Days"], 4)
        self.assertEqual(cleaned[1]["Diff Days"], -2)
        self.assertEqual(cleaned[2]["Diff Days"], 7)

    def test_difference_follows_repaired_predicted_date(self):
        rows = [{"Order Date": "20240110", "Planned Date": "20230115", "Actual Date": "20240118", "Diff Days": 368}]
        cleaned = clean_dataset(rows, current_year=2030)
        self.assertEqual(cleaned[0]["Planned Date"], "20240115")
        self.assertEqual(cleaned[0]["Diff Days"], 3)

    def test_copying_variant_leaves_input_untouched(self):
        rows = [{"Ship Date": "0025/06/15"}]
        cleaned = clean_dataset(rows, current_year=2031)
        self.assertEqual(rows[0]["Ship Date"], "0025/06/15")
        self.assertIsNot(cleaned, rows)
        self.assertIsNot(cleaned[0], rows[0])

    def test_in_place_variant_mutates_and_returns_same_list(self):
        rows = [{"Ship Date": "0025/06/15"}]
        result = clean_dataset_in_place(rows, current_year=2031)
        self.assertIs(result, rows)
        self.assertEqual(rows[0]["Ship Date"], "2031/06/15")

    def test_cleaning_is_idempotent(self):
        rows = [
            {"Order Date": "20240110", "Planned Date": "20230215", "Actual Date": "20240220", "Diff Days": 0},
            {"Order Date": "2024/05/01", "Planned Date": "0024/05/09", "Actual Date": "2024/05/07", "Diff Days": 1},
        ]
        once = clean_dataset(rows, current_year=2030)
        twice = clean_dataset(once, current_year=2030)
        self.assertEqual(once, twice)

    def test_row_count_and_columns_never_change(self):
        rows = [
            {"Order Date": "abc", "Planned Date": 12.5, "Actual Date": True, "Diff Days": "n/a"},
            {"Order Date": None, "Planned Date": "", "Actual Date": "2024/13/45", "Diff Days": None},
            {"Order Date": "20240110", "Planned Date": "2023-02-30", "Actual Date": "20240105", "Diff Days": 1},
        ]
        cleaned = clean_dataset(rows, current_year=2030)
        self.assertEqual(len(cleaned), len(rows))
        for before, after in zip(rows, cleaned):
            self.assertEqual(list(before.keys()), list(after.keys()))

    def test_empty_dataset_is_a_no_op(self):
        self.assertEqual(clean_dataset([]), [])
        rows = []
        self.assertIs(clean_dataset_in_place(rows), rows)

    def test_report_lists_actions(self):
        rows = [
            {"Order Date": "20240110", "Planned Date": "20230215", "Actual Date": "20240220", "Diff Days": 0},
            {"Order Date": "20240110", "Planned Date": "00240301", "Actual Date": "20240303", "Diff Days": 0},
        ]
        _, actions = clean_dataset_with_report(rows, current_year=2030)
        self.assertIn("Repaired implausible year in 'Planned Date' for 1 rows", actions)
        self.assertIn(
            "Aligned 'Planned Date' year with 'Order Date' for 1 rows predicted before the document date",
            actions,
        )
        self.assertIn("Recomputed 'Diff Days' for 2 rows", actions)

    def test_clean_data_reports_nothing(self):
        rows = [{"Region": "North", "Revenue": 10}]
        cleaned, actions = clean_dataset_with_report(rows)
        self.assertEqual(cleaned, rows)
        self.assertEqual(actions, [])


if __name__ == "__main__":
    unittest.main()
