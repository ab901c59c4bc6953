import pytest

from aged_inventory.services.rollup import FieldRule, MergeRule, ROLLUP_POLICY, roll_up
from tests.conftest import make_row


def test_end_to_end_style_color_aggregate():
    rows = [
        make_row(Style="ABC123", Color="Black", Size="M", Remaining_Stock="10", Remaining_Asset_Value="50.00",
                 Inventory_Age="400", Age_Bracket="1 year", Unit_Cost="5.00", CAD_Link=""),
        make_row(Style="ABC123", Color="Black", Size="L", Remaining_Stock="5", Remaining_Asset_Value="25.00",
                 Inventory_Age="430", Age_Bracket="1 year+", Unit_Cost="5.50", CAD_Link="http://cad/abc.jpg"),
    ]

    result = roll_up(rows)

    assert result.row_count == 2
    assert result.group_count == 1
    record = result.records[("ABC123", "Black")]
    assert record.sizes == ["M", "L"]
    assert record.total_remaining == 15
    assert record.total_value == 75.00
    assert record.unit_cost_avg == 5.25
    assert record.age_days == 430
    assert record.age_bracket == "1 year+"
    assert record.image_url == "http://cad/abc.jpg"


class TestGrouping:
    def test_one_group_per_distinct_trimmed_key(self):
        rows = [
            make_row(Style="A", Color="Red"),
            make_row(Style=" A ", Color="Red "),
            make_row(Style="A", Color="Blue"),
            make_row(Style="B", Color="Red"),
            make_row(Style="B", Color=""),
        ]
        result = roll_up(rows)
        assert set(result.records) == {("A", "Red"), ("A", "Blue"), ("B", "Red"), ("B", "")}

    def test_blank_style_rows_dropped(self):
        rows = [make_row(Style="   ", Color="Red", Remaining_Stock="5"), make_row(Color="Red")]
        result = roll_up(rows)
        assert result.row_count == 2
        assert result.group_count == 0

    def test_empty_input(self):
        result = roll_up([])
        assert result.records == {}
        assert result.row_count == 0


class TestMergePolicy:
    def test_sums_tolerate_separators_and_blanks(self):
        rows = [
            make_row(Style="A", Remaining_Stock="1,000", Current_Stock="3", Committed_Stock="x"),
            make_row(Style="A", Remaining_Stock="", Current_Stock="2.5", Committed_Stock="4"),
            make_row(Style="A", Remaining_Stock="250", Current_Stock=None, Committed_Stock="1"),
        ]
        record = roll_up(rows).records[("A", "")]
        assert record.total_remaining == 1250
        assert record.total_current == 5.5
        assert record.total_committed == 5

    def test_total_value_rounded_to_cents(self):
        rows = [make_row(Style="A", Remaining_Asset_Value="1,000.00"), make_row(Style="A", Remaining_Asset_Value="0.125")]
        assert roll_up(rows).records[("A", "")].total_value == 1000.13

    def test_unit_cost_is_unweighted_mean_over_all_rows(self):
        rows = [
            make_row(Style="A", Unit_Cost="1.00", Remaining_Stock="100"),
            make_row(Style="A", Unit_Cost="2.00", Remaining_Stock="1"),
            make_row(Style="A", Unit_Cost="", Remaining_Stock="1"),
        ]
        assert roll_up(rows).records[("A", "")].unit_cost_avg == 1.0

    def test_unit_cost_rounded_to_four_places(self):
        rows = [make_row(Style="A", Unit_Cost="1"), make_row(Style="A", Unit_Cost="1"), make_row(Style="A", Unit_Cost="2")]
        assert roll_up(rows).records[("A", "")].unit_cost_avg == 1.3333

    def test_commodity_first_non_blank_wins(self):
        rows = [
            make_row(Style="A", Commodity=""),
            make_row(Style="A", Commodity="Tops"),
            make_row(Style="A", Commodity="Bottoms"),
            make_row(Style="A", Commodity=""),
        ]
        assert roll_up(rows).records[("A", "")].commodity == "Tops"

    def test_purchase_order_last_non_blank_wins(self):
        rows = [
            make_row(Style="A", PO_No="PO-1"),
            make_row(Style="A", PO_No="PO-2"),
            make_row(Style="A", PO_No=""),
        ]
        assert roll_up(rows).records[("A", "")].purchase_order_no == "PO-2"

    def test_max_age_trio_comes_from_one_row(self):
        rows = [
            make_row(Style="A", Inventory_Age="100", Age_Bracket="Under 1 year", Trsc_Date="2024-01-01"),
            make_row(Style="A", Inventory_Age="900", Age_Bracket="2 years", Trsc_Date="2022-01-01"),
            make_row(Style="A", Inventory_Age="500", Age_Bracket="1 year", Trsc_Date="2023-01-01"),
        ]
        record = roll_up(rows).records[("A", "")]
        assert (record.age_days, record.age_bracket, record.last_stock_in_date) == (900, "2 years", "2022-01-01")

    def test_max_age_tie_keeps_earliest_row(self):
        rows = [
            make_row(Style="A", Inventory_Age="700", Age_Bracket="first", Trsc_Date="d1"),
            make_row(Style="A", Inventory_Age="700", Age_Bracket="second", Trsc_Date="d2"),
        ]
        record = roll_up(rows).records[("A", "")]
        assert (record.age_bracket, record.last_stock_in_date) == ("first", "d1")

    def test_max_age_linked_blank_fields_still_move_together(self):
        rows = [
            make_row(Style="A", Inventory_Age="10", Age_Bracket="new", Trsc_Date="d1"),
            make_row(Style="A", Inventory_Age="20", Age_Bracket="", Trsc_Date="d2"),
        ]
        record = roll_up(rows).records[("A", "")]
        assert (record.age_days, record.age_bracket, record.last_stock_in_date) == (20, "", "d2")

    def test_sizes_resolved_per_group(self):
        rows = [make_row(Style="A", Size=s) for s in ["L", "M", "L", "Q"]]
        assert roll_up(rows).records[("A", "")].sizes == ["M", "L", "Q"]

    def test_row_without_size_adds_no_size(self):
        rows = [make_row(Style="A", Size="M"), make_row(Style="A", Size="  "), make_row(Style="A")]
        assert roll_up(rows).records[("A", "")].sizes == ["M"]

    def test_custom_policy_table(self):
        policy = dict(ROLLUP_POLICY)
        policy["commodity"] = FieldRule(MergeRule.LAST_NON_BLANK, "commodity")
        rows = [make_row(Style="A", Commodity="Tops"), make_row(Style="A", Commodity="Bottoms")]
        assert roll_up(rows, policy=policy).records[("A", "")].commodity == "Bottoms"


class TestImageResolution:
    def test_in_batch_link_beats_catalog(self):
        rows = [make_row(Style="A", CAD_Link=""), make_row(Style="A", CAD_Link="http://a/1.jpg")]
        record = roll_up(rows, {"A": "http://b/2.jpg"}).records[("A", "")]
        assert record.image_url == "http://a/1.jpg"

    def test_catalog_used_when_no_link(self):
        rows = [make_row(Style="A", Color="Red"), make_row(Style="A", Color="Blue")]
        result = roll_up(rows, {"A": "http://b/2.jpg"})
        assert result.records[("A", "Red")].image_url == "http://b/2.jpg"
        assert result.records[("A", "Blue")].image_url == "http://b/2.jpg"

    def test_no_image_anywhere(self):
        assert roll_up([make_row(Style="A")], {"B": "http://b/2.jpg"}).records[("A", "")].image_url == ""


def test_to_columns_maps_to_table_fields():
    record = roll_up([
        make_row(Style="A", Color="Red", Size="S", Trsc_Date="2024-01-01", PO_No="PO-7", Inventory_Age="5"),
        make_row(Style="A", Color="Red", Size="XS"),
    ]).records[("A", "Red")]
    columns = record.to_columns()
    assert columns["sizes"] == "XS, S"
    assert columns["trsc_date"] == "2024-01-01"
    assert columns["po_no"] == "PO-7"
    assert "last_stock_in_date" not in columns


@pytest.mark.parametrize("raw_age, expected", [("1,200", 1200), ("430.7", 430), ("abc", 0)])
def test_age_parsing(raw_age, expected):
    assert roll_up([make_row(Style="A", Inventory_Age=raw_age)]).records[("A", "")].age_days == expected
