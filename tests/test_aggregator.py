import pytest

from qc_triage.aggregator import (
    aggregate,
    analyze_stuck_tickets,
    build_period_rollup,
    compare_counts,
    get_top_product_type_for_issue,
    get_top_product_types,
    round_half_up,
    run_analysis,
)
from qc_triage.issues import ANALYSIS_CONFIGS, IssueCatalog, get_analysis_config
from qc_triage.models import IssueMetadata, PeriodRollup


def _counts(result):
    return {r.issue: r.count for r in result.issue_results}


def test_single_label_counts_add_up_to_total(categorize):
    categorized = categorize("BBOX issue", "Bad copy", "Glare on lid", "xyz", "abc")

    result = aggregate(categorized)

    assert result.total_tickets == 5
    assert sum(r.count for r in result.issue_results) == 5
    assert result.uncategorized_count == 2
    assert result.categorized_count + result.uncategorized_count == result.total_tickets
    assert result.success_rate == 60.0


def test_multi_label_ticket_counts_under_each_label(categorize):
    result = aggregate(categorize("BBOX issue; Bad copy"))
    counts = _counts(result)

    assert counts["BBOX issue"] == 1
    assert counts["Bad copy"] == 1
    assert sum(counts.values()) == 2
    assert result.total_tickets == 1
    assert result.categorized_count == 2


def test_percentages_and_stable_sort(categorize):
    result = aggregate(categorize("Bad copy", "BBOX issue", "BBOX issue", "Damaged product"))

    assert [r.issue for r in result.issue_results[:3]] == [
        "BBOX issue", "Bad copy", "Damaged product"
    ]
    assert result.issue_results[0].percentage == 50.0
    assert result.issue_results[1].percentage == 25.0
    # zero-count issues keep catalog order
    zero = [r.issue for r in result.issue_results if r.count == 0]
    assert zero[:2] == ["Action video edit", "Action video framing"]


def test_dev_factory_and_category_rollups(categorize):
    result = aggregate(categorize("BBOX issue", "BBOX issue", "Damaged product", "xyz"))

    assert result.dev_count == 2
    assert result.factory_count == 1
    assert result.category_breakdown["BBOX"] == 2
    assert result.category_breakdown["CAPTURE"] == 1


def test_catalog_overrides_metadata(categorize):
    catalog = IssueCatalog({"BBOX issue": IssueMetadata(dev_factory="FACTORY", category="CAPTURE")})

    result = aggregate(categorize("BBOX issue"), catalog=catalog)

    assert result.dev_count == 0
    assert result.factory_count == 1
    assert result.category_breakdown["CAPTURE"] == 1


def test_subset_analysis_only_counts_selected_issues(categorize):
    config = ANALYSIS_CONFIGS["label"]
    categorized = categorize(("Label shot", "label is cropped"), "BBOX issue", "xyz")

    result = aggregate(categorized, config)

    assert {r.issue for r in result.issue_results} == {
        "Bad label - framing", "Bad label - set up", "Uncategorized"
    }
    assert _counts(result)["Bad label - framing"] == 1
    assert result.uncategorized_count == 1
    assert result.total_tickets == 3


def test_custom_analysis_uses_given_issues(categorize):
    config = get_analysis_config("custom", ["Damaged product", "Glare"])
    result = aggregate(categorize("Damaged product", "Damaged product"), config)

    assert _counts(result) == {"Damaged product": 2, "Glare": 0, "Uncategorized": 0}


def test_custom_analysis_without_issues_is_rejected():
    with pytest.raises(ValueError, match="at least one issue"):
        get_analysis_config("custom", [])


def test_unknown_analysis_type_is_rejected():
    with pytest.raises(ValueError, match="Unknown analysis type"):
        get_analysis_config("weekly")


def test_approved_experiences_come_from_mappings(categorize, make_mapping):
    mappings = [make_mapping("1", "0"), make_mapping("2", "0"), make_mapping("3", "3")]

    result = aggregate(categorize("xyz"), mappings=mappings)

    assert result.approved_experiences == 2
    assert result.total_products_reviewed == 3


def test_products_reviewed_falls_back_to_distinct_experiences(make_ticket, categorize):
    tickets = [
        make_ticket("xyz", experience_id="A"),
        make_ticket("xyz", experience_id="A"),
        make_ticket("xyz", associated_experience="B"),
        make_ticket("xyz"),
    ]

    result = aggregate(categorize(*tickets))

    assert result.products_with_tickets == 2
    assert result.total_products_reviewed == 2
    assert result.tickets_per_experience == 2.0
    assert aggregate(categorize(*tickets), total_products_reviewed=10).total_products_reviewed == 10


def test_comparison_uses_percentage_points(categorize):
    current = categorize(*(["Damaged product"] * 62 + ["xyz"] * 138))
    prior = PeriodRollup(
        total_tickets=100,
        issue_counts={"Damaged product": 25},
        factory_count=25,
        category_breakdown={"CAPTURE": 25},
    )

    result = aggregate(current, prior=prior)
    row = next(c for c in result.comparison.issue_comparisons if c.issue == "Damaged product")

    assert row.this_week == 62
    assert row.last_week == 25
    assert row.change == 37
    assert row.change_percent == 6.0
    assert row.trend == "up"
    assert result.comparison.ticket_change == 100
    assert result.comparison.ticket_change_percent == 100.0

    factory = next(c for c in result.comparison.dev_factory_comparisons if c.issue == "FACTORY")
    assert factory.change_percent == 6.0
    capture = next(c for c in result.comparison.category_comparisons if c.issue == "CAPTURE")
    assert capture.change_percent == 6.0


def test_comparison_for_issue_missing_in_prior_period(categorize):
    prior = PeriodRollup(total_tickets=10, issue_counts={})
    result = aggregate(categorize("BBOX issue", "xyz"), prior=prior)
    row = next(c for c in result.comparison.issue_comparisons if c.issue == "BBOX issue")

    assert row.last_week == 0
    assert row.change_percent == 50.0


def test_compare_counts_trend_directions():
    assert compare_counts("X", 10, 100, 20, 100).trend == "down"
    assert compare_counts("X", 10, 100, 10, 100).trend == "same"
    assert compare_counts("X", 10, 100, 20, 100).change_percent == -10.0


def test_no_comparison_without_prior_tickets(categorize):
    assert aggregate(categorize("xyz")).comparison is None
    assert aggregate(categorize("xyz"), prior=PeriodRollup(total_tickets=0)).comparison is None


def test_empty_input():
    result = aggregate([], prior=PeriodRollup(total_tickets=5))

    assert result.total_tickets == 0
    assert result.success_rate == 100.0
    assert result.tickets_per_experience == 0.0
    assert all(r.percentage == 0 for r in result.issue_results)
    assert result.comparison is None


def test_aggregate_is_idempotent(categorize, make_mapping):
    categorized = categorize("BBOX issue; Bad copy", "Glare on lid", "xyz")
    mappings = [make_mapping("1", "0")]
    prior = PeriodRollup(total_tickets=4, issue_counts={"BBOX issue": 1})

    first = aggregate(categorized, mappings=mappings, prior=prior)
    second = aggregate(categorized, mappings=mappings, prior=prior)

    assert first.model_dump() == second.model_dump()


def test_build_period_rollup(categorize, make_mapping):
    rollup = build_period_rollup(
        categorize("BBOX issue", "Damaged product", "xyz"),
        [make_mapping("1", "0"), make_mapping("2", "4")],
    )

    assert rollup.total_tickets == 3
    assert rollup.approved_experiences == 1
    assert rollup.products_reviewed == 2
    assert rollup.issue_counts["BBOX issue"] == 1
    assert rollup.dev_count == 1
    assert rollup.factory_count == 1


def test_run_analysis_from_raw_tickets(make_ticket):
    result = run_analysis([make_ticket("Dirty plate"), make_ticket("xyz")], analysis_type="factory")

    assert _counts(result)["Damage/dirty plate"] == 1
    assert result.uncategorized_count == 1


def test_top_product_types_merge_fishing_rods(make_ticket, make_mapping, categorize):
    tickets = [
        make_ticket("Glare", backstage_page="https://b/experiences/1"),
        make_ticket("Glare", backstage_page="https://b/experiences/2"),
        make_ticket("Dirty plate", backstage_page="https://b/experiences/2"),
        make_ticket("xyz", backstage_page="https://b/experiences/3"),
    ]
    mappings = [
        make_mapping("1", product_type="Fishing Rods"),
        make_mapping("2", product_type="Fishing Rod & Reel Combos"),
        make_mapping("3", product_type="Tents"),
    ]
    categorized = categorize(*tickets, mappings=mappings)

    top = get_top_product_types(categorized, limit=5)

    assert top[0].product_type == "Fishing Rods (All)"
    assert top[0].count == 3
    assert top[0].percentage == 75.0
    assert top[0].most_common_issue == "Reflections on product (2)"
    assert top[1].product_type == "Tents"
    assert get_top_product_type_for_issue(categorized[:2]) == "Fishing Rods (All)"
    assert get_top_product_type_for_issue([]) == "-"


def test_stuck_ticket_analysis(make_ticket, categorize):
    tickets = [
        make_ticket("Glare", status="Stuck"),
        make_ticket("Glare", status="stuck"),
        make_ticket("Dirty plate", status="STUCK"),
        make_ticket("Dirty plate", status="Open"),
    ]

    stuck = analyze_stuck_tickets(categorize(*tickets))

    assert stuck.total_stuck_tickets == 3
    assert stuck.stuck_percentage == 75.0
    assert stuck.top_issues[0].issue == "Reflections on product"
    assert stuck.top_issues[0].count == 2
    assert stuck.top_issues[1].percentage == pytest.approx(100 / 3)


def test_round_half_up():
    assert round_half_up(2.25) == 2.3
    assert round_half_up(-0.25) == -0.2
    assert round_half_up(1.005, 0) == 1.0
