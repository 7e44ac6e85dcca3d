from datetime import date

from reportlab.platypus import Paragraph

from qc_triage.aggregator import aggregate
from qc_triage.issues import ANALYSIS_CONFIGS
from qc_triage.models import PeriodRollup
from qc_triage.pdf_report import build_story, category_rows, export_to_pdf, metric_cards


def _headings(story):
    return [item.getPlainText() for item in story if isinstance(item, Paragraph)]


def test_metric_cards_show_ticket_change_with_comparison(categorize, make_mapping):
    mappings = [make_mapping("1", "0"), make_mapping("2", "3")]
    result = aggregate(
        categorize("Damaged product", "xyz"),
        mappings=mappings,
        prior=PeriodRollup(total_tickets=5),
    )

    cards = metric_cards(result, include_comparison=True)

    assert cards[0] == ("Total Tickets", "2", "-3 vs last week")
    assert cards[2] == ("Approved (No Issues)", "1", "50.0%")
    assert metric_cards(result, include_comparison=False)[0][2] == ""


def test_category_rows_add_past_and_change_columns(categorize):
    result = aggregate(
        categorize("Damaged product", "Damaged product", "xyz"),
        prior=PeriodRollup(total_tickets=4, issue_counts={"Damaged product": 1}),
    )

    rows = category_rows(result, include_comparison=True)

    assert rows[0] == ["Category", "Count", "%", "Dev/Factory", "Issue Type", "Past", "Change"]
    assert rows[1] == ["Damaged product", "2", "66.7%", "FACTORY", "CAPTURE", "1", "+1"]
    assert rows[2][0] == "Uncategorized"
    assert rows[2][3:5] == ["-", "-"]


def test_story_includes_stuck_section_only_when_requested(make_ticket, categorize):
    categorized = categorize(
        make_ticket("Damaged product", status="Stuck"),
        make_ticket("BBOX issue"),
        make_ticket("xyz"),
    )
    result = aggregate(categorized)
    config = ANALYSIS_CONFIGS["overall"]

    with_stuck = _headings(build_story(result, config, categorized, include_stuck_tickets=True,
                                       report_date=date(2026, 3, 5)))
    without = _headings(build_story(result, config, categorized, report_date=date(2026, 3, 5)))

    assert with_stuck[0] == "QC Ticket Analysis Dashboard - Overall Analysis"
    assert "March 5, 2026" in with_stuck
    assert "DEV vs FACTORY" in with_stuck
    assert "STUCK TICKETS ANALYSIS (1 tickets - 33.3% of total)" in with_stuck
    assert not any(h.startswith("STUCK TICKETS") for h in without)


def test_label_dashboard_skips_dev_factory_chart(categorize):
    categorized = categorize("Bad label - framing")
    config = ANALYSIS_CONFIGS["label"]

    headings = _headings(build_story(aggregate(categorized, config), config, categorized))

    assert "DEV vs FACTORY" not in headings
    assert "TOP 10 CATEGORIES" in headings


def test_export_to_pdf_writes_file(tmp_path, make_ticket, categorize):
    categorized = categorize(make_ticket("Damaged product", status="Stuck"), make_ticket("xyz"))
    result = aggregate(
        categorized, prior=PeriodRollup(total_tickets=2, issue_counts={"Damaged product": 2})
    )

    path = export_to_pdf(
        result,
        ANALYSIS_CONFIGS["overall"],
        categorized,
        tmp_path / "out" / "dashboard.pdf",
        include_comparison=True,
        include_stuck_tickets=True,
        report_date=date(2026, 3, 5),
    )

    assert path.read_bytes().startswith(b"%PDF")
