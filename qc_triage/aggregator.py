"""Issue grouping, rollups and period-over-period comparison."""
import math
from collections import Counter

from .classifier import Classifier
from .issues import (
    ANALYSIS_CONFIGS,
    DEFAULT_CATALOG,
    ISSUE_CATEGORIES,
    UNCATEGORIZED,
    IssueCatalog,
    get_analysis_config,
)
from .models import (
    AnalysisConfig,
    AnalysisResult,
    CategorizedTicket,
    Comparison,
    ExperienceMapping,
    IssueComparison,
    IssueResult,
    PeriodRollup,
    ProductTypeSummary,
    StuckIssueCount,
    StuckTicketAnalysis,
    Ticket,
)
from .processor import process_tickets

PRODUCT_TYPE_GROUPS = {
    "Fishing Rods": "Fishing Rods (All)",
    "Fishing Rod & Reel Combos": "Fishing Rods (All)",
}


def round_half_up(value: float, digits: int = 1) -> float:
    """Round halves towards positive infinity, as spreadsheet users expect."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _rate(count: int, total: int) -> float:
    return 100 * count / total if total > 0 else 0.0


def _trend(change_percent: float) -> str:
    if change_percent > 0:
        return "up"
    if change_percent < 0:
        return "down"
    return "same"


def compare_counts(
    issue: str, this_week: int, this_total: int, last_week: int, last_total: int
) -> IssueComparison:
    """Compare two counts by the shift of their share of all tickets.

    ``change_percent`` is a percentage-point difference of rates, not a
    relative change: 62/200 against 25/100 is 31.0 - 25.0 = 6.0.
    """
    change_percent = round_half_up(_rate(this_week, this_total) - _rate(last_week, last_total))
    return IssueComparison(
        issue=issue,
        this_week=this_week,
        last_week=last_week,
        change=this_week - last_week,
        change_percent=change_percent,
        trend=_trend(change_percent),
    )


def _selected_issues(config: AnalysisConfig, catalog: IssueCatalog) -> list[str]:
    if config.type == "overall":
        return list(catalog.labels)
    issues = list(dict.fromkeys(config.issues))
    if UNCATEGORIZED not in issues:
        issues.append(UNCATEGORIZED)
    return issues


def _experiences_with_tickets(categorized: list[CategorizedTicket]) -> set[str]:
    return {ticket.experience_key for ticket in categorized if ticket.experience_key}


def _build_comparison(
    result: AnalysisResult, prior: PeriodRollup
) -> Comparison:
    total = result.total_tickets
    prior_total = prior.total_tickets

    issue_comparisons = [
        compare_counts(
            issue_result.issue,
            issue_result.count,
            total,
            prior.issue_counts.get(issue_result.issue, 0),
            prior_total,
        )
        for issue_result in result.issue_results
    ]

    dev_factory_comparisons = [
        compare_counts("DEV", result.dev_count, total, prior.dev_count, prior_total),
        compare_counts("FACTORY", result.factory_count, total, prior.factory_count, prior_total),
    ]

    category_comparisons = [
        compare_counts(
            category,
            result.category_breakdown.get(category, 0),
            total,
            prior.category_breakdown.get(category, 0),
            prior_total,
        )
        for category in ISSUE_CATEGORIES
        if category in result.category_breakdown or category in prior.category_breakdown
    ]

    ticket_change = total - prior_total
    return Comparison(
        last_week_total_tickets=prior_total,
        last_week_approved_experiences=prior.approved_experiences,
        last_week_products_reviewed=prior.products_reviewed,
        ticket_change=ticket_change,
        ticket_change_percent=round_half_up(100 * ticket_change / prior_total),
        issue_comparisons=issue_comparisons,
        dev_count_last_week=prior.dev_count,
        factory_count_last_week=prior.factory_count,
        category_breakdown_last_week=dict(prior.category_breakdown),
        dev_factory_comparisons=dev_factory_comparisons,
        category_comparisons=category_comparisons,
    )


def aggregate(
    categorized: list[CategorizedTicket],
    config: AnalysisConfig = ANALYSIS_CONFIGS["overall"],
    mappings: list[ExperienceMapping] | None = None,
    prior: PeriodRollup | None = None,
    catalog: IssueCatalog = DEFAULT_CATALOG,
    total_products_reviewed: int | None = None,
) -> AnalysisResult:
    """Group categorized tickets by issue and compute the report numbers.

    A ticket with several labels lands in every selected bucket it carries,
    so per-issue counts may add up to more than the ticket total. Labels
    outside the selection are not counted anywhere.
    """
    selected = _selected_issues(config, catalog)
    buckets: dict[str, list[CategorizedTicket]] = {issue: [] for issue in selected}
    for ticket in categorized:
        for issue in ticket.issues:
            if issue in buckets:
                buckets[issue].append(ticket)

    total_tickets = len(categorized)
    experiences = _experiences_with_tickets(categorized)
    products_with_tickets = len(experiences)

    if mappings:
        total_products = len(mappings)
        approved_experiences = sum(1 for mapping in mappings if mapping.is_approved)
    else:
        total_products = total_products_reviewed or products_with_tickets
        approved_experiences = 0

    issue_results = []
    categorized_count = 0
    uncategorized_count = 0
    dev_count = 0
    factory_count = 0
    category_breakdown: dict[str, int] = {}

    for issue, tickets in buckets.items():
        count = len(tickets)
        metadata = catalog.get_metadata(issue)
        issue_results.append(IssueResult(
            issue=issue,
            tickets=tickets,
            count=count,
            percentage=_rate(count, total_tickets),
            metadata=metadata,
        ))

        if issue == UNCATEGORIZED:
            uncategorized_count = count
            continue

        categorized_count += count
        if metadata.dev_factory == "DEV":
            dev_count += count
        elif metadata.dev_factory == "FACTORY":
            factory_count += count
        if metadata.category:
            category_breakdown[metadata.category] = (
                category_breakdown.get(metadata.category, 0) + count
            )

    issue_results.sort(key=lambda r: r.count, reverse=True)

    success_rate = (
        100 * (total_tickets - uncategorized_count) / total_tickets if total_tickets > 0 else 100.0
    )
    tickets_per_experience = (
        total_tickets / products_with_tickets if products_with_tickets > 0 else 0.0
    )

    result = AnalysisResult(
        total_tickets=total_tickets,
        total_products_reviewed=total_products,
        approved_experiences=approved_experiences,
        products_with_tickets=products_with_tickets,
        tickets_per_experience=round_half_up(tickets_per_experience, 2),
        categorized_count=categorized_count,
        uncategorized_count=uncategorized_count,
        success_rate=round_half_up(success_rate, 2),
        issue_results=issue_results,
        dev_count=dev_count,
        factory_count=factory_count,
        category_breakdown=category_breakdown,
    )

    if prior is not None and prior.total_tickets > 0:
        result.comparison = _build_comparison(result, prior)

    return result


def rollup_from_result(result: AnalysisResult) -> PeriodRollup:
    """Reduce an overall analysis to the numbers a later comparison needs."""
    return PeriodRollup(
        total_tickets=result.total_tickets,
        approved_experiences=result.approved_experiences,
        products_reviewed=result.total_products_reviewed,
        issue_counts={r.issue: r.count for r in result.issue_results},
        dev_count=result.dev_count,
        factory_count=result.factory_count,
        category_breakdown=dict(result.category_breakdown),
    )


def build_period_rollup(
    categorized: list[CategorizedTicket],
    mappings: list[ExperienceMapping] | None = None,
    catalog: IssueCatalog = DEFAULT_CATALOG,
) -> PeriodRollup:
    """Summarize a prior period over the full issue set."""
    result = aggregate(categorized, ANALYSIS_CONFIGS["overall"], mappings=mappings, catalog=catalog)
    return rollup_from_result(result)


def run_analysis(
    tickets: list[Ticket],
    mappings: list[ExperienceMapping] | None = None,
    analysis_type: str = "overall",
    prior: PeriodRollup | None = None,
    custom_issues: list[str] | None = None,
    catalog: IssueCatalog = DEFAULT_CATALOG,
    total_products_reviewed: int | None = None,
) -> AnalysisResult:
    """Categorize raw tickets and aggregate them in one call."""
    config = get_analysis_config(analysis_type, custom_issues)
    categorized = process_tickets(tickets, mappings, Classifier(catalog))
    return aggregate(
        categorized,
        config,
        mappings=mappings,
        prior=prior,
        catalog=catalog,
        total_products_reviewed=total_products_reviewed,
    )


def consolidate_product_type(product_type: str) -> str:
    return PRODUCT_TYPE_GROUPS.get(product_type, product_type)


def get_top_product_types(
    categorized: list[CategorizedTicket], limit: int = 5
) -> list[ProductTypeSummary]:
    """Product types with the most tickets and their most common primary issue."""
    counts: Counter[str] = Counter()
    issues_by_type: dict[str, Counter[str]] = {}
    for ticket in categorized:
        product_type = consolidate_product_type(ticket.product_type or "Unknown")
        counts[product_type] += 1
        issues_by_type.setdefault(product_type, Counter())[ticket.issue] += 1

    total = len(categorized)
    summaries = []
    for product_type, count in counts.most_common():
        issue, issue_count = issues_by_type[product_type].most_common(1)[0]
        summaries.append(ProductTypeSummary(
            product_type=product_type,
            count=count,
            percentage=_rate(count, total),
            most_common_issue=f"{issue} ({issue_count})",
        ))
    return summaries[:limit]


def get_top_product_type_for_issue(tickets: list[CategorizedTicket]) -> str:
    if not tickets:
        return "-"
    counts = Counter(
        consolidate_product_type(ticket.product_type or "Unknown") for ticket in tickets
    )
    return counts.most_common(1)[0][0]


def analyze_stuck_tickets(
    categorized: list[CategorizedTicket], limit: int = 5
) -> StuckTicketAnalysis:
    """Issues behind tickets whose status is "stuck"."""
    stuck = [t for t in categorized if t.status.strip().lower() == "stuck"]
    issue_counts = Counter(issue for ticket in stuck for issue in ticket.issues)

    return StuckTicketAnalysis(
        total_stuck_tickets=len(stuck),
        stuck_percentage=_rate(len(stuck), len(categorized)),
        top_issues=[
            StuckIssueCount(issue=issue, count=count, percentage=_rate(count, len(stuck)))
            for issue, count in issue_counts.most_common(limit)
        ],
    )
