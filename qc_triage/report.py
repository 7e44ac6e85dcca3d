"""Markdown and Excel rendering of analysis results."""
import re
from datetime import date
from pathlib import Path

import pandas as pd

from .aggregator import (
    analyze_stuck_tickets,
    get_top_product_type_for_issue,
    get_top_product_types,
    round_half_up,
)
from .issues import ANALYSIS_CONFIGS, DEFAULT_CATALOG, UNCATEGORIZED, IssueCatalog
from .models import AnalysisConfig, AnalysisResult, CategorizedTicket

TREND_ARROWS = {"up": "↑", "down": "↓", "same": "→"}

TICKET_COLUMNS = [
    "Ticket ID",
    "Experience Name",
    "Experience ID",
    "Ticket Name",
    "Ticket Status",
    "Ticket Assignee",
    "Reviewer",
    "Product Type",
    "Template Name",
    "Ticket Description",
    "Backstage Experience Page",
    "Public Preview Link",
]


def visual_bar(percentage: float, max_length: int = 30) -> str:
    """Block-character bar, e.g. 50% of 10 -> "█████"."""
    return "█" * int(round_half_up(percentage / 100 * max_length, 0))


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def _share(part: int, whole: int) -> str:
    return _pct(100 * part / whole if whole > 0 else 0)


def _signed(value: float) -> str:
    return f"+{value}" if value > 0 else str(value)


def report_to_markdown(result: AnalysisResult, config: AnalysisConfig) -> str:
    """Convert an analysis result to a markdown summary."""
    comparison = result.comparison
    lines = [
        f"# QC Ticket Analysis - {config.name}",
        "",
        "## Metrics",
        f"- **Total Products Reviewed:** {result.total_products_reviewed}",
        f"- **Approved Experiences (No Issues):** {result.approved_experiences} "
        f"({_share(result.approved_experiences, result.total_products_reviewed)})",
        f"- **Products with Tickets:** {result.products_with_tickets}",
        f"- **Tickets per Experience:** {result.tickets_per_experience}",
        f"- **Total Tickets:** {result.total_tickets}",
        f"- **Categorized Tickets:** {result.categorized_count}",
        f"- **Uncategorized:** {result.uncategorized_count} "
        f"({_share(result.uncategorized_count, result.total_tickets)})",
        f"- **Success Rate:** {result.success_rate}%",
        "",
    ]

    if comparison:
        lines.extend([
            "## Week-over-Week Summary",
            f"- **Total Tickets:** {result.total_tickets} vs {comparison.last_week_total_tickets} "
            f"({_signed(comparison.ticket_change)}, {_signed(comparison.ticket_change_percent)}%)",
            *[
                f"- **{row.issue} Issues:** {row.this_week} vs {row.last_week} "
                f"({_signed(row.change_percent)} pts {TREND_ARROWS[row.trend]})"
                for row in comparison.dev_factory_comparisons
            ],
            "",
        ])

    lines.append("## Issues")
    if comparison:
        lines.append("| Issue | This Week | Last Week | Change | Share Δ (pts) | Share |")
        lines.append("|---|---|---|---|---|---|")
        for row, issue_result in zip(comparison.issue_comparisons, result.issue_results):
            lines.append(
                f"| {row.issue} | {row.this_week} | {row.last_week} | {_signed(row.change)} | "
                f"{_signed(row.change_percent)} {TREND_ARROWS[row.trend]} | "
                f"{_pct(issue_result.percentage)} |"
            )
    else:
        lines.append("| Issue | Count | Share |")
        lines.append("|---|---|---|")
        for issue_result in result.issue_results:
            lines.append(
                f"| {issue_result.issue} | {issue_result.count} | {_pct(issue_result.percentage)} |"
            )
    lines.append("")

    if config.include_dev_factory:
        lines.extend([
            "## Dev vs Factory",
            f"- **DEV:** {result.dev_count}",
            f"- **FACTORY:** {result.factory_count}",
            "",
        ])

    if config.include_category and result.category_breakdown:
        lines.append("## Category Breakdown")
        for category, count in sorted(
            result.category_breakdown.items(), key=lambda item: item[1], reverse=True
        ):
            lines.append(f"- **{category}:** {count} ({_share(count, result.total_tickets)})")
        lines.append("")

    return "\n".join(lines)


def _dashboard_rows(
    result: AnalysisResult,
    config: AnalysisConfig,
    categorized: list[CategorizedTicket],
    include_comparison: bool,
    catalog: IssueCatalog,
    report_date: date,
) -> list[list]:
    comparison = result.comparison if include_comparison else None
    title_suffix = " (with Week-over-Week Comparison)" if comparison else ""
    rows: list[list] = [
        [f"Ticket Analysis Dashboard - {config.name}{title_suffix}"],
        [f"{report_date:%B} {report_date.day}, {report_date.year}"],
        [],
        ["METRICS", "", "Last Week" if comparison else "", "Change" if comparison else ""],
        [
            "Total Products Reviewed",
            result.total_products_reviewed,
            comparison.last_week_products_reviewed if comparison else "",
            result.total_products_reviewed - comparison.last_week_products_reviewed
            if comparison else "",
        ],
        [
            "Approved Experiences (No Issues)",
            f"{result.approved_experiences} "
            f"({_share(result.approved_experiences, result.total_products_reviewed)})",
            comparison.last_week_approved_experiences if comparison else "",
            "",
        ],
        ["Total Products with Tickets", result.products_with_tickets, "", ""],
        ["Tickets per Experience", result.tickets_per_experience, "", ""],
        [
            "Total Tickets",
            result.total_tickets,
            comparison.last_week_total_tickets if comparison else "",
            f"{comparison.ticket_change} ({comparison.ticket_change_percent}%)" if comparison else "",
        ],
        ["Categorized Tickets", result.categorized_count, "", ""],
        [
            "Unique Issues",
            sum(1 for r in result.issue_results if r.count > 0 and r.issue != UNCATEGORIZED),
            "",
            "",
        ],
        [
            "Uncategorized",
            f"{result.uncategorized_count} "
            f"({_share(result.uncategorized_count, result.total_tickets)})",
            "",
            "",
        ],
        [],
    ]

    if comparison:
        rows.append(["WEEK-OVER-WEEK SUMMARY"])
        rows.append(["Metric", "This Week", "Last Week", "Change", "Change (pts)", "Trend"])
        rows.append([
            "Total Tickets",
            result.total_tickets,
            comparison.last_week_total_tickets,
            comparison.ticket_change,
            f"{comparison.ticket_change_percent}%",
            TREND_ARROWS["down" if comparison.ticket_change < 0
                         else "up" if comparison.ticket_change > 0 else "same"],
        ])
        for row in comparison.dev_factory_comparisons:
            rows.append([
                f"{row.issue} Issues",
                row.this_week,
                row.last_week,
                row.change,
                row.change_percent,
                TREND_ARROWS[row.trend],
            ])
        rows.append([])

    if config.include_top_products and any(t.product_type for t in categorized):
        rows.append(["TOP 5 PRODUCT TYPES"])
        rows.append(["Product Type", "Tickets", "Percentage", "Visual", "Most Common Issue"])
        for product in get_top_product_types(categorized, 5):
            rows.append([
                product.product_type,
                product.count,
                _pct(product.percentage),
                visual_bar(product.percentage, 20),
                product.most_common_issue,
            ])
        rows.append([])

    rows.append(["ISSUE BREAKDOWN"])
    header = ["Issue"]
    if comparison:
        header += ["This Week", "Last Week", "Change", "Change (pts)", "Trend"]
    else:
        header += ["Count"]
    header += ["Percentage", "Visual"]
    if config.include_dev_factory:
        header.append("DEV/FACTORY")
    if config.include_category:
        header.append("Category")
    header += ["Top Product Type", "Description"]
    rows.append(header)

    by_issue = {c.issue: c for c in comparison.issue_comparisons} if comparison else {}
    for issue_result in result.issue_results:
        row = [issue_result.issue]
        if comparison:
            issue_comparison = by_issue[issue_result.issue]
            row += [
                issue_comparison.this_week,
                issue_comparison.last_week,
                issue_comparison.change,
                issue_comparison.change_percent,
                TREND_ARROWS[issue_comparison.trend],
            ]
        else:
            row.append(issue_result.count)
        row += [_pct(issue_result.percentage), visual_bar(issue_result.percentage)]
        if config.include_dev_factory:
            row.append(issue_result.metadata.dev_factory)
        if config.include_category:
            row.append(issue_result.metadata.category)
        row += [
            get_top_product_type_for_issue(issue_result.tickets),
            catalog.get_comment(issue_result.issue),
        ]
        rows.append(row)
    rows.append([])

    if config.include_dev_factory:
        dev_factory_total = result.dev_count + result.factory_count
        rows.append(["DEV VS FACTORY BREAKDOWN"])
        rows.append(["Type", "Count", "Percentage", "Visual"])
        for label, count in (("DEV", result.dev_count), ("FACTORY", result.factory_count)):
            share = 100 * count / dev_factory_total if dev_factory_total > 0 else 0
            rows.append([label, count, _pct(share), visual_bar(share, 50)])
        rows.append([])

    if config.include_category:
        rows.append(["CATEGORY BREAKDOWN"])
        rows.append(["Category", "Count", "Last Week" if comparison else "", "Percentage", "Visual"])
        for category, count in sorted(
            result.category_breakdown.items(), key=lambda item: item[1], reverse=True
        ):
            share = 100 * count / result.total_tickets if result.total_tickets > 0 else 0
            rows.append([
                category,
                count,
                comparison.category_breakdown_last_week.get(category, 0) if comparison else "",
                _pct(share),
                visual_bar(share, 50),
            ])

    return rows


def _ticket_rows(tickets: list[CategorizedTicket]) -> list[list[str]]:
    return [
        [
            t.ticket_id,
            t.experience_name,
            t.experience_id,
            t.name,
            t.status,
            t.assignee,
            t.reviewer,
            t.product_type,
            t.template_name,
            t.description,
            t.backstage_page,
            t.public_preview_link,
        ]
        for t in tickets
    ]


def safe_sheet_name(name: str, used: set[str]) -> str:
    """Excel sheet names: no []:*?/\\ characters, at most 31 chars, unique."""
    base = re.sub(r"[\[\]:*?/\\]", " ", name)[:31]
    candidate = base
    suffix = 2
    while candidate.lower() in used:
        tag = f" ({suffix})"
        candidate = base[:31 - len(tag)] + tag
        suffix += 1
    used.add(candidate.lower())
    return candidate


def export_to_excel(
    result: AnalysisResult,
    config: AnalysisConfig,
    categorized: list[CategorizedTicket],
    output_path: Path,
    include_comparison: bool = False,
    include_stuck_tickets: bool = False,
    catalog: IssueCatalog = DEFAULT_CATALOG,
    report_date: date | None = None,
) -> Path:
    """Write the dashboard plus one sheet of tickets per issue."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    report_date = report_date or date.today()
    used_names: set[str] = set()

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        dashboard = _dashboard_rows(
            result, config, categorized, include_comparison, catalog, report_date
        )
        pd.DataFrame(dashboard).to_excel(
            writer, sheet_name=safe_sheet_name("Dashboard", used_names), index=False, header=False
        )

        issue_sheets = [
            r for r in result.issue_results if r.count > 0 and r.issue != UNCATEGORIZED
        ]
        issue_sheets += [
            r for r in result.issue_results if r.count > 0 and r.issue == UNCATEGORIZED
        ]
        for issue_result in issue_sheets:
            pd.DataFrame(_ticket_rows(issue_result.tickets), columns=TICKET_COLUMNS).to_excel(
                writer, sheet_name=safe_sheet_name(issue_result.issue, used_names), index=False
            )

        if include_stuck_tickets:
            stuck = analyze_stuck_tickets(categorized, 5)
            if stuck.total_stuck_tickets > 0:
                stuck_rows = [
                    [
                        f"STUCK TICKETS ANALYSIS ({stuck.total_stuck_tickets} tickets - "
                        f"{_pct(stuck.stuck_percentage)} of total)"
                    ],
                    ["Issue", "Count", "% of Stuck", "Visual"],
                    *[
                        [row.issue, row.count, _pct(row.percentage), visual_bar(row.percentage, 40)]
                        for row in stuck.top_issues
                    ],
                ]
                pd.DataFrame(stuck_rows).to_excel(
                    writer,
                    sheet_name=safe_sheet_name("Stuck Tickets", used_names),
                    index=False,
                    header=False,
                )

    return output_path


def generate_filename(
    analysis_type: str, include_comparison: bool = False, today: date | None = None
) -> str:
    """e.g. QC_Ticket_Analysis_Overall_Analysis_WoW_2026-01-05.xlsx"""
    type_name = re.sub(r"\s+", "_", ANALYSIS_CONFIGS[analysis_type].name)
    suffix = "_WoW" if include_comparison else ""
    return f"QC_Ticket_Analysis_{type_name}{suffix}_{(today or date.today()).isoformat()}.xlsx"
