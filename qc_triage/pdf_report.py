"""PDF dashboard rendering of analysis results."""
from datetime import date, datetime
from pathlib import Path

from reportlab.graphics.charts.barcharts import HorizontalBarChart
from reportlab.graphics.charts.piecharts import Pie
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from .aggregator import analyze_stuck_tickets
from .models import AnalysisConfig, AnalysisResult, CategorizedTicket

PRIMARY = colors.HexColor('#1F4E78')
SECONDARY = colors.HexColor('#2E75B6')
LIGHT = colors.HexColor('#F8F9FA')
GRID = colors.HexColor('#CCCCCC')
UP = colors.HexColor('#C00000')
DOWN = colors.HexColor('#00B050')

CHART_COLORS = [
    colors.HexColor(c) for c in (
        '#2E75B6', '#C00000', '#00B050', '#FFC000', '#7030A0',
        '#ED7D31', '#5B9BD5', '#A5A5A5', '#264478', '#9E480E',
    )
]

_styles = getSampleStyleSheet()
TITLE_STYLE = ParagraphStyle(
    'DashboardTitle', parent=_styles['Heading1'], fontSize=16, alignment=TA_CENTER,
    textColor=PRIMARY, spaceAfter=2,
)
SUBTITLE_STYLE = ParagraphStyle(
    'DashboardSubtitle', parent=_styles['Normal'], fontSize=9, alignment=TA_CENTER,
    textColor=colors.HexColor('#666666'),
)
SECTION_STYLE = ParagraphStyle(
    'Section', parent=_styles['Heading3'], fontSize=11, textColor=PRIMARY,
    spaceBefore=6, spaceAfter=4,
)
FOOTER_STYLE = ParagraphStyle(
    'Footer', parent=_styles['Normal'], fontSize=7, alignment=TA_CENTER,
    textColor=colors.HexColor('#999999'),
)

HEADER_ROW_STYLE = [
    ('BACKGROUND', (0, 0), (-1, 0), SECONDARY),
    ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, -1), 8),
    ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, LIGHT]),
    ('GRID', (0, 0), (-1, -1), 0.5, GRID),
]


def _share(part: int, whole: int) -> float:
    return 100 * part / whole if whole > 0 else 0.0


def metric_cards(result: AnalysisResult, include_comparison: bool) -> list[tuple[str, str, str]]:
    """(label, value, subtext) for the four headline cards."""
    comparison = result.comparison if include_comparison else None
    ticket_note = ""
    if comparison:
        change = comparison.ticket_change
        ticket_note = f"{'+' if change > 0 else ''}{change} vs last week"
    return [
        ("Total Tickets", str(result.total_tickets), ticket_note),
        ("Products Reviewed", str(result.total_products_reviewed), ""),
        (
            "Approved (No Issues)",
            str(result.approved_experiences),
            f"{_share(result.approved_experiences, result.total_products_reviewed):.1f}%",
        ),
        ("Tickets per Product", f"{result.tickets_per_experience:.2f}", ""),
    ]


def category_rows(result: AnalysisResult, include_comparison: bool) -> list[list[str]]:
    """Header plus one row per issue for the category details table."""
    comparison = result.comparison if include_comparison else None
    header = ["Category", "Count", "%", "Dev/Factory", "Issue Type"]
    if comparison:
        header += ["Past", "Change"]
    rows = [header]

    by_issue = {c.issue: c for c in comparison.issue_comparisons} if comparison else {}
    for issue_result in sorted(result.issue_results, key=lambda r: r.count, reverse=True):
        row = [
            issue_result.issue,
            str(issue_result.count),
            f"{issue_result.percentage:.1f}%",
            issue_result.metadata.dev_factory or "-",
            issue_result.metadata.category or "-",
        ]
        if comparison:
            issue_comparison = by_issue.get(issue_result.issue)
            if issue_comparison:
                change = issue_comparison.change
                row += [str(issue_comparison.last_week), f"{'+' if change > 0 else ''}{change}"]
            else:
                row += ["0", "-"]
        rows.append(row)
    return rows


def _cards_table(cards: list[tuple[str, str, str]]) -> Table:
    table = Table(
        [[label for label, _, _ in cards],
         [value for _, value, _ in cards],
         [note for _, _, note in cards]],
        colWidths=[62 * mm] * len(cards),
    )
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, -1), LIGHT),
        ('LINEABOVE', (0, 0), (-1, 0), 3, SECONDARY),
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('FONTSIZE', (0, 0), (-1, 0), 8),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.HexColor('#666666')),
        ('FONTNAME', (0, 1), (-1, 1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 1), (-1, 1), 16),
        ('TEXTCOLOR', (0, 1), (-1, 1), PRIMARY),
        ('FONTSIZE', (0, 2), (-1, 2), 7),
        ('TOPPADDING', (0, 1), (-1, 1), 6),
        ('BOTTOMPADDING', (0, 1), (-1, 1), 6),
    ]))
    return table


def _pie(items: list[tuple[str, int]], width: float = 80 * mm) -> Drawing:
    total = sum(value for _, value in items)
    drawing = Drawing(width, 60 * mm)
    pie = Pie()
    pie.x, pie.y = 10, 40
    pie.width = pie.height = 40 * mm
    pie.data = [value for _, value in items]
    pie.labels = [f"{label}: {value} ({_share(value, total):.1f}%)" for label, value in items]
    pie.sideLabels = True
    pie.slices.fontSize = 7
    pie.slices.strokeColor = colors.white
    for i in range(len(items)):
        pie.slices[i].fillColor = CHART_COLORS[i % len(CHART_COLORS)]
    drawing.add(pie)
    return drawing


def _bar_chart(items: list[tuple[str, int]], width: float = 100 * mm) -> Drawing:
    drawing = Drawing(width, 70 * mm)
    chart = HorizontalBarChart()
    chart.x, chart.y = 95, 10
    chart.width, chart.height = width - 105, 60 * mm
    # Largest bar on top
    chart.data = [[value for _, value in reversed(items)]]
    chart.categoryAxis.categoryNames = [
        label if len(label) <= 25 else label[:22] + "..." for label, _ in reversed(items)
    ]
    chart.categoryAxis.labels.fontSize = 7
    chart.valueAxis.labels.fontSize = 7
    chart.valueAxis.valueMin = 0
    chart.bars[0].fillColor = SECONDARY
    drawing.add(chart)
    return drawing


def _charts_row(result: AnalysisResult, config: AnalysisConfig) -> Table | None:
    titles, charts = [], []

    if config.include_dev_factory and result.dev_count + result.factory_count > 0:
        titles.append(Paragraph("DEV vs FACTORY", SECTION_STYLE))
        charts.append(_pie([
            (label, count)
            for label, count in (("DEV", result.dev_count), ("FACTORY", result.factory_count))
            if count > 0
        ]))

    breakdown = sorted(
        ((category, count) for category, count in result.category_breakdown.items() if count > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    if config.include_category and breakdown:
        titles.append(Paragraph("ISSUE TYPE BREAKDOWN", SECTION_STYLE))
        charts.append(_pie(breakdown))

    top_issues = [
        (r.issue, r.count)
        for r in sorted(result.issue_results, key=lambda r: r.count, reverse=True)[:10]
        if r.count > 0
    ]
    if top_issues:
        titles.append(Paragraph("TOP 10 CATEGORIES", SECTION_STYLE))
        charts.append(_bar_chart(top_issues))

    if not charts:
        return None
    row = Table([titles, charts], colWidths=[chart.width for chart in charts])
    row.setStyle(TableStyle([('VALIGN', (0, 0), (-1, -1), 'TOP')]))
    return row


def _stuck_section(categorized: list[CategorizedTicket]) -> list:
    stuck = analyze_stuck_tickets(categorized, 5)
    if stuck.total_stuck_tickets == 0:
        return []

    rows = [["Category", "Count", "% of Stuck"]]
    rows += [
        [row.issue, str(row.count), f"{row.percentage:.1f}%"] for row in stuck.top_issues
    ]
    table = Table(rows, colWidths=[100 * mm, 25 * mm, 30 * mm], repeatRows=1)
    table.setStyle(TableStyle(HEADER_ROW_STYLE))
    return [
        Paragraph(
            f"STUCK TICKETS ANALYSIS ({stuck.total_stuck_tickets} tickets - "
            f"{stuck.stuck_percentage:.1f}% of total)",
            SECTION_STYLE,
        ),
        table,
    ]


def build_story(
    result: AnalysisResult,
    config: AnalysisConfig,
    categorized: list[CategorizedTicket],
    include_comparison: bool = False,
    include_stuck_tickets: bool = False,
    report_date: date | None = None,
) -> list:
    """Flowables for the two-part dashboard: overview page, then details."""
    report_date = report_date or date.today()
    show_comparison = include_comparison and result.comparison is not None

    story = [
        Paragraph(f"QC Ticket Analysis Dashboard - {config.name}", TITLE_STYLE),
        Paragraph(f"{report_date:%B} {report_date.day}, {report_date.year}", SUBTITLE_STYLE),
        Spacer(1, 4 * mm),
        Paragraph("KEY METRICS", SECTION_STYLE),
        _cards_table(metric_cards(result, show_comparison)),
        Spacer(1, 4 * mm),
    ]
    charts = _charts_row(result, config)
    if charts is not None:
        story.append(charts)

    story.append(PageBreak())
    story.append(Paragraph("Category Breakdown Details", TITLE_STYLE))
    story.append(Paragraph("ALL CATEGORIES", SECTION_STYLE))
    rows = category_rows(result, show_comparison)
    widths = [75, 22, 22, 30, 35, 22, 25] if show_comparison else [85, 25, 25, 35, 40]
    table = Table(rows, colWidths=[w * mm for w in widths], repeatRows=1)
    style = list(HEADER_ROW_STYLE)
    if show_comparison:
        for i, row in enumerate(rows[1:], start=1):
            if row[-1].startswith("+"):
                style.append(('TEXTCOLOR', (-1, i), (-1, i), UP))
            elif row[-1].startswith("-") and row[-1] != "-":
                style.append(('TEXTCOLOR', (-1, i), (-1, i), DOWN))
    table.setStyle(TableStyle(style))
    story.append(table)

    if include_stuck_tickets:
        story.extend(_stuck_section(categorized))

    story.append(Spacer(1, 6 * mm))
    story.append(Paragraph(
        f"Generated on {datetime.now():%Y-%m-%d %H:%M}", FOOTER_STYLE
    ))
    return story


def export_to_pdf(
    result: AnalysisResult,
    config: AnalysisConfig,
    categorized: list[CategorizedTicket],
    output_path: Path,
    include_comparison: bool = False,
    include_stuck_tickets: bool = False,
    report_date: date | None = None,
) -> Path:
    """Write a landscape A4 dashboard PDF."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=landscape(A4),
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=f"QC Ticket Analysis Dashboard - {config.name}",
    )
    doc.build(build_story(
        result, config, categorized, include_comparison, include_stuck_tickets, report_date
    ))
    return output_path
