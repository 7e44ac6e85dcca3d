"""QC ticket triage pipeline: load, categorize, aggregate, report, flag."""
import argparse
import logging
from datetime import date
from pathlib import Path

import pandas as pd

from .aggregator import aggregate, build_period_rollup
from .classifier import Classifier
from .config import Settings, load_settings
from .csv_loader import load_mappings, load_tickets
from .flagger import find_experiences_to_flag, get_flagged_groups, get_total_flagged_count
from .issues import ANALYSIS_CONFIGS, IssueCatalog, get_analysis_config
from .models import AnalysisResult, PeriodRollup
from .notifier import SlackNotifier
from .pdf_report import export_to_pdf
from .processor import process_tickets
from .report import export_to_excel, generate_filename, report_to_markdown
from .storage import FlaggedStore, IssueConfigStore

logger = logging.getLogger(__name__)


def load_prior_period(
    past_tickets_csv: Path,
    past_mappings_csv: Path | None,
    catalog: IssueCatalog,
) -> PeriodRollup | None:
    """Roll up the previous period, or None if its files cannot be read."""
    try:
        past_tickets = load_tickets(past_tickets_csv)
        past_mappings = load_mappings(past_mappings_csv) if past_mappings_csv else None
    except (OSError, ValueError, pd.errors.ParserError) as e:
        logger.warning("Failed to load past data, continuing without comparison: %s", e)
        return None

    categorized = process_tickets(past_tickets, past_mappings, Classifier(catalog))
    return build_period_rollup(categorized, past_mappings, catalog)


def run_pipeline(
    tickets_csv: Path,
    mappings_csv: Path | None = None,
    past_tickets_csv: Path | None = None,
    past_mappings_csv: Path | None = None,
    analysis_types: list[str] | None = None,
    custom_issues: list[str] | None = None,
    output_dir: Path | None = None,
    flag: bool = False,
    notify: bool = False,
    stuck_tickets: bool = False,
    pdf: bool = False,
    settings: Settings | None = None,
    today: date | None = None,
) -> dict[str, AnalysisResult]:
    """Run every requested analysis and write its reports."""
    settings = settings or load_settings()
    today = today or date.today()
    analysis_types = analysis_types or ["overall"]
    output_dir = Path(output_dir) if output_dir else settings.data_dir / "reports"

    print("=== QC Ticket Triage ===\n")

    if not Path(tickets_csv).exists():
        raise ValueError(f"{tickets_csv} not found")

    # Resolve presets up front so a bad custom selection fails before any work
    configs = [get_analysis_config(t, custom_issues) for t in analysis_types]

    config_store = IssueConfigStore(settings.data_dir / "config")
    catalog = IssueCatalog.from_config(config_store.read())

    print(f"Loading tickets from {tickets_csv}...")
    tickets = load_tickets(tickets_csv)
    mappings = load_mappings(mappings_csv) if mappings_csv else None
    print(f"Loaded {len(tickets)} tickets"
          + (f" and {len(mappings)} experience mappings" if mappings is not None else "") + "\n")

    prior = None
    if past_tickets_csv:
        print(f"Loading past period from {past_tickets_csv}...")
        prior = load_prior_period(past_tickets_csv, past_mappings_csv, catalog)
    has_comparison = prior is not None and prior.total_tickets > 0

    print("Categorizing tickets...")
    categorized = process_tickets(tickets, mappings, Classifier(catalog))

    results = {}
    for config in configs:
        result = aggregate(categorized, config, mappings=mappings, prior=prior, catalog=catalog)
        results[config.type] = result

        excel_file = export_to_excel(
            result,
            config,
            categorized,
            output_dir / generate_filename(config.type, has_comparison, today),
            include_comparison=has_comparison,
            include_stuck_tickets=stuck_tickets,
            catalog=catalog,
            report_date=today,
        )
        md_file = excel_file.with_suffix(".md")
        md_file.write_text(report_to_markdown(result, config), encoding="utf-8")
        saved = [excel_file.name, md_file.name]

        if pdf:
            pdf_file = export_to_pdf(
                result,
                config,
                categorized,
                excel_file.with_suffix(".pdf"),
                include_comparison=has_comparison,
                include_stuck_tickets=stuck_tickets,
                report_date=today,
            )
            saved.append(pdf_file.name)

        print(f"✓ {config.name}: {result.total_tickets} tickets, "
              f"{result.success_rate}% categorized")
        print(f"  Saved {', '.join(saved)}")

    if flag:
        flagged = find_experiences_to_flag(categorized, settings.max_flags_per_issue)
        groups = get_flagged_groups(flagged)
        store = FlaggedStore(settings.data_dir / "flagged", settings.flag_retention_days)
        if store.save(today, groups, today=today):
            print(f"\n✓ Flagged {get_total_flagged_count(flagged)} experiences "
                  f"for {today.isoformat()}")
        else:
            print(f"\n✗ Could not save flagged experiences for {today.isoformat()}")

        if notify and groups:
            notifier = SlackNotifier(settings.slack_webhook_url, settings.base_url)
            if notifier.notify(groups, today):
                print("✓ Slack notification sent")

    return results


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Categorize and report on QC tickets.")
    parser.add_argument("tickets", type=Path, help="HS export CSV")
    parser.add_argument("--mappings", type=Path, help="QC App export CSV")
    parser.add_argument("--past-tickets", type=Path, help="Previous period HS export CSV")
    parser.add_argument("--past-mappings", type=Path, help="Previous period QC App export CSV")
    parser.add_argument(
        "--type",
        dest="analysis_types",
        action="append",
        choices=sorted(ANALYSIS_CONFIGS),
        help="Analysis preset; repeat for several (default: overall)",
    )
    parser.add_argument("--issues", nargs="+", help="Issues for a custom analysis")
    parser.add_argument("--output-dir", type=Path)
    parser.add_argument("--flag", action="store_true", help="Store flagged experiences for today")
    parser.add_argument("--notify", action="store_true", help="Post flagged summary to Slack")
    parser.add_argument("--stuck", action="store_true", help="Add a stuck tickets analysis")
    parser.add_argument("--pdf", action="store_true", help="Also write a PDF dashboard")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        run_pipeline(
            args.tickets,
            mappings_csv=args.mappings,
            past_tickets_csv=args.past_tickets,
            past_mappings_csv=args.past_mappings,
            analysis_types=args.analysis_types,
            custom_issues=args.issues,
            output_dir=args.output_dir,
            flag=args.flag,
            notify=args.notify,
            stuck_tickets=args.stuck,
            pdf=args.pdf,
        )
    except ValueError as e:
        parser.exit(1, f"Error: {e}\n")


if __name__ == "__main__":
    main()
