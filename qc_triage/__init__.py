"""QC ticket triage: rule-based categorization and reporting of QC tickets."""
from .aggregator import aggregate, build_period_rollup, run_analysis
from .classifier import Classifier, categorize_ticket
from .flagger import find_experiences_to_flag
from .issues import ALL_ISSUES, FLAGGABLE_ISSUES, UNCATEGORIZED, IssueCatalog, get_analysis_config
from .models import AnalysisResult, CategorizedTicket, ExperienceMapping, Ticket
from .processor import process_tickets

__all__ = [
    "ALL_ISSUES",
    "FLAGGABLE_ISSUES",
    "UNCATEGORIZED",
    "AnalysisResult",
    "CategorizedTicket",
    "Classifier",
    "ExperienceMapping",
    "IssueCatalog",
    "Ticket",
    "aggregate",
    "build_period_rollup",
    "categorize_ticket",
    "find_experiences_to_flag",
    "get_analysis_config",
    "process_tickets",
    "run_analysis",
]
