"""Data models for tickets, issue metadata and analysis results."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


DevFactory = Literal["DEV", "FACTORY", ""]
IssueCategory = Literal[
    "COPY", "COLOR", "CAPTURE", "ARTIFACT", "TAGGING", "BBOX", "DIMS", "BLUEPRINT", ""
]
Trend = Literal["up", "down", "same"]
AnalysisType = Literal["overall", "dimensions", "factory", "label", "custom"]


class Ticket(BaseModel):
    """One row of the HS export."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    ticket_id: str = Field("", alias="Ticket ID")
    name: str = Field("", alias="Ticket name")
    description: str = Field("", alias="Ticket description")
    experience_name: str = Field("", alias="Experience name")
    experience_id: str = Field("", alias="Experience ID")
    instance_id: str = Field("", alias="Instance ID")
    status: str = Field("", alias="Ticket status")
    assignee: str = Field("", alias="Assignee")
    associated_experience: str = Field("", alias="Associated Experience")
    backstage_page: str = Field("", alias="Backstage Experience page")

    @property
    def experience_key(self) -> str:
        return self.experience_id or self.associated_experience or self.experience_name


class ExperienceMapping(BaseModel):
    """One row of the QC App export."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    product_name: str = Field("", alias="ProductName")
    experience_id: str = Field("", alias="ExperienceId")
    assignee: str = Field("", alias="Assignee")
    product_type: str = Field("", alias="ProductType")
    template_name: str = Field("", alias="TemplateName")
    total_tickets: str = Field("", alias="TotalTickets")

    @property
    def is_approved(self) -> bool:
        """An experience with zero tickets passed QC with no issues."""
        value = self.total_tickets.strip()
        if not value:
            return True
        try:
            return float(value) == 0
        except ValueError:
            return True


class IssueMetadata(BaseModel):
    """Classification tags attached to an issue label."""
    model_config = ConfigDict(frozen=True)

    dev_factory: DevFactory = ""
    category: IssueCategory = ""
    comment: str = ""


class CategorizedTicket(Ticket):
    """Ticket with its issue labels and fields joined from the mapping table."""
    issues: list[str] = Field(min_length=1)
    reviewer: str = ""
    product_type: str = ""
    template_name: str = ""
    public_preview_link: str = ""
    experience_id_from_url: str = ""

    @property
    def issue(self) -> str:
        return self.issues[0]


class IssueResult(BaseModel):
    """Tickets grouped under one issue."""
    issue: str
    tickets: list[CategorizedTicket]
    count: int
    percentage: float
    metadata: IssueMetadata


class IssueComparison(BaseModel):
    """One issue (or rollup row) compared against the prior period."""
    issue: str
    this_week: int
    last_week: int
    change: int
    change_percent: float
    trend: Trend


class PeriodRollup(BaseModel):
    """Prior-period numbers a comparison is computed against."""
    total_tickets: int
    approved_experiences: int = 0
    products_reviewed: int = 0
    issue_counts: dict[str, int] = {}
    dev_count: int = 0
    factory_count: int = 0
    category_breakdown: dict[str, int] = {}


class Comparison(BaseModel):
    """Week-over-week comparison block."""
    last_week_total_tickets: int
    last_week_approved_experiences: int
    last_week_products_reviewed: int
    ticket_change: int
    ticket_change_percent: float
    issue_comparisons: list[IssueComparison]
    dev_count_last_week: int
    factory_count_last_week: int
    category_breakdown_last_week: dict[str, int]
    dev_factory_comparisons: list[IssueComparison]
    category_comparisons: list[IssueComparison]


class AnalysisResult(BaseModel):
    """Aggregate statistics for one analysis run."""
    total_tickets: int
    total_products_reviewed: int
    approved_experiences: int
    products_with_tickets: int
    tickets_per_experience: float
    categorized_count: int
    uncategorized_count: int
    success_rate: float
    issue_results: list[IssueResult]
    dev_count: int
    factory_count: int
    category_breakdown: dict[str, int]
    comparison: Comparison | None = None


class AnalysisConfig(BaseModel):
    """Preset describing which issues an analysis covers."""
    type: AnalysisType
    name: str
    description: str
    issues: list[str]
    include_dev_factory: bool
    include_category: bool
    include_top_products: bool = True


class ProductTypeSummary(BaseModel):
    product_type: str
    count: int
    percentage: float
    most_common_issue: str


class StuckIssueCount(BaseModel):
    issue: str
    count: int
    percentage: float


class StuckTicketAnalysis(BaseModel):
    """Breakdown of tickets whose status is "stuck"."""
    total_stuck_tickets: int
    stuck_percentage: float
    top_issues: list[StuckIssueCount]


class FlaggedExperience(BaseModel):
    """Experience selected for manual QC review."""
    instance_id: str
    issue: str
    experience_name: str = ""
    ticket_name: str = ""
    ticket_status: str = ""
    ticket_description: str = ""
    backstage_link: str = ""


class FlaggedGroup(BaseModel):
    issue: str
    experiences: list[FlaggedExperience]


class StoredIssue(BaseModel):
    """Editable issue definition in the stored configuration."""
    name: str
    dev_factory: DevFactory = ""
    category: IssueCategory = ""
    is_custom: bool = False
    comment: str = ""


class IssueConfig(BaseModel):
    """Stored issue configuration document."""
    issues: list[StoredIssue]
    last_updated: datetime
