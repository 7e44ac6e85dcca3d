"""Issue taxonomy: fixed labels, their metadata, and analysis presets."""
from collections.abc import Mapping

from .models import AnalysisConfig, IssueConfig, IssueMetadata

UNCATEGORIZED = "Uncategorized"

# (label, dev/factory, category)
_ISSUE_TABLE = [
    ("Action video edit", "FACTORY", "TAGGING"),
    ("Action video framing", "FACTORY", "TAGGING"),
    ("BBOX issue", "DEV", "BBOX"),
    ("Bad close up sequence", "FACTORY", "TAGGING"),
    ("Bad close up sequence - bad framing", "FACTORY", "TAGGING"),
    ("Bad close up sequence - repetitive edits", "FACTORY", "TAGGING"),
    ("Bad copy", "DEV", "COPY"),
    ("Bad label - framing", "FACTORY", "TAGGING"),
    ("Bad label - set up", "FACTORY", "CAPTURE"),
    ("Bad label artifact", "DEV", "ARTIFACT"),
    ("Bad unbox artifact", "FACTORY", "CAPTURE"),
    ("Black frames in video", "FACTORY", "CAPTURE"),
    ("Blurry/out of focus video", "FACTORY", "CAPTURE"),
    ("Color correction - Action shot", "DEV", "COLOR"),
    ("Color correction - other", "DEV", "COLOR"),
    ("Color correction - transparent product", "DEV", "COLOR"),
    ("Color correction - white product", "DEV", "COLOR"),
    ("Damage/dirty plate", "FACTORY", "CAPTURE"),
    ("Damaged product", "FACTORY", "CAPTURE"),
    ("Date code/LOT number shown", "FACTORY", "CAPTURE"),
    ("Dimensions alignment", "DEV", "ARTIFACT"),
    ("Dimensions - mixed values", "FACTORY", "DIMS"),
    ("Dimensions using a set shot", "FACTORY", "CAPTURE"),
    ("Dimensions/product name mismatch", "FACTORY", "DIMS"),
    ("Feature crop", "FACTORY", "TAGGING"),
    ("Feature not matching copy", "DEV", "COPY"),
    ("Inconsistent color", "DEV", "COLOR"),
    ("Incorrect dimension values", "FACTORY", "DIMS"),
    ("Missing dimension values", "FACTORY", "DIMS"),
    ("Missing navigation item", "DEV", "BLUEPRINT"),
    ("Missing set in intro/360", "FACTORY", "CAPTURE"),
    ("New issue", "", ""),
    ("Off centered / Off axis", "FACTORY", "CAPTURE"),
    ("PDP mismatch", "", ""),
    ("Reflections on product", "FACTORY", "CAPTURE"),
    ("Repetitive copy", "DEV", "COPY"),
    ("Repetitive features", "DEV", "BLUEPRINT"),
    ("UI obstruction", "DEV", "ARTIFACT"),
    ("Un-seamless 360 loop", "DEV", "ARTIFACT"),
    ("Visible stage / equipment", "DEV", "BBOX"),
    ("Visual glitches", "DEV", "ARTIFACT"),
]

ISSUE_COMMENTS = {
    "Action video edit": "When the action video demonstration has a poor edit or demonstration.",
    "Action video framing": (
        "When the action video demonstration is poorly positioned in frame / main part of "
        "the demonstration is cropped, zoomed in or positioned poorly."
    ),
    "Bad close up sequence - bad framing": "When the crop/zoom in the Close Up Sequence looks bad.",
    "Bad close up sequence - repetitive edits": (
        "When the close ups edits in the Close Up Sequence are too repetitive."
    ),
    "Bad close up sequence": (
        "Any other issue with the Close Up Sequence that doesn't fit to any of the other "
        "2 categories above"
    ),
    "Bad copy": "Any issue with bad capitalization, special characters or illogical copy.",
    "Bad label - framing": (
        "When the Label shot gets too cropped or is too zoomed out and unreadable."
    ),
    "Bad label - set up": (
        "When the label shot has a problematic setup that creates a bad label artifact."
    ),
    "Bad label artifact": (
        "Any issues with label artifact that doesn't fit into any of the 2 categories above."
    ),
    "Bad unbox artifact": (
        "Any issues with unbox artifact, including when the unbox artifact has 2 setup "
        "that are too similar"
    ),
    "BBOX issue": (
        "When there are white obstructions on the product (caused by bad calculation of "
        "the bounding box)."
    ),
    "Black frames in video": "When the video blacks out completely and includes black frames.",
    "Blurry/out of focus video": "When the video is too blurry or out of focus",
    "Color correction - white product": (
        "When the product is white or very bright, and the color comes out bad. It may be "
        "that the product blends into the background, or it has a very milky look."
    ),
    "Color correction - transparent product": (
        "When the product is transparent. May result in product blending into background, "
        "or rainbow colored visual glitches or other glitches."
    ),
    "Color correction - Action shot": (
        "When only the action shot has bad color correction (very dark and saturated, or "
        "very light and milky, or off/tinted colors)."
    ),
    "Color correction - other": (
        "Other types of color correction issues - colorful products, saturated, very dark, etc."
    ),
    "Date code/LOT number shown": (
        "The expiration date or the LOT numbers are visible on the product, either on the "
        "product itself or on the label setup in the label shot."
    ),
    "Inconsistent color": (
        "When different shots in the experience have passable color correction, but it's "
        "not consistent across the experience."
    ),
    "Damage/dirty plate": "When there are distracting dirty/damages on plate",
    "Damaged product": (
        "When there's significant distracting damage to the product or product is dirty."
    ),
    "Dimensions alignment": (
        "When the dimension artifact composition is not well aligned with the product."
    ),
    "Dimensions - mixed values": (
        "To be used when the dimensions seem correct but are swapped between the axes."
    ),
    "Dimensions using a set shot": (
        "When the dimensions artifact is using a set shot or a multipackage"
    ),
    "Dimensions/product name mismatch": (
        "When the dimensions artifact has values that are not matching product name in "
        "more than 1inch difference."
    ),
    "Feature crop": (
        "When the video for a feature is badly cropped, positioned, framed. Too zoomed in "
        "or too zoomed out or out of frame and looks bad."
    ),
    "Feature not matching copy": (
        "When a feature copy mentions a specific element of the product that is not "
        "visible in the feature video."
    ),
    "Incorrect dimension values": (
        "When the dimension artifact has clearly wrong or swapped dimension values."
    ),
    "Missing dimension values": "When dimensions artifact shows 0x0x0",
    "Missing navigation item": (
        "When there's an issue with the structure and a navigation item is missing, like "
        'no "Features" button.'
    ),
    "Missing set in intro/360": (
        "When the item is a set/multipack and it is not showed properly as such in the "
        "intro/360 part."
    ),
    "New issue": (
        "Any issue that doesn't fit into any existing category. Please be as specific as "
        "possible in the description so we can identify and understand the issue."
    ),
    "Off centered / Off axis": "When item is placed off center or off axis.",
    "PDP mismatch": "When the product in video is different than product in PDP",
    "Reflections on product": "When there are significant distracting reflections on the product.",
    "Repetitive copy": "When copy across different features is too repetitive.",
    "Repetitive features": "When the video across different features is too repetitive.",
    "UI obstruction": "When the UI text box obscures important parts of the product.",
    "Un-seamless 360 loop": "When the 360 doesn't loop seamlessly.",
    "Visible stage / equipment": (
        "When studio equipment or the rotating plate is visible. Should open ticket for "
        "visible plate only when it's very bad. Slightly visible is passable"
    ),
    "Visual glitches": "When there are significant visible visual glitches in video",
}

ALL_ISSUES = [name for name, _, _ in _ISSUE_TABLE] + [UNCATEGORIZED]

ISSUE_METADATA = {
    name: IssueMetadata(dev_factory=dev_factory, category=category)
    for name, dev_factory, category in _ISSUE_TABLE
}
ISSUE_METADATA[UNCATEGORIZED] = IssueMetadata()

FLAGGABLE_ISSUES = (
    "Blurry/out of focus video",
    "Damage/dirty plate",
    "Damaged product",
    "Date code/LOT number shown",
    "Off centered / Off axis",
    "Reflections on product",
)

ISSUE_CATEGORIES = ("COPY", "COLOR", "CAPTURE", "ARTIFACT", "TAGGING", "BBOX", "DIMS", "BLUEPRINT")

_EMPTY_METADATA = IssueMetadata()


class IssueCatalog:
    """Immutable snapshot of the issue taxonomy.

    Built-in metadata can be overridden per label by exact name. Override
    names that are not built-in labels become custom labels, matched by the
    classifier and listed in overall analyses.
    """

    def __init__(self, overrides: Mapping[str, IssueMetadata] | None = None):
        self._overrides = dict(overrides or {})
        custom = [name for name in self._overrides if name not in ISSUE_METADATA]
        self._labels = tuple(ALL_ISSUES[:-1] + custom + [UNCATEGORIZED])

    @classmethod
    def from_config(cls, config: IssueConfig) -> "IssueCatalog":
        """Build a catalog from the stored, user-edited issue configuration."""
        return cls({
            issue.name: IssueMetadata(
                dev_factory=issue.dev_factory,
                category=issue.category,
                comment=issue.comment,
            )
            for issue in config.issues
            if issue.name.strip()
        })

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    def get_metadata(self, issue_name: str) -> IssueMetadata:
        if issue_name in self._overrides:
            return self._overrides[issue_name]
        return ISSUE_METADATA.get(issue_name, _EMPTY_METADATA)

    def get_comment(self, issue_name: str) -> str:
        return self.get_metadata(issue_name).comment or ISSUE_COMMENTS.get(issue_name, "")


DEFAULT_CATALOG = IssueCatalog()


ANALYSIS_CONFIGS = {
    "overall": AnalysisConfig(
        type="overall",
        name="Overall Analysis",
        description="Full report with all issues",
        issues=ALL_ISSUES[:-1],
        include_dev_factory=True,
        include_category=True,
        include_top_products=True,
    ),
    "dimensions": AnalysisConfig(
        type="dimensions",
        name="Dimensions Specific Analysis",
        description="Only dimension VALUE issues (3 issues)",
        issues=[
            "Incorrect dimension values",
            "Dimensions - mixed values",
            "Missing dimension values",
        ],
        include_dev_factory=False,
        include_category=False,
        include_top_products=False,
    ),
    "factory": AnalysisConfig(
        type="factory",
        name="Factory Specific Analysis",
        description="Factory/production issues (17 issues)",
        issues=[
            "Action video edit",
            "Action video framing",
            "Bad close up sequence - bad framing",
            "Bad close up sequence - repetitive edits",
            "Bad label - framing",
            "Bad label - set up",
            "Bad unbox artifact",
            "Blurry/out of focus video",
            "Damage/dirty plate",
            "Damaged product",
            "Dimensions using a set shot",
            "Feature crop",
            "Incorrect dimension values",
            "Missing dimension values",
            "Missing set in intro/360",
            "Off centered / Off axis",
            "Reflections on product",
        ],
        include_dev_factory=False,
        include_category=False,
        include_top_products=False,
    ),
    "label": AnalysisConfig(
        type="label",
        name="Label Specific Analysis",
        description="Label issues only (2 issues)",
        issues=["Bad label - framing", "Bad label - set up"],
        include_dev_factory=False,
        include_category=False,
        include_top_products=False,
    ),
    "custom": AnalysisConfig(
        type="custom",
        name="Custom Analysis",
        description="Select specific issues to include",
        issues=[],
        include_dev_factory=True,
        include_category=True,
        include_top_products=True,
    ),
}


def get_analysis_config(analysis_type: str, custom_issues: list[str] | None = None) -> AnalysisConfig:
    """Resolve a preset, filling in the issue list for custom analyses."""
    if analysis_type not in ANALYSIS_CONFIGS:
        raise ValueError(f"Unknown analysis type: {analysis_type}")

    config = ANALYSIS_CONFIGS[analysis_type]
    if analysis_type != "custom":
        return config

    issues = [issue for issue in (custom_issues or []) if issue.strip()]
    if not issues:
        raise ValueError("Please select at least one issue for custom analysis")
    return config.model_copy(update={"issues": issues})
