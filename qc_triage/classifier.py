"""Rule-based ticket classification.

Tickets are matched against an ordered list of rules; the first rule that
fires decides the label. Two checks run before the cascade and pre-empt it:
semicolon-separated label lists in the ticket name, and a ticket name that
is exactly a known label.

Rules see the lower-cased ticket name and the lower-cased
``name + " " + description`` text. Matching is plain substring search.
"""
from collections.abc import Callable
from dataclasses import dataclass

from .issues import DEFAULT_CATALOG, UNCATEGORIZED, IssueCatalog


def _has(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)


@dataclass(frozen=True)
class Rule:
    """One step of the cascade.

    ``label`` is either a fixed label or a refiner called with
    ``(text, name)`` that picks between related labels.
    """
    group: str
    predicate: Callable[[str, str], bool]
    label: str | Callable[[str, str], str]

    def apply(self, text: str, name: str) -> str | None:
        if not self.predicate(text, name):
            return None
        if callable(self.label):
            return self.label(text, name)
        return self.label


def _close_up_from_name(text: str, name: str) -> str:
    if "framing" in text:
        return "Bad close up sequence - bad framing"
    if _has(text, "repetitive", "repetition"):
        return "Bad close up sequence - repetitive edits"
    return "Bad close up sequence"


def _close_up_from_text(text: str, name: str) -> str:
    if "framing" in text:
        return "Bad close up sequence - bad framing"
    if "repetitive" in text:
        return "Bad close up sequence - repetitive edits"
    return "Bad close up sequence"


def _action_shot(text: str, name: str) -> str:
    if _has(text, "color", "cc "):
        return "Color correction - Action shot"
    return "Action video edit"


def _dimension(text: str, name: str) -> str:
    if _has(text, "illogical", "wrong", "incorrect"):
        return "Incorrect dimension values"
    if _has(text, "mixed", "multiple format"):
        return "Dimensions - mixed values"
    if _has(text, "missing", "no dimension"):
        return "Missing dimension values"
    if "mismatch" in text and "product name" in text:
        return "Dimensions/product name mismatch"
    if _has(text, "alignment", "position"):
        return "Dimensions alignment"
    if "set shot" in text:
        return "Dimensions using a set shot"
    return "Incorrect dimension values"


RULES = [
    # Visual / background, ahead of everything else in the cascade
    Rule(
        "visual",
        lambda t, n: _has(t, "white obstruction", "white blur", "bbox", "bounding box"),
        "BBOX issue",
    ),
    Rule(
        "visual",
        lambda t, n: _has(
            t, "plate is visible", "visible plate", "visible stage",
            "equipment visible", "stage visible",
        ),
        "Visible stage / equipment",
    ),
    Rule(
        "visual",
        lambda t, n: _has(
            t, "glitchy background", "masking issue", "visual glitch", "glitch",
            "masking background", "distortion",
        ) or ("distorted" in t and "spin" in t),
        "Visual glitches",
    ),
    Rule(
        "visual",
        lambda t, n: ("blend" in t and "background" in t) or _has(
            t, "barely visible", "hard to see", "white product issue",
            "product blends with background",
        ),
        "Color correction - white product",
    ),
    Rule(
        "visual",
        lambda t, n: _has(t, "grading", "too dark", "too bright", "exposure", "cc needed"),
        "Color correction - other",
    ),
    # Label
    Rule(
        "label",
        lambda t, n: "label" in t and _has(t, "crop", "zoom", "framing", "not fully visible"),
        "Bad label - framing",
    ),
    Rule(
        "label",
        lambda t, n: "label" in t and _has(
            t, "angle", "position", "orientation", "set up", "setup",
        ),
        "Bad label - set up",
    ),
    Rule(
        "label",
        lambda t, n: _has(n, "label issue", "label video issue"),
        "Bad label artifact",
    ),
    # Close-up sequence
    Rule(
        "close_up",
        lambda t, n: _has(n, "cu sequence issue", "close up sequence"),
        _close_up_from_name,
    ),
    Rule(
        "close_up",
        lambda t, n: _has(t, "close up", "close-up", "cu "),
        _close_up_from_text,
    ),
    # Copy / text
    Rule(
        "copy",
        lambda t, n: ("repetitive" in t and "copy" in t)
        or _has(n, "repetitive copies", "repetitive copy"),
        "Repetitive copy",
    ),
    Rule(
        "copy",
        lambda t, n: _has(
            t, "lowercase", "uppercase", "capital", "symbols in text",
            "grammar error", "illogical text",
        ) or _has(n, "text issue", "bad copies", "bad copy"),
        "Bad copy",
    ),
    # Action video
    Rule(
        "action",
        lambda t, n: _has(n, "action video issue", "see in action") or _has(
            t, "editing issue", "first shot is unnecessary", "illogical demonstration",
        ),
        "Action video edit",
    ),
    Rule(
        "action",
        lambda t, n: "action" in t and "framing" in t,
        "Action video framing",
    ),
    Rule(
        "action",
        lambda t, n: _has(t, "action video", "action shot"),
        _action_shot,
    ),
    # Unbox
    Rule("unbox", lambda t, n: "unbox" in n or "unbox" in t, "Bad unbox artifact"),
    # Other specific issues
    Rule(
        "other",
        lambda t, n: _has(t, "date code", "lot number", "lot code"),
        "Date code/LOT number shown",
    ),
    Rule("other", lambda t, n: "black frame" in t, "Black frames in video"),
    Rule(
        "other",
        lambda t, n: _has(t, "blurry", "out of focus", "blur"),
        "Blurry/out of focus video",
    ),
    Rule(
        "other",
        lambda t, n: _has(t, "dirty plate", "dirty background", "dirty floor"),
        "Damage/dirty plate",
    ),
    Rule(
        "other",
        lambda t, n: _has(t, "damaged product", "product is damaged", "bent", "scratched"),
        "Damaged product",
    ),
    Rule("other", lambda t, n: _has(t, "reflection", "glare"), "Reflections on product"),
    Rule(
        "other",
        lambda t, n: _has(t, "missing set", "multi-pack issue") or "missing items" in n,
        "Missing set in intro/360",
    ),
    Rule(
        "other",
        lambda t, n: _has(t, "off center", "off axis", "not centered"),
        "Off centered / Off axis",
    ),
    Rule(
        "other",
        lambda t, n: "feature crop" in t or ("feature" in t and "cut off" in t),
        "Feature crop",
    ),
    Rule(
        "other",
        lambda t, n: "video content does not align with feature" in t
        or ("feature" in t and "not matching" in t),
        "Feature not matching copy",
    ),
    Rule("other", lambda t, n: "duplicate feature text" in n, "Repetitive features"),
    Rule("other", lambda t, n: "inconsistent color" in t, "Inconsistent color"),
    Rule(
        "other",
        lambda t, n: "transparent" in t and "color" in t,
        "Color correction - transparent product",
    ),
    Rule(
        "other",
        lambda t, n: _has(t, "missing navigation", "navigation item"),
        "Missing navigation item",
    ),
    Rule(
        "other",
        lambda t, n: "pdp mismatch" in t or ("pdp" in t and "differ" in t),
        "PDP mismatch",
    ),
    Rule("other", lambda t, n: _has(t, "ui obstruction", "ui element"), "UI obstruction"),
    Rule(
        "other",
        lambda t, n: _has(t, "360 loop", "seamless") or ("360" in t and "jump" in t),
        "Un-seamless 360 loop",
    ),
    # Dimension keywords often co-occur with visual defects, so these go last
    Rule("dimension", lambda t, n: _has(t, "dimension", "measurement"), _dimension),
]


class Classifier:
    """Assigns issue labels to tickets using a catalog snapshot and a rule list."""

    def __init__(self, catalog: IssueCatalog = DEFAULT_CATALOG, rules: list[Rule] | None = None):
        self.catalog = catalog
        self.rules = RULES if rules is None else rules
        self._by_lower = {label.lower(): label for label in catalog.labels}

    def exact_match(self, ticket_name: str) -> str | None:
        """Return the label a ticket name spells out exactly, ignoring case."""
        return self._by_lower.get(ticket_name.strip().lower())

    def split_labels(self, ticket_name: str) -> list[str]:
        """Labels from a semicolon-separated ticket name.

        A label repeated in the name is kept once.
        """
        if ";" not in ticket_name:
            return []
        labels = []
        for part in ticket_name.split(";"):
            label = self.exact_match(part)
            if label and label not in labels:
                labels.append(label)
        return labels

    def classify(self, name: str | None, description: str | None = "") -> list[str]:
        name = name or ""
        description = description or ""

        labels = self.split_labels(name)
        if labels:
            return labels

        exact = self.exact_match(name)
        if exact:
            return [exact]

        text = f"{name} {description}".lower()
        lowered_name = name.lower()
        for rule in self.rules:
            label = rule.apply(text, lowered_name)
            if label:
                return [label]

        return [UNCATEGORIZED]


_default_classifier = Classifier()


def categorize_ticket(name: str | None, description: str | None = "") -> list[str]:
    """Classify with the built-in taxonomy."""
    return _default_classifier.classify(name, description)
