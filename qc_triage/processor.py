"""Join tickets with the experience mapping table and classify them."""
import re

from .classifier import Classifier
from .models import CategorizedTicket, ExperienceMapping, Ticket

EXPERIENCE_ID_PATTERN = re.compile(r"/experiences/(\d+)")
PUBLIC_PREVIEW_URL = "https://app.eko.com/public/experiences/{experience_id}"


def extract_experience_id(url: str | None) -> str:
    """Pull the numeric experience ID out of a backstage page URL.

    e.g. https://backstage.eko.com/experiences/45493255314 -> "45493255314"
    """
    if not url:
        return ""
    match = EXPERIENCE_ID_PATTERN.search(url)
    return match.group(1) if match else ""


def index_mappings(mappings: list[ExperienceMapping] | None) -> dict[str, ExperienceMapping]:
    """Map table keyed by trimmed experience ID; later rows win."""
    by_id = {}
    for mapping in mappings or []:
        experience_id = mapping.experience_id.strip()
        if experience_id:
            by_id[experience_id] = mapping
    return by_id


def process_tickets(
    tickets: list[Ticket],
    mappings: list[ExperienceMapping] | None = None,
    classifier: Classifier | None = None,
) -> list[CategorizedTicket]:
    """Categorize every ticket, keeping input order.

    Multi-label tickets stay one record with all labels in ``issues``.
    """
    classifier = classifier or Classifier()
    mapping_by_id = index_mappings(mappings)

    results = []
    for ticket in tickets:
        issues = classifier.classify(ticket.name, ticket.description)
        experience_id = extract_experience_id(ticket.backstage_page)
        mapping = mapping_by_id.get(experience_id) if experience_id else None

        results.append(CategorizedTicket(
            **ticket.model_dump(),
            issues=issues,
            reviewer=mapping.assignee if mapping else "",
            product_type=mapping.product_type if mapping else "",
            template_name=mapping.template_name if mapping else "",
            public_preview_link=(
                PUBLIC_PREVIEW_URL.format(experience_id=experience_id) if experience_id else ""
            ),
            experience_id_from_url=experience_id,
        ))

    return results
