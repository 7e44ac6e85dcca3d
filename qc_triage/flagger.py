"""Pick unresolved tickets for manual QC review."""
from .issues import FLAGGABLE_ISSUES
from .models import CategorizedTicket, FlaggedExperience, FlaggedGroup

RESOLVED_STATUSES = ("done", "resolved")


def find_experiences_to_flag(
    categorized: list[CategorizedTicket],
    max_per_issue: int = 3,
) -> dict[str, list[FlaggedExperience]]:
    """Select up to ``max_per_issue`` open tickets per flaggable issue.

    Tickets without an instance ID or with a done/resolved status are
    skipped. An instance is flagged at most once across all issues; the
    first eligible ticket in input order wins.
    """
    flagged: dict[str, list[FlaggedExperience]] = {issue: [] for issue in FLAGGABLE_ISSUES}
    seen_instances: set[str] = set()

    for ticket in categorized:
        instance_id = ticket.instance_id.strip()
        if not instance_id or instance_id in seen_instances:
            continue
        if ticket.status.strip().lower() in RESOLVED_STATUSES:
            continue

        for issue in ticket.issues:
            if issue not in flagged or len(flagged[issue]) >= max_per_issue:
                continue
            flagged[issue].append(FlaggedExperience(
                instance_id=instance_id,
                issue=issue,
                experience_name=ticket.experience_name,
                ticket_name=ticket.name,
                ticket_status=ticket.status,
                ticket_description=ticket.description,
                backstage_link=ticket.backstage_page,
            ))
            seen_instances.add(instance_id)
            break

    return flagged


def get_flagged_groups(flagged: dict[str, list[FlaggedExperience]]) -> list[FlaggedGroup]:
    """Non-empty groups in flaggable-issue order."""
    return [
        FlaggedGroup(issue=issue, experiences=flagged[issue])
        for issue in FLAGGABLE_ISSUES
        if flagged.get(issue)
    ]


def get_total_flagged_count(flagged: dict[str, list[FlaggedExperience]]) -> int:
    return sum(len(experiences) for experiences in flagged.values())
