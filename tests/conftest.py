import pytest

from qc_triage.models import ExperienceMapping, Ticket
from qc_triage.processor import process_tickets


@pytest.fixture
def make_ticket():
    counter = iter(range(1, 10_000))

    def _make(name="", description="", **fields):
        fields.setdefault("ticket_id", f"T-{next(counter)}")
        return Ticket(name=name, description=description, **fields)

    return _make


@pytest.fixture
def categorize(make_ticket):
    """Build categorized tickets from (name, description) pairs or names."""

    def _categorize(*specs, mappings=None):
        tickets = []
        for spec in specs:
            if isinstance(spec, Ticket):
                tickets.append(spec)
            elif isinstance(spec, tuple):
                tickets.append(make_ticket(*spec))
            else:
                tickets.append(make_ticket(spec))
        return process_tickets(tickets, mappings)

    return _categorize


@pytest.fixture
def make_mapping():
    def _make(experience_id="", total_tickets="", **fields):
        return ExperienceMapping(
            experience_id=experience_id, total_tickets=total_tickets, **fields
        )

    return _make
