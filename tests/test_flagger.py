from qc_triage.flagger import (
    find_experiences_to_flag,
    get_flagged_groups,
    get_total_flagged_count,
)
from qc_triage.issues import FLAGGABLE_ISSUES


def test_same_instance_is_flagged_once(make_ticket, categorize):
    tickets = [make_ticket("Damaged product", instance_id="inst-1", status="Open") for _ in range(5)]

    flagged = find_experiences_to_flag(categorize(*tickets))

    assert len(flagged["Damaged product"]) == 1
    assert flagged["Damaged product"][0].instance_id == "inst-1"


def test_flags_are_capped_per_issue_in_input_order(make_ticket, categorize):
    tickets = [
        make_ticket("Damaged product", instance_id=f"inst-{i}", status="In progress")
        for i in range(5)
    ]

    flagged = find_experiences_to_flag(categorize(*tickets))

    assert [f.instance_id for f in flagged["Damaged product"]] == ["inst-0", "inst-1", "inst-2"]
    assert len(find_experiences_to_flag(categorize(*tickets), max_per_issue=4)["Damaged product"]) == 4


def test_resolved_unidentified_and_unflaggable_tickets_are_skipped(make_ticket, categorize):
    tickets = [
        make_ticket("Damaged product", instance_id="a", status="Done"),
        make_ticket("Damaged product", instance_id="b", status=" RESOLVED "),
        make_ticket("Damaged product", instance_id="  ", status="Open"),
        make_ticket("BBOX issue", instance_id="c", status="Open"),
        make_ticket("Damaged product", instance_id=" d ", status="Stuck"),
    ]

    flagged = find_experiences_to_flag(categorize(*tickets))

    assert [f.instance_id for f in flagged["Damaged product"]] == ["d"]
    assert get_total_flagged_count(flagged) == 1


def test_instance_is_not_reconsidered_for_another_issue(make_ticket, categorize):
    tickets = [
        make_ticket("Damaged product", instance_id="a", status="Open"),
        make_ticket("Blurry/out of focus video", instance_id="a", status="Open"),
        make_ticket("Damaged product; Reflections on product", instance_id="b", status="Open"),
    ]

    flagged = find_experiences_to_flag(categorize(*tickets))

    assert [f.instance_id for f in flagged["Damaged product"]] == ["a", "b"]
    assert flagged["Blurry/out of focus video"] == []
    assert flagged["Reflections on product"] == []


def test_flagged_entry_carries_ticket_details(make_ticket, categorize):
    ticket = make_ticket(
        "Glare on lid",
        description="strong glare",
        instance_id="x1",
        status="Open",
        experience_name="Kettle",
        backstage_page="https://backstage.eko.com/experiences/5",
    )

    [entry] = find_experiences_to_flag(categorize(ticket))["Reflections on product"]

    assert entry.issue == "Reflections on product"
    assert entry.experience_name == "Kettle"
    assert entry.ticket_name == "Glare on lid"
    assert entry.ticket_status == "Open"
    assert entry.ticket_description == "strong glare"
    assert entry.backstage_link == "https://backstage.eko.com/experiences/5"


def test_flagged_groups_follow_flaggable_order(make_ticket, categorize):
    tickets = [
        make_ticket("Glare", instance_id="1", status="Open"),
        make_ticket("Lot number visible", instance_id="2", status="Open"),
    ]

    flagged = find_experiences_to_flag(categorize(*tickets))
    groups = get_flagged_groups(flagged)

    assert set(flagged) == set(FLAGGABLE_ISSUES)
    assert [g.issue for g in groups] == ["Date code/LOT number shown", "Reflections on product"]
