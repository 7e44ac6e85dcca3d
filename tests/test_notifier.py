from datetime import date

import requests

from qc_triage import notifier
from qc_triage.models import FlaggedExperience, FlaggedGroup
from qc_triage.notifier import SlackNotifier, build_slack_message


def _groups():
    def group(issue, count):
        return FlaggedGroup(
            issue=issue,
            experiences=[FlaggedExperience(instance_id=f"{issue}-{i}", issue=issue) for i in range(count)],
        )

    return [group("Damaged product", 1), group("Reflections on product", 3)]


class _Response:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")


def test_slack_message_lists_top_issues_and_review_link():
    message = build_slack_message(_groups(), date(2026, 3, 5), "https://qc.example.com/")
    blocks = message["blocks"]

    assert "*Date:* Mar 5, 2026" in blocks[1]["text"]["text"]
    assert "*Total Experiences Flagged:* 4" in blocks[1]["text"]["text"]
    assert blocks[3]["text"]["text"] == (
        "*Top Issues:*\n"
        "• *Reflections on product:* 3 experiences\n"
        "• *Damaged product:* 1 experience"
    )
    assert blocks[5]["elements"][0]["url"] == "https://qc.example.com/flagged?date=2026-03-05"


def test_notify_without_webhook_is_skipped(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("should not post")

    monkeypatch.setattr(notifier.requests, "post", fail)
    assert SlackNotifier(None).notify(_groups(), date(2026, 3, 5)) is False


def test_notify_posts_payload(monkeypatch):
    calls = []

    def fake_post(url, json, timeout):
        calls.append((url, json))
        return _Response()

    monkeypatch.setattr(notifier.requests, "post", fake_post)

    sent = SlackNotifier("https://hooks.slack.test/abc").notify(_groups(), date(2026, 3, 5))

    assert sent is True
    assert calls[0][0] == "https://hooks.slack.test/abc"
    assert calls[0][1]["blocks"][0]["type"] == "header"


def test_notify_retries_then_gives_up(monkeypatch):
    attempts = []
    monkeypatch.setattr(notifier.time, "sleep", lambda seconds: None)
    monkeypatch.setattr(
        notifier.requests, "post",
        lambda url, json, timeout: attempts.append(url) or _Response(500),
    )

    sent = SlackNotifier("https://hooks.slack.test/abc", max_retries=3).notify(
        _groups(), date(2026, 3, 5)
    )

    assert sent is False
    assert len(attempts) == 3
