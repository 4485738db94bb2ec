from datetime import date

from trainhub.models import DaySession
from trainhub.services.notifications import ABSENCE_SUBJECT, absence_body


def addresses(count):
    return [f"student{n}@example.com" for n in range(count)]


def test_absence_body_names_day_and_session():
    body = absence_body(date(2024, 6, 10), DaySession.AFTERNOON)
    assert "2024-06-10, Monday" in body
    assert "afternoon session" in body


def test_recipients_are_batched_by_eighty(settings, make_mailer):
    mailer = make_mailer()

    report = mailer.send_absence_notifications(addresses(170), date(2024, 6, 10), DaySession.FORENOON)

    assert report.as_dict() == {"recipients": 170, "batchesSent": 3, "batchesFailed": 0}
    assert [len(m["Bcc"].split(",")) for m in mailer.sent] == [80, 80, 10]
    assert mailer.sent[0]["Subject"] == ABSENCE_SUBJECT
    assert mailer.sent[0]["To"] == settings.MAIL_DEFAULT_SENDER


def test_failed_batch_does_not_stop_the_rest(make_mailer):
    mailer = make_mailer(fail_on={1})

    report = mailer.send_bulk(addresses(100), "Subject", "Body")

    assert report.batches_failed == 1
    assert report.batches_sent == 1
    assert mailer.recipients == addresses(100)[80:]


def test_duplicate_and_blank_recipients_dropped(make_mailer):
    mailer = make_mailer()

    report = mailer.send_bulk(["a@example.com", " a@example.com", "", "b@example.com"], "S", "B")

    assert report.recipients == 2
    assert mailer.recipients == ["a@example.com", "b@example.com"]


def test_nothing_sent_without_recipients(make_mailer):
    mailer = make_mailer()
    report = mailer.send_absence_notifications([], date(2024, 6, 10), DaySession.FORENOON)
    assert report.batches_sent == 0
    assert mailer.sent == []
