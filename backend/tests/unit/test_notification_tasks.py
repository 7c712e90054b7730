from unittest.mock import patch

import pytest

from marketplace.events.publisher import DELIVER_NOTIFICATION_TASK
from marketplace.tasks.celery_app import celery_app
from marketplace.tasks.enqueue import enqueue_task
from marketplace.tasks.notification_tasks import (
    KNOWN_TYPES,
    deliver_booking_notification,
    dispatch_notification,
)


@pytest.mark.unit
class TestDispatch:
    def test_known_types_cover_every_notification(self):
        assert KNOWN_TYPES == {
            "booking_created",
            "booking_accepted",
            "booking_declined",
            "booking_counter_offered",
            "booking_cancelled",
            "booking_completed",
        }

    def test_valid_notification_is_dispatched(self):
        result = dispatch_notification(
            {"type": "booking_accepted", "recipient_id": "cust-1", "payload": {"booking_id": "b1"}}
        )
        assert result == {"status": "dispatched", "type": "booking_accepted", "recipient_id": "cust-1"}

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError, match="Unknown notification type"):
            dispatch_notification(
                {"type": "booking_exploded", "recipient_id": "u", "payload": {"booking_id": "b1"}}
            )

    @pytest.mark.parametrize(
        "notification",
        [
            {"type": "booking_created", "recipient_id": "", "payload": {"booking_id": "b1"}},
            {"type": "booking_created", "recipient_id": "v1", "payload": {}},
            {"type": "booking_created", "recipient_id": "v1"},
        ],
    )
    def test_missing_recipient_or_booking_rejected(self, notification):
        with pytest.raises(ValueError):
            dispatch_notification(notification)


@pytest.mark.unit
def test_task_is_registered_under_publisher_name():
    assert DELIVER_NOTIFICATION_TASK in celery_app.tasks
    assert deliver_booking_notification.name == DELIVER_NOTIFICATION_TASK


@pytest.mark.unit
def test_task_runs_dispatch_eagerly():
    result = deliver_booking_notification.apply(
        kwargs={
            "notification": {
                "type": "booking_completed",
                "recipient_id": "cust-1",
                "payload": {"booking_id": "b1"},
            }
        }
    )
    assert result.get()["status"] == "dispatched"


@pytest.mark.unit
def test_enqueue_task_applies_async_by_name():
    task = celery_app.tasks[DELIVER_NOTIFICATION_TASK]
    with patch.object(task, "apply_async") as apply_async:
        enqueue_task(DELIVER_NOTIFICATION_TASK, kwargs={"notification": {}}, countdown=5)

    apply_async.assert_called_once_with(
        args=(), kwargs={"notification": {}}, headers={}, countdown=5
    )
