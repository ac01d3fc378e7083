from datetime import datetime, timezone
import json

import pytest

from classmatch.core.errors import ValidationError
from classmatch.domain import ScheduledClass, SlotKey
from classmatch.store import StoredDocument
from classmatch.store.codecs import decode_class, encode_class

CREATED = datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)


def _document(data):
    return StoredDocument(
        collection="classes",
        id="c1",
        data=data,
        version=3,
        created_at=CREATED,
        updated_at=CREATED,
    )


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Monday-6:00 PM", ("Monday", "6:00 PM")),
        ("tuesday-7:30 pm", ("Tuesday", "7:30 PM")),
        ("Friday-18:00-19:00", ("Friday", "18:00-19:00")),
    ],
)
def test_slot_key_parse(raw, expected):
    slot = SlotKey.parse(raw)

    assert (slot.day, slot.time) == expected


@pytest.mark.parametrize("raw", ["Funday-6:00 PM", "Monday", "Monday-   "])
def test_slot_key_rejects_malformed_slots(raw):
    with pytest.raises(ValidationError):
        SlotKey.parse(raw)


def test_scheduled_class_tracks_spots_left():
    scheduled = ScheduledClass(
        id="c1", class_type_id="ct1", day="Monday", time="6:00 PM", total_spots=3
    )
    scheduled.add_member("u1", "Alice")
    scheduled.add_member("u2", "Bob")
    scheduled.remove_member("u1")

    assert scheduled.spots_left == 2
    assert scheduled.fill_rate == pytest.approx(100 / 3)
    assert [member.user_id for member in scheduled.members] == ["u2"]


def test_decode_class_accepts_legacy_string_members():
    scheduled = decode_class(
        _document(
            {
                "classTypeId": "ct1",
                "day": "Monday",
                "time": "6:00 PM",
                "totalSpots": 5,
                "spotsLeft": 99,
                "status": "active",
                "members": [
                    json.dumps({"userId": "u1", "name": "Alice"}),
                    {"userId": "u2", "name": "Bob", "joinedAt": "2024-03-05T08:00:00+00:00"},
                    "not json",
                    {"name": "no id"},
                ],
            }
        )
    )

    assert [member.user_id for member in scheduled.members] == ["u1", "u2"]
    assert scheduled.members[0].joined_at == CREATED
    assert scheduled.spots_left == 3


def test_encode_class_writes_derived_spots_left():
    scheduled = ScheduledClass(
        id="c1", class_type_id="ct1", day="Monday", time="6:00 PM", total_spots=4,
        created_at=CREATED,
    )
    scheduled.add_member("u1", "Alice")

    data = encode_class(scheduled)

    assert data["spotsLeft"] == 3
    assert data["members"][0]["userId"] == "u1"
    assert data["createdAt"] == CREATED.isoformat()
    assert decode_class(_document(data)).member_count == 1
