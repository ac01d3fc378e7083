def _post(client, action=None, **payload):
    body = dict(payload)
    if action is not None:
        body["action"] = action
    return client.post("/api/v1/actions", json=body)


def _create_class_type(client, name="Mandarin", category="mandarin,language"):
    response = _post(client, "createClassType", name=name, category=category)
    assert response.status_code == 201
    return response.json()["classType"]


def test_health(api_client):
    response = api_client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_missing_action(api_client):
    response = _post(api_client, userId="u1")

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "action": "unknown",
        "message": "Invalid action: No action specified.",
    }


def test_unknown_action(api_client):
    response = _post(api_client, "launchRocket")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["action"] == "launchRocket"
    assert body["message"].startswith("Invalid action specified")


def test_create_class_and_enroll_until_full(api_client):
    class_type = _create_class_type(api_client)

    created = _post(
        api_client, "createClass", classTypeId=class_type["id"], day="Monday", time="6:00 PM",
        totalSpots=2,
    )
    assert created.status_code == 201
    body = created.json()
    assert body["success"] is True
    assert body["action"] == "createClass"
    class_id = body["classId"]
    assert body["class"]["spotsLeft"] == 2

    first = _post(api_client, "joinClass", classId=class_id, userId="u1", name="Alice")
    second = _post(api_client, "joinClass", classId=class_id, userId="u2", name="Bob")
    third = _post(api_client, "joinClass", classId=class_id, userId="u3", name="Carl")

    assert first.json() == {
        "success": True,
        "action": "joinClass",
        "message": "Successfully joined class",
        "spotsLeft": 1,
    }
    assert second.json()["spotsLeft"] == 0
    assert third.status_code == 400
    assert third.json()["message"] == "Class is full"


def test_join_twice_and_leave_without_membership(api_client):
    class_type = _create_class_type(api_client)
    class_id = _post(
        api_client, "createClass", classType="mandarin", day="Monday", time="6:00 PM"
    ).json()["classId"]

    _post(api_client, "joinClass", classId=class_id, userId="u1", name="Alice")
    again = _post(api_client, "joinClass", classId=class_id, userId="u1", name="Alice")
    leave = _post(api_client, "leaveClass", classId=class_id, userId="u9")
    details = _post(api_client, "getClassDetails", classId=class_id).json()["class"]

    assert again.json()["message"] == "You have already joined this class"
    assert leave.status_code == 400
    assert leave.json()["message"] == "You are not enrolled in this class"
    assert details["currentMembers"] == 1
    assert details["classTypeName"] == class_type["name"]


def test_create_class_with_initial_members(api_client):
    class_type = _create_class_type(api_client)

    response = _post(
        api_client, "createClass", classTypeId=class_type["id"], day="Monday", time="6:00 PM",
        initialMembers=[{"userId": "u1", "name": "Alice"}, '{"userId": "u2", "name": "Bob"}'],
    )

    members = response.json()["class"]["members"]
    assert [member["userId"] for member in members] == ["u1", "u2"]


def test_create_class_requires_class_type(api_client):
    response = _post(api_client, "createClass", day="Monday", time="6:00 PM")

    assert response.status_code == 400
    assert "classTypeId is required for creating a class" in response.json()["message"]


def test_unknown_class_is_404(api_client):
    response = _post(api_client, "joinClass", classId="missing", userId="u1", name="Alice")

    assert response.status_code == 404
    assert response.json()["message"] == "Class not found"


def test_update_cancel_reactivate_delete(api_client):
    class_type = _create_class_type(api_client)
    class_id = _post(
        api_client, "createClass", classTypeId=class_type["id"], day="Monday", time="6:00 PM",
        initialMembers=[{"userId": "u1", "name": "Alice"}, {"userId": "u2", "name": "Bob"}],
    ).json()["classId"]

    too_small = _post(api_client, "updateClass", classId=class_id, totalSpots=1)
    updated = _post(api_client, "updateClass", classId=class_id, totalSpots=3, time="7:00 PM")
    cancelled = _post(api_client, "cancelClass", classId=class_id, reason="Holiday")
    blocked = _post(api_client, "joinClass", classId=class_id, userId="u3", name="Carl")
    reactivated = _post(api_client, "reactivateClass", classId=class_id)
    deleted = _post(api_client, "deleteClass", classId=class_id)
    gone = _post(api_client, "getClassDetails", classId=class_id)

    assert too_small.status_code == 400
    assert updated.json()["class"]["spotsLeft"] == 1
    assert updated.json()["class"]["time"] == "7:00 PM"
    assert cancelled.json()["class"]["status"] == "cancelled"
    assert cancelled.json()["class"]["cancelReason"] == "Holiday"
    assert blocked.status_code == 400
    assert blocked.json()["message"] == "Class is not active"
    assert reactivated.json()["class"]["status"] == "active"
    assert deleted.json()["message"] == "Class deleted successfully"
    assert gone.status_code == 404


def test_submit_availability_forms_class(api_client):
    _create_class_type(api_client)
    for user_id in ("u1", "u2"):
        response = _post(
            api_client, "submitAvailability", userId=user_id, classType="mandarin",
            availabilities=["Monday-6:00 PM"],
        )
        assert response.status_code == 201
        assert response.json()["formedClassIds"] == []

    response = _post(
        api_client, "submitAvailability", userId="u3", classType="mandarin",
        availabilities=[{"day": "Monday", "time": "6:00 PM"}], checkForMatches=True,
    )

    body = response.json()
    assert body["availabilityId"]
    assert len(body["formedClassIds"]) == 1
    members = _post(api_client, "getUsersByClass", classId=body["formedClassIds"][0]).json()
    assert members["totalMembers"] == 3
    remaining = _post(api_client, "getUserAvailability", userId="u1").json()
    assert remaining["availabilities"] == []


def test_submit_availability_rejects_bad_slots(api_client):
    _create_class_type(api_client)

    response = _post(
        api_client, "submitAvailability", userId="u1", classType="mandarin",
        availabilities=["Someday-6:00 PM"],
    )

    assert response.status_code == 400
    assert "Unknown day" in response.json()["message"]


def test_find_matches(api_client):
    _create_class_type(api_client)
    for user_id in ("u1", "u2"):
        _post(
            api_client, "submitAvailability", userId=user_id, classType="mandarin",
            availabilities=["Monday-6:00 PM"],
        )

    response = _post(
        api_client, "findMatches", classType="mandarin", day="Monday", time="6:00 PM",
        excludeUserId="u1",
    )

    matches = response.json()["matches"]
    assert [match["userId"] for match in matches] == ["u2"]
    assert matches[0]["availabilityId"]


def test_trigger_match_check(api_client):
    _create_class_type(api_client)
    for user_id in ("u1", "u2", "u3"):
        _post(
            api_client, "submitAvailability", userId=user_id, classType="mandarin",
            availabilities=["Monday-6:00 PM"],
        )

    results = _post(api_client, "triggerMatchCheck").json()["results"]

    assert sum(len(result["formedClassIds"]) for result in results) == 1


def test_class_listings(api_client):
    mandarin = _create_class_type(api_client)
    salsa = _create_class_type(api_client, name="Salsa", category="dance")
    for class_type in (mandarin, salsa):
        _post(
            api_client, "createClass", classTypeId=class_type["id"], day="Friday", time="8:00 PM"
        )

    available = _post(api_client, "getAvailableClasses", classType="dance").json()["classes"]
    everything = _post(api_client, "getAllClasses", limit=1).json()

    assert [item["classTypeName"] for item in available] == ["Salsa"]
    assert everything["total"] == 2
    assert len(everything["classes"]) == 1
    assert everything["classes"][0]["fillRate"] == 0


def test_class_type_lifecycle(api_client):
    class_type = _create_class_type(api_client)
    _post(api_client, "createClass", classTypeId=class_type["id"], day="Monday", time="6:00 PM")

    updated = _post(
        api_client, "updateClassType", classTypeId=class_type["id"], description="HSK 1"
    )
    listed = _post(api_client, "getAllClassTypes").json()["classTypes"]
    in_use = _post(api_client, "deleteClassType", classTypeId=class_type["id"])

    assert updated.json()["classType"]["description"] == "HSK 1"
    assert listed[0]["usageCount"] == 1
    assert in_use.status_code == 400
    assert in_use.json()["message"] == "Cannot delete class type. 1 classes are still using it."
    assert _post(api_client, "getClassTypes").json()["classTypes"][0]["name"] == "Mandarin"


def test_register_profile_and_admin_check(api_client):
    registered = _post(
        api_client, "register", email="alice@example.com", password="correct-horse", name="Alice"
    )
    user_id = registered.json()["userId"]

    profile = _post(api_client, "getProfile", userId=user_id).json()["user"]
    admin = _post(api_client, "verifyAdmin", userId=user_id).json()

    assert registered.status_code == 201
    assert "passwordHash" not in registered.json()["user"]
    assert profile == {"id": user_id, "name": "Alice", "email": "alice@example.com", "phone": None}
    assert admin == {"success": True, "action": "verifyAdmin", "isAdmin": False, "userId": user_id}


def test_register_validation_errors(api_client):
    response = _post(api_client, "register", email="not-an-email", password="short", name="A")

    assert response.status_code == 400
    message = response.json()["message"]
    assert "email" in message
    assert "password" in message


def test_class_reminder(api_client):
    class_type = _create_class_type(api_client)
    class_id = _post(
        api_client, "createClass", classTypeId=class_type["id"], day="Monday", time="6:00 PM",
        initialMembers=[{"userId": "u1", "name": "Alice"}],
    ).json()["classId"]

    response = _post(api_client, "classReminder", classId=class_id, message="See you soon")

    results = response.json()["reminderResults"]
    assert results == [
        {"userId": "u1", "email": None, "template": "class_reminder", "status": "sent", "error": None}
    ]


def test_unexpected_errors_do_not_leak_details(api_client, services, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("database password is hunter2")

    monkeypatch.setattr(services.class_types, "list_active", explode)

    response = _post(api_client, "getClassTypes")

    assert response.status_code == 500
    assert "hunter2" not in response.json()["message"]


def test_non_string_action_gets_envelope(api_client):
    response = api_client.post("/api/v1/actions", json={"action": ["joinClass"]})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "action": "unknown",
        "message": "Invalid action: action must be a string.",
    }


def test_available_classes_category_is_case_insensitive(api_client):
    class_type = _create_class_type(api_client)
    _post(api_client, "createClass", classTypeId=class_type["id"], day="Monday", time="6:00 PM")

    classes = _post(api_client, "getAvailableClasses", classType="Language").json()["classes"]

    assert [item["classTypeName"] for item in classes] == ["Mandarin"]
