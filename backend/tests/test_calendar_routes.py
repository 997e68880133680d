import pytest


@pytest.fixture
def seeded(client, admin_headers, student_headers, instructor_user):
    course = client.post(
        "/api/courses/",
        json={
            "code": "HIST200",
            "title": "Mongolian History",
            "start_date": "2025-08-05",
            "is_public": True,
            "instructor_id": instructor_user.id,
            "instructor_name": "Dr. Bold",
        },
        headers=admin_headers,
    ).json()
    private = client.post(
        "/api/courses/",
        json={"code": "SEC900", "title": "Closed Seminar", "start_date": "2025-08-05"},
        headers=admin_headers,
    ).json()

    slot = client.post(
        "/api/schedules/",
        json={"courseId": course["id"], "dayOfWeek": 1, "startTime": "15:00", "endTime": "16:30"},
        headers=admin_headers,
    ).json()
    client.post(
        "/api/schedules/",
        json={"courseId": private["id"], "dayOfWeek": 2, "startTime": "08:00", "endTime": "09:00"},
        headers=admin_headers,
    )
    assignment = client.post(
        "/api/assignments/",
        json={
            "course_id": course["id"],
            "title": "Source analysis",
            "due_date": "2025-08-11T01:00:00Z",
            "is_published": True,
        },
        headers=admin_headers,
    ).json()
    client.post(
        "/api/assignments/",
        json={"course_id": course["id"], "title": "Draft only", "due_date": "2025-08-12T01:00:00Z"},
        headers=admin_headers,
    )
    client.post("/api/enrollments/", json={"course_id": course["id"]}, headers=student_headers)
    return {"course": course, "private": private, "slot": slot, "assignment": assignment}


def test_student_calendar_merges_classes_and_deadlines(client, student_headers, seeded):
    response = client.get("/api/calendar/", params={"start": "2025-08-01", "end": "2025-08-31"}, headers=student_headers)
    assert response.status_code == 200, response.text
    events = response.json()

    classes = [event for event in events if event["type"] == "CLASS"]
    assert [event["date"] for event in classes] == ["2025-08-11", "2025-08-18", "2025-08-25"]
    assert classes[0] == {
        "id": f"class-{seeded['slot']['id']}-2025-08-11",
        "title": "Mongolian History",
        "courseId": seeded["course"]["id"],
        "courseTitle": "Mongolian History",
        "instructor": "Dr. Bold",
        "type": "CLASS",
        "date": "2025-08-11",
        "startTime": "15:00",
        "endTime": "16:30",
        "isEnrolled": True,
    }

    deadlines = [event for event in events if event["type"] == "ASSIGNMENT"]
    assert len(deadlines) == 1
    assert deadlines[0]["id"] == f"assignment-{seeded['assignment']['id']}"
    assert deadlines[0]["title"] == "Due: Source analysis"
    assert deadlines[0]["startTime"] == deadlines[0]["endTime"] == "09:00"

    # Deadline at 09:00 sorts ahead of the 15:00 class on the same day.
    assert events[0]["type"] == "ASSIGNMENT"
    assert events[1]["id"] == classes[0]["id"]
    assert all(event["courseId"] != seeded["private"]["id"] for event in events)


def test_admin_sees_every_course(client, admin_headers, seeded):
    events = client.get(
        "/api/calendar/", params={"start": "2025-08-01", "end": "2025-08-31"}, headers=admin_headers
    ).json()
    assert {event["courseId"] for event in events} == {seeded["course"]["id"], seeded["private"]["id"]}
    assert all(event["isEnrolled"] is False for event in events)


def test_instructor_sees_taught_course(client, instructor_headers, seeded):
    events = client.get(
        "/api/calendar/", params={"start": "2025-08-01", "end": "2025-08-31"}, headers=instructor_headers
    ).json()
    assert {event["courseId"] for event in events} == {seeded["course"]["id"]}


def test_enrolled_only_filters_public_courses(client, admin_headers, student_headers, seeded):
    other = client.post(
        "/api/courses/",
        json={"code": "ART100", "title": "Drawing", "start_date": "2025-08-05", "is_public": True},
        headers=admin_headers,
    ).json()
    client.post(
        "/api/schedules/",
        json={"courseId": other["id"], "dayOfWeek": 4, "startTime": "10:00", "endTime": "11:00"},
        headers=admin_headers,
    )

    params = {"start": "2025-08-01", "end": "2025-08-31"}
    everything = client.get("/api/calendar/", params=params, headers=student_headers).json()
    assert other["id"] in {event["courseId"] for event in everything}

    mine = client.get("/api/calendar/", params={**params, "enrolledOnly": "true"}, headers=student_headers).json()
    assert {event["courseId"] for event in mine} == {seeded["course"]["id"]}


def test_instant_window_bounds_are_anchored_to_calendar_zone(client, student_headers, seeded):
    # 2025-08-10T16:00Z is midnight of the 11th in Ulaanbaatar.
    events = client.get(
        "/api/calendar/",
        params={"start": "2025-08-10T16:00:00Z", "end": "2025-08-11T15:59:59Z"},
        headers=student_headers,
    ).json()
    assert {event["date"] for event in events} == {"2025-08-11"}
    assert len(events) == 2


def test_inverted_window_is_empty(client, student_headers, seeded):
    response = client.get("/api/calendar/", params={"start": "2025-08-31", "end": "2025-08-01"}, headers=student_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_bad_window_is_rejected(client, student_headers):
    assert client.get("/api/calendar/", params={"start": "soon"}, headers=student_headers).status_code == 400
    too_wide = client.get("/api/calendar/", params={"start": "2025-01-01", "end": "2027-01-01"}, headers=student_headers)
    assert too_wide.status_code == 400


def test_default_window_works_without_parameters(client, student_headers):
    response = client.get("/api/calendar/", headers=student_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_calendar_requires_authentication(client):
    assert client.get("/api/calendar/").status_code in {401, 403}
