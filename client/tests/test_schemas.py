"""
Tests for wire schemas: backend field aliases and status banner text.
"""

from eventa.schemas import ConnectionStatus, EventRequest, InterestStatus, NotificationMessage


def test_organizer_listing_shape():
    request = EventRequest.model_validate(
        {
            "_id": "42",
            "userId": {"_id": "user1", "fullname": "Jane Doe", "email": "jane@example.com"},
            "eventType": "Wedding",
            "interestedOrganizers": [{"organizerId": "org7", "proposedBudget": ""}],
        }
    )

    assert request.requester_id == "user1"
    assert request.interest_for("org7").proposed_budget is None
    assert request.matches_search("  JANE ")
    assert request.matches_search("")


def test_unpopulated_requester_is_an_id():
    request = EventRequest.model_validate({"_id": 7, "userId": "user1"})
    assert request.id == "7"
    assert request.requester_id == "user1"
    assert request.requester.fullname is None


def test_connection_status_messages():
    assert ConnectionStatus(connected=True, max_reconnect_attempts=3).message is None
    assert (
        ConnectionStatus(connected=False, reconnect_attempts=2, max_reconnect_attempts=3).message
        == "Reconnecting... Attempt 2 of 3"
    )
    lost = ConnectionStatus.model_validate(
        {"connected": False, "reconnectAttempts": 3, "maxReconnectAttempts": 3, "lost": True}
    )
    assert lost.is_lost
    assert lost.message == "Connection lost. Please refresh the page to reconnect"


def test_notification_payload_uses_wire_names():
    message = NotificationMessage(kind="event_request_accepted", event_id=42, organizer_id="org7")
    assert message.to_payload() == {
        "kind": "event_request_accepted",
        "eventId": "42",
        "organizerId": "org7",
    }


def test_interest_statuses_from_requester_listing():
    request = EventRequest.model_validate(
        {
            "eventId": "9",
            "status": "deal_done",
            "organizers": [
                {"organizerId": "org7", "status": "deal_done"},
                {"organizerId": "org8", "status": "approved"},
                {"organizerId": "org9", "status": "on_hold"},
            ],
        }
    )

    assert request.interest_for("org7").status is InterestStatus.DEAL_DONE
    assert request.interest_for("org8").status is InterestStatus.APPROVED
    assert request.interest_for("org9").status == "on_hold"
