"""Tests for attendee registration, decisions and listing."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from hackreg.server.database import Database
from hackreg.server.errors import InvalidParameterError, NotFoundError, ValidationError
from hackreg.server.mailing import MailCommand, MailConfig, MailDispatcher, MailProviderError
from hackreg.server.mailing.decisions import MailAction
from hackreg.server.mailing.lists import MailList
from hackreg.server.models import User
from hackreg.server.schemas import AttendeeResponse
from hackreg.server.services import AttendeeService


@pytest.fixture
def mailer() -> MagicMock:
    return MagicMock(spec=MailDispatcher)


@pytest.fixture
def service(db: Database, mailer: MagicMock) -> AttendeeService:
    return AttendeeService(db, mailer=mailer)


@pytest.fixture
def user(make_user: Callable[..., User]) -> User:
    return make_user("grace@example.com")


@pytest.fixture
def attendee(service: AttendeeService, user: User, attendee_attrs: dict[str, Any]) -> AttendeeResponse:
    """An attendee with one project, one extra, two collaborators and two ecosystems."""
    return service.create(
        user,
        {
            "attendee": attendee_attrs,
            "projects": [
                {"name": "COBOL", "description": "A language", "repo": "cobol", "is_suggestion": False}
            ],
            "extras": [{"info": "Bring a moth"}],
            "collaborators": [{"collaborator": "ada@example.com"}, {"collaborator": "alan@example.com"}],
            "ecosystem_interests": [{"ecosystem_id": 1}, {"ecosystem_id": 2}],
        },
    )


def _commands(mailer: MagicMock) -> list[MailCommand]:
    mailer.submit.assert_called_once()
    email, commands = mailer.submit.call_args.args
    assert email == "grace@example.com"
    return list(commands)


class TestAttendeeRegistration:
    """Tests for attendee create and update."""

    def test_create_with_children(self, attendee: AttendeeResponse) -> None:
        """Children should be created under the attendee."""
        assert attendee.status == "PENDING"
        assert attendee.wave == 0
        assert attendee.projects[0].attendee_id == attendee.id
        assert attendee.extras[0].info == "Bring a moth"
        assert [c.collaborator for c in attendee.collaborators] == [
            "ada@example.com",
            "alan@example.com",
        ]

    def test_too_many_projects(
        self, service: AttendeeService, user: User, attendee_attrs: dict[str, Any]
    ) -> None:
        """More than one project should raise ValidationError."""
        project = {"name": "n", "description": "d", "repo": "r", "is_suggestion": True}
        with pytest.raises(ValidationError) as exc_info:
            service.create(user, {"attendee": attendee_attrs, "projects": [project, project]})
        assert exc_info.value.source == "projects"

    def test_create_with_ecosystem_interests(self, attendee: AttendeeResponse) -> None:
        assert [i.ecosystem_id for i in attendee.ecosystem_interests] == [1, 2]
        assert {i.attendee_id for i in attendee.ecosystem_interests} == {attendee.id}

    def test_too_many_ecosystem_interests(
        self, service: AttendeeService, user: User, attendee_attrs: dict[str, Any]
    ) -> None:
        """More than four ecosystem interests should raise ValidationError."""
        interests = [{"ecosystem_id": n} for n in range(1, 6)]
        with pytest.raises(ValidationError) as exc_info:
            service.create(user, {"attendee": attendee_attrs, "ecosystem_interests": interests})
        assert exc_info.value.source == "ecosystem_interests"

    def test_ecosystem_id_must_be_integer(
        self, service: AttendeeService, user: User, attendee_attrs: dict[str, Any]
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.create(
                user, {"attendee": attendee_attrs, "ecosystem_interests": [{"ecosystem_id": "rust"}]}
            )
        assert exc_info.value.source.startswith("ecosystem_interests")

    def test_update_replaces_ecosystem_interests(
        self,
        service: AttendeeService,
        attendee: AttendeeResponse,
        attendee_attrs: dict[str, Any],
    ) -> None:
        kept = attendee.ecosystem_interests[0]

        response = service.update(
            attendee.id,
            {
                "attendee": attendee_attrs,
                "ecosystem_interests": [{"id": kept.id}, {"ecosystem_id": 9}],
            },
        )

        assert [(i.id, i.ecosystem_id) for i in response.ecosystem_interests][0] == (kept.id, 1)
        assert [i.ecosystem_id for i in response.ecosystem_interests] == [1, 9]

    def test_invalid_age(
        self, service: AttendeeService, user: User, attendee_attrs: dict[str, Any]
    ) -> None:
        """Out-of-range age should raise ValidationError."""
        attendee_attrs["age"] = 9
        with pytest.raises(ValidationError) as exc_info:
            service.create(user, {"attendee": attendee_attrs})
        assert exc_info.value.source == "attendee.age"

    def test_update_replaces_collaborators(
        self,
        service: AttendeeService,
        attendee: AttendeeResponse,
        attendee_attrs: dict[str, Any],
    ) -> None:
        """Each collection should be replaced by the submitted list."""
        kept = attendee.collaborators[1]

        response = service.update(
            attendee.id,
            {
                "attendee": attendee_attrs,
                "projects": [{"id": attendee.projects[0].id, "name": "FLOW-MATIC"}],
                "collaborators": [{"id": kept.id}, {"collaborator": "john@example.com"}],
            },
        )

        assert response.projects[0].name == "FLOW-MATIC"
        assert response.projects[0].repo == "cobol"
        assert response.extras == []
        assert [c.collaborator for c in response.collaborators] == [
            "alan@example.com",
            "john@example.com",
        ]

    def test_update_keeps_decision(
        self,
        service: AttendeeService,
        attendee: AttendeeResponse,
        attendee_attrs: dict[str, Any],
    ) -> None:
        """A general update should not touch the decision fields."""
        service.apply_decision(attendee.id, {"status": "WAITLISTED"})
        attendee_attrs["status"] = "ACCEPTED"

        response = service.update(attendee.id, {"attendee": attendee_attrs})

        assert response.status == "WAITLISTED"


class TestDecisions:
    """Tests for AttendeeService.apply_decision."""

    def test_accept_pending(
        self, service: AttendeeService, attendee: AttendeeResponse, mailer: MagicMock
    ) -> None:
        """Accepting a pending attendee should add them to their wave list only."""
        response = service.apply_decision(
            attendee.id, {"status": "ACCEPTED", "wave": 2}, reviewer="staff@example.com"
        )

        assert response.status == "ACCEPTED"
        assert response.wave == 2
        assert response.reviewer == "staff@example.com"
        assert response.review_time is not None
        assert _commands(mailer) == [MailCommand(MailAction.ADD, MailList.WAVE_2)]

    def test_move_wave(
        self, service: AttendeeService, attendee: AttendeeResponse, mailer: MagicMock
    ) -> None:
        """Changing the wave of an accepted attendee should move lists."""
        service.apply_decision(attendee.id, {"status": "ACCEPTED", "wave": 1})
        mailer.reset_mock()

        service.apply_decision(attendee.id, {"status": "ACCEPTED", "wave": 2})

        assert _commands(mailer) == [
            MailCommand(MailAction.REMOVE, MailList.WAVE_1),
            MailCommand(MailAction.ADD, MailList.WAVE_2),
        ]

    def test_accept_with_lightning_interest(
        self,
        service: AttendeeService,
        user: User,
        attendee_attrs: dict[str, Any],
        mailer: MagicMock,
    ) -> None:
        """Accepting an interested attendee should also add the lightning list."""
        attendee_attrs["has_lightning_interest"] = True
        created = service.create(user, {"attendee": attendee_attrs})

        service.apply_decision(created.id, {"status": "ACCEPTED", "wave": 3})

        assert _commands(mailer) == [
            MailCommand(MailAction.ADD, MailList.WAVE_3),
            MailCommand(MailAction.ADD, MailList.LIGHTNING_TALKS),
        ]

    def test_lightning_toggle_on_update(
        self,
        service: AttendeeService,
        attendee: AttendeeResponse,
        attendee_attrs: dict[str, Any],
        mailer: MagicMock,
    ) -> None:
        """Toggling interest while accepted should update the lightning list."""
        service.apply_decision(attendee.id, {"status": "ACCEPTED", "wave": 1})
        mailer.reset_mock()
        attendee_attrs["has_lightning_interest"] = True

        service.update(attendee.id, {"attendee": attendee_attrs})

        assert _commands(mailer) == [MailCommand(MailAction.ADD, MailList.LIGHTNING_TALKS)]

    def test_update_while_pending_sends_nothing(
        self,
        service: AttendeeService,
        attendee: AttendeeResponse,
        attendee_attrs: dict[str, Any],
        mailer: MagicMock,
    ) -> None:
        """Updates of a pending attendee should send no mail."""
        attendee_attrs["has_lightning_interest"] = True
        service.update(attendee.id, {"attendee": attendee_attrs})
        mailer.submit.assert_not_called()

    def test_accepted_needs_wave(self, service: AttendeeService, attendee: AttendeeResponse) -> None:
        """Accepting without a wave should raise ValidationError."""
        with pytest.raises(ValidationError):
            service.apply_decision(attendee.id, {"status": "ACCEPTED"})

    def test_unknown_status(self, service: AttendeeService, attendee: AttendeeResponse) -> None:
        """Unknown statuses should raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            service.apply_decision(attendee.id, {"status": "MAYBE"})
        assert exc_info.value.source == "status"

    def test_missing_attendee(self, service: AttendeeService, mailer: MagicMock) -> None:
        """Deciding on an unknown attendee should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            service.apply_decision(42, {"status": "REJECTED"})
        mailer.submit.assert_not_called()

    def test_without_mailer(self, db: Database, attendee: AttendeeResponse) -> None:
        """Decisions should be recorded when mail is disabled."""
        response = AttendeeService(db).apply_decision(attendee.id, {"status": "REJECTED"})
        assert response.status == "REJECTED"


class TestDecisionMail:
    """Tests for decisions with a real dispatcher."""

    def test_commands_reach_client(self, db: Database, attendee: AttendeeResponse) -> None:
        """Commands should be executed against the provider list ids."""
        client = MagicMock()
        dispatcher = MailDispatcher(client, MailConfig.from_mapping({"rejected": "list-17"}))

        AttendeeService(db, mailer=dispatcher).apply_decision(attendee.id, {"status": "REJECTED"})
        dispatcher.shutdown()

        client.add_to_list.assert_called_once_with("grace@example.com", "list-17")

    def test_mail_failure_keeps_decision(self, db: Database, attendee: AttendeeResponse) -> None:
        """A provider failure should neither fail nor roll back the decision."""
        client = MagicMock()
        client.add_to_list.side_effect = MailProviderError("boom", status_code=500)
        dispatcher = MailDispatcher(client)
        service = AttendeeService(db, mailer=dispatcher)

        response = service.apply_decision(attendee.id, {"status": "WAITLISTED"})
        dispatcher.shutdown()

        assert response.status == "WAITLISTED"
        assert service.find_by_id(attendee.id).status == "WAITLISTED"
        client.add_to_list.assert_called_once()


class TestListing:
    """Tests for list, search and filter."""

    @pytest.fixture
    def attendees(
        self,
        service: AttendeeService,
        make_user: Callable[..., User],
        attendee_attrs: dict[str, Any],
    ) -> list[AttendeeResponse]:
        created = []
        for first, last, novice in [
            ("Grace", "Hopper", False),
            ("Alan", "Turing", True),
            ("Barbara", "Liskov", True),
        ]:
            attrs = {**attendee_attrs, "first_name": first, "last_name": last, "is_novice": novice}
            created.append(service.create(make_user(f"{first.lower()}@example.com"), {"attendee": attrs}))
        return created

    def test_list_pages(self, service: AttendeeService, attendees: list[AttendeeResponse]) -> None:
        """Pages should follow the id order by default."""
        first = service.list_attendees(1, 2)
        second = service.list_attendees(2, 2)
        assert [a.id for a in first + second] == [a.id for a in attendees]

    def test_list_sorted(self, service: AttendeeService, attendees: list[AttendeeResponse]) -> None:
        """Category should accept camelCase names."""
        result = service.list_attendees(1, 10, "firstName", ascending=False)
        assert [a.first_name for a in result] == ["Grace", "Barbara", "Alan"]

    def test_search(self, service: AttendeeService, attendees: list[AttendeeResponse]) -> None:
        """Search should match first or last name, case-insensitively."""
        result = service.search_attendees(1, 10, "id", True, "ur")
        assert [a.last_name for a in result] == ["Turing"]
        result = service.search_attendees(1, 10, "id", True, "bar")
        assert [a.first_name for a in result] == ["Barbara"]

    def test_search_wildcards_are_literal(
        self,
        service: AttendeeService,
        attendees: list[AttendeeResponse],
        make_user: Callable[..., User],
        attendee_attrs: dict[str, Any],
    ) -> None:
        """``_`` and ``%`` should only match names that contain them."""
        assert service.search_attendees(1, 10, "id", True, "_") == []
        assert service.search_attendees(1, 10, "id", True, "%") == []

        attrs = {**attendee_attrs, "first_name": "Edsger_W", "last_name": "Dijkstra"}
        service.create(make_user("edsger@example.com"), {"attendee": attrs})

        result = service.search_attendees(1, 10, "id", True, "_")
        assert [a.first_name for a in result] == ["Edsger_W"]

    def test_filter_boolean(self, service: AttendeeService, attendees: list[AttendeeResponse]) -> None:
        """Boolean filters should accept true/false strings."""
        result = service.filter_attendees(1, 10, "id", True, "isNovice", "true")
        assert [a.first_name for a in result] == ["Alan", "Barbara"]

    def test_filter_status(self, service: AttendeeService, attendees: list[AttendeeResponse]) -> None:
        """Filtering by status should return decided attendees only."""
        service.apply_decision(attendees[2].id, {"status": "ACCEPTED", "wave": 1})
        result = service.filter_attendees(1, 10, "id", True, "status", "ACCEPTED")
        assert [a.id for a in result] == [attendees[2].id]

    @pytest.mark.parametrize(
        ("kwargs", "source"),
        [
            ({"page": 0, "count": 10}, "page"),
            ({"page": 1, "count": 0}, "count"),
            ({"page": 1, "count": 10, "category": "email"}, "category"),
        ],
    )
    def test_invalid_list_parameters(
        self, service: AttendeeService, kwargs: dict[str, Any], source: str
    ) -> None:
        """Invalid paging or sort parameters should raise InvalidParameterError."""
        with pytest.raises(InvalidParameterError) as exc_info:
            service.list_attendees(**kwargs)
        assert exc_info.value.source == source

    def test_invalid_filter(self, service: AttendeeService) -> None:
        """Unknown filter categories and bad values should be rejected."""
        with pytest.raises(InvalidParameterError) as exc_info:
            service.filter_attendees(1, 10, "id", True, "phoneNumber", "1")
        assert exc_info.value.source == "filterCategory"

        with pytest.raises(InvalidParameterError) as exc_info:
            service.filter_attendees(1, 10, "id", True, "wave", "two")
        assert exc_info.value.source == "filterValue"
