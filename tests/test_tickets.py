import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend.application import TicketLifecycleEngine
from backend.core.result import Err, ErrorKind, Ok
from backend.domain import TicketCategory, TicketStatus, TicketType, UserRole
from backend.infrastructure import InMemoryEntityRepository


class RecordingRepository(InMemoryEntityRepository):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def find_ticket(self, **kwargs):
        self.calls.append("find_ticket")
        return super().find_ticket(**kwargs)

    def find_users(self, **kwargs):
        self.calls.append(f"find_users:{kwargs['role'].value}:{kwargs.get('newest_first', False)}")
        return super().find_users(**kwargs)

    def create_ticket(self, **kwargs):
        self.calls.append("create_ticket")
        return super().create_ticket(**kwargs)


@pytest.fixture()
def repository():
    repo = RecordingRepository()
    repo.add_company(1)
    repo.add_company(2)
    return repo


@pytest.fixture()
def engine(repository):
    return TicketLifecycleEngine(repository)


def _at(day: int) -> datetime:
    return datetime(2023, 1, day, tzinfo=timezone.utc)


def _ok(result):
    assert isinstance(result, Ok), result
    return result.value


def test_management_report_goes_to_most_recent_accountant(engine, repository):
    repository.add_user(company_id=1, role=UserRole.ACCOUNTANT, created_at=_at(10), user_id=1)
    repository.add_user(company_id=1, role=UserRole.ACCOUNTANT, created_at=_at(15), user_id=4)
    repository.add_user(company_id=1, role=UserRole.ACCOUNTANT, created_at=_at(12), user_id=5)

    ticket = _ok(engine.create(TicketType.MANAGEMENT_REPORT, 1))

    assert ticket.assignee_id == 4
    assert ticket.category is TicketCategory.ACCOUNTING
    assert ticket.status is TicketStatus.OPEN
    assert ticket.company_id == 1
    assert "find_users:accountant:True" in repository.calls


def test_registration_change_goes_to_corporate_secretary(engine, repository):
    repository.add_user(company_id=1, role=UserRole.CORPORATE_SECRETARY, user_id=2)
    repository.add_user(company_id=1, role=UserRole.DIRECTOR, user_id=3)

    ticket = _ok(engine.create("registrationAddressChange", 1))

    assert ticket.assignee_id == 2
    assert ticket.category is TicketCategory.CORPORATE


def test_registration_change_falls_back_to_director(engine, repository):
    repository.add_user(company_id=1, role=UserRole.DIRECTOR, user_id=3)

    ticket = _ok(engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1))

    assert ticket.assignee_id == 3
    assert ticket.category is TicketCategory.CORPORATE
    assert repository.calls[-3:] == [
        "find_users:corporateSecretary:True",
        "find_users:director:False",
        "create_ticket",
    ]


def test_registration_change_without_secretary_or_director(engine, repository):
    result = engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1)

    assert result == Err(ErrorKind.NOT_FOUND, "Cannot find user with role director to create a ticket")
    assert "create_ticket" not in repository.calls


def test_missing_accountant(engine, repository):
    result = engine.create(TicketType.MANAGEMENT_REPORT, 1)

    assert result == Err(ErrorKind.NOT_FOUND, "Cannot find user with role accountant to create a ticket")


def test_unknown_company(engine, repository):
    result = engine.create(TicketType.MANAGEMENT_REPORT, 999)

    assert result == Err(ErrorKind.NOT_FOUND, "Company not found")
    assert repository.calls == []


def test_unknown_company_is_reported_before_invalid_type(engine):
    assert engine.create("bogus", 999) == Err(ErrorKind.NOT_FOUND, "Company not found")


@pytest.mark.parametrize("ticket_type", ["bogus", "", "STRIKE_OFF", None])
def test_invalid_type_fails_before_any_lookup_or_write(engine, repository, ticket_type):
    repository.add_user(company_id=1, role=UserRole.DIRECTOR)

    result = engine.create(ticket_type, 1)

    assert result == Err(ErrorKind.INVALID_INPUT, "Invalid ticket type")
    assert repository.calls == []
    assert repository.list_tickets() == []


def test_duplicate_open_registration_change_conflicts(engine, repository):
    repository.add_user(company_id=1, role=UserRole.CORPORATE_SECRETARY)
    repository.add_user(company_id=1, role=UserRole.ACCOUNTANT)
    _ok(engine.create(TicketType.MANAGEMENT_REPORT, 1))
    _ok(engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1))
    _ok(engine.create(TicketType.MANAGEMENT_REPORT, 1))
    repository.calls.clear()

    result = engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1)

    assert result == Err(ErrorKind.CONFLICT, "duplicate ticket")
    assert repository.calls == ["find_ticket"]
    assert len(repository.list_tickets()) == 3


def test_resolved_registration_change_does_not_conflict(engine, repository):
    repository.add_user(company_id=1, role=UserRole.CORPORATE_SECRETARY)
    repository.create_ticket(
        type=TicketType.REGISTRATION_ADDRESS_CHANGE,
        status=TicketStatus.RESOLVED,
        category=TicketCategory.CORPORATE,
        company_id=1,
        assignee_id=1,
    )

    _ok(engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1))


def test_duplicate_check_is_scoped_to_company(engine, repository):
    repository.add_user(company_id=1, role=UserRole.CORPORATE_SECRETARY)
    repository.add_user(company_id=2, role=UserRole.CORPORATE_SECRETARY)
    _ok(engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1))

    _ok(engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 2))


def test_management_report_duplicates_are_allowed(engine, repository):
    repository.add_user(company_id=1, role=UserRole.ACCOUNTANT)
    _ok(engine.create(TicketType.MANAGEMENT_REPORT, 1))
    _ok(engine.create(TicketType.MANAGEMENT_REPORT, 1))

    assert len(repository.list_tickets()) == 2


@pytest.mark.parametrize(
    ("ticket_type", "role"),
    [
        (TicketType.REGISTRATION_ADDRESS_CHANGE, UserRole.CORPORATE_SECRETARY),
        (TicketType.STRIKE_OFF, UserRole.DIRECTOR),
    ],
)
def test_multiple_single_role_candidates_are_rejected(engine, repository, ticket_type, role):
    repository.add_user(company_id=1, role=role)
    repository.add_user(company_id=1, role=role)

    result = engine.create(ticket_type, 1)

    assert result == Err(
        ErrorKind.INVALID_INPUT,
        f"Multiple users with role {role.value}. Cannot create a ticket",
    )
    assert repository.list_tickets() == []


def test_multiple_directors_rejected_on_fallback(engine, repository):
    repository.add_user(company_id=1, role=UserRole.DIRECTOR)
    repository.add_user(company_id=1, role=UserRole.DIRECTOR)

    result = engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1)

    assert result == Err(ErrorKind.INVALID_INPUT, "Multiple users with role director. Cannot create a ticket")


def test_users_of_other_companies_are_ignored(engine, repository):
    repository.add_user(company_id=2, role=UserRole.ACCOUNTANT)

    result = engine.create(TicketType.MANAGEMENT_REPORT, 1)

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.NOT_FOUND


def _seed_open_tickets(engine, repository):
    repository.add_user(company_id=1, role=UserRole.ACCOUNTANT)
    repository.add_user(company_id=1, role=UserRole.CORPORATE_SECRETARY)
    repository.add_user(company_id=1, role=UserRole.DIRECTOR, user_id=50)
    repository.add_user(company_id=2, role=UserRole.ACCOUNTANT)
    _ok(engine.create(TicketType.MANAGEMENT_REPORT, 1))
    _ok(engine.create(TicketType.MANAGEMENT_REPORT, 1))
    _ok(engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1))
    repository.create_ticket(
        type=TicketType.MANAGEMENT_REPORT,
        status=TicketStatus.RESOLVED,
        category=TicketCategory.ACCOUNTING,
        company_id=1,
        assignee_id=1,
    )
    _ok(engine.create(TicketType.MANAGEMENT_REPORT, 2))


def test_strike_off_resolves_other_open_tickets(engine, repository):
    _seed_open_tickets(engine, repository)

    ticket = _ok(engine.create(TicketType.STRIKE_OFF, 1))

    assert ticket.category is TicketCategory.MANAGEMENT
    assert ticket.assignee_id == 50
    tickets = {item.id: item for item in repository.list_tickets()}
    assert tickets[ticket.id].status is TicketStatus.OPEN
    company_one = [item for item in tickets.values() if item.company_id == 1 and item.id != ticket.id]
    assert len(company_one) == 4
    assert all(item.status is TicketStatus.RESOLVED for item in company_one)
    company_two = [item for item in tickets.values() if item.company_id == 2]
    assert [item.status for item in company_two] == [TicketStatus.OPEN]


def test_strike_off_without_director(engine, repository):
    repository.add_user(company_id=1, role=UserRole.CORPORATE_SECRETARY)

    result = engine.create(TicketType.STRIKE_OFF, 1)

    assert result == Err(ErrorKind.NOT_FOUND, "Cannot find user with role director to create a ticket")


class FailingResolveRepository(RecordingRepository):
    def resolve_open_tickets(self, company_id, *, exclude_id):
        super().resolve_open_tickets(company_id, exclude_id=exclude_id)
        raise RuntimeError("bulk update failed")


class FailingCreateRepository(RecordingRepository):
    fail = False

    def create_ticket(self, **kwargs):
        if self.fail:
            raise RuntimeError("insert failed")
        return super().create_ticket(**kwargs)


@pytest.mark.parametrize("repository_cls", [FailingResolveRepository, FailingCreateRepository])
def test_strike_off_failure_rolls_back(repository_cls):
    repository = repository_cls()
    repository.add_company(1)
    repository.add_company(2)
    engine = TicketLifecycleEngine(repository)
    _seed_open_tickets(engine, repository)
    before = repository.list_tickets()
    repository.fail = True

    with pytest.raises(RuntimeError):
        engine.create(TicketType.STRIKE_OFF, 1)

    assert repository.list_tickets() == before


def test_duplicate_check_is_not_serialised_with_insert(repository):
    """Two racing creations can both pass the duplicate check; this is accepted."""

    repository.add_user(company_id=1, role=UserRole.CORPORATE_SECRETARY)
    engine = TicketLifecycleEngine(repository)
    original = repository.find_ticket
    raced = []

    def find_ticket_with_concurrent_request(**kwargs):
        found = original(**kwargs)
        if not raced:
            raced.append(None)
            raced[0] = engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1)
        return found

    repository.find_ticket = find_ticket_with_concurrent_request

    _ok(engine.create(TicketType.REGISTRATION_ADDRESS_CHANGE, 1))

    assert isinstance(raced[0], Ok)
    open_changes = [
        ticket
        for ticket in repository.list_tickets()
        if ticket.type is TicketType.REGISTRATION_ADDRESS_CHANGE and ticket.status is TicketStatus.OPEN
    ]
    assert len(open_changes) == 2


def test_list_tickets(engine, repository):
    repository.add_user(company_id=1, role=UserRole.ACCOUNTANT)
    created = _ok(engine.create(TicketType.MANAGEMENT_REPORT, 1))

    assert engine.list_tickets() == [created]
