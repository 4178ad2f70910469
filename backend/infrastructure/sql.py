"""SQLAlchemy implementation of :class:`EntityRepository`.

Selected by ``DATABASE_URL``. The schema mirrors the companies, users and
tickets tables including their lookup indexes.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, create_engine, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.core.logging import get_logger
from backend.domain import Company, Ticket, TicketCategory, TicketStatus, TicketType, User, UserRole

logger = get_logger(__name__)


def _enum(enum_cls: type) -> Enum:
    return Enum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        validate_strings=True,
        length=32,
    )


class Base(DeclarativeBase):
    pass


class CompanyRow(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), default="")


class UserRow(Base):
    __tablename__ = "users"
    __table_args__ = (Index("user_company_role_idx", "company_id", "role"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    role: Mapped[UserRole] = mapped_column(_enum(UserRole), index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class TicketRow(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        Index("ticket_company_type_status_idx", "company_id", "type", "status"),
        Index("ticket_company_status_idx", "company_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[TicketType] = mapped_column(_enum(TicketType), index=True)
    status: Mapped[TicketStatus] = mapped_column(_enum(TicketStatus), index=True)
    category: Mapped[TicketCategory] = mapped_column(_enum(TicketCategory))
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), index=True)
    assignee_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)


def create_engine_from_url(database_url: str, *, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        # one shared connection so that in-memory databases survive across threads
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def _to_company(row: CompanyRow) -> Company:
    return Company(id=row.id, name=row.name)


def _to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        name=row.name,
        role=row.role,
        company_id=row.company_id,
        created_at=row.created_at,
    )


def _to_ticket(row: TicketRow) -> Ticket:
    return Ticket(
        id=row.id,
        type=row.type,
        status=row.status,
        category=row.category,
        company_id=row.company_id,
        assignee_id=row.assignee_id,
    )


class SqlEntityRepository:
    """Relational entity store.

    Calls made inside :meth:`transaction` on the same thread share its
    session and commit or roll back together.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._local = threading.local()

    @classmethod
    def from_url(cls, database_url: str, *, echo: bool = False, create_schema: bool = True) -> "SqlEntityRepository":
        engine = create_engine_from_url(database_url, echo=echo)
        if create_schema:
            Base.metadata.create_all(engine)
        logger.info("entity_store_initialised", dialect=engine.dialect.name)
        return cls(sessionmaker(bind=engine, expire_on_commit=False))

    # ------------------------------------------------------------------
    # sessions
    # ------------------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator[None]:
        if getattr(self._local, "session", None) is not None:
            yield
            return
        session = self._session_factory()
        self._local.session = session
        try:
            with session.begin():
                yield
        finally:
            self._local.session = None
            session.close()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        active = getattr(self._local, "session", None)
        if active is not None:
            yield active
            return
        with self._session_factory() as session, session.begin():
            yield session

    # ------------------------------------------------------------------
    # seeding
    # ------------------------------------------------------------------
    def add_company(self, company_id: int, name: str = "") -> Company:
        with self._session() as session:
            row = CompanyRow(id=company_id, name=name or f"Company {company_id}")
            session.add(row)
            session.flush()
            return _to_company(row)

    def add_user(
        self,
        *,
        company_id: int,
        role: UserRole,
        name: str = "",
        created_at: datetime | None = None,
        user_id: int | None = None,
    ) -> User:
        with self._session() as session:
            row = UserRow(
                id=user_id,
                name=name or role.value,
                role=UserRole(role),
                company_id=company_id,
                created_at=created_at or datetime.now(timezone.utc),
            )
            session.add(row)
            session.flush()
            return _to_user(row)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def get_company(self, company_id: int) -> Company | None:
        with self._session() as session:
            row = session.get(CompanyRow, company_id)
            return _to_company(row) if row else None

    def find_users(
        self,
        *,
        company_id: int,
        role: UserRole,
        newest_first: bool = False,
    ) -> list[User]:
        stmt = select(UserRow).where(UserRow.company_id == company_id, UserRow.role == role)
        if newest_first:
            stmt = stmt.order_by(UserRow.created_at.desc())
        with self._session() as session:
            return [_to_user(row) for row in session.scalars(stmt)]

    def find_ticket(
        self,
        *,
        company_id: int,
        type: TicketType,
        status: TicketStatus,
    ) -> Ticket | None:
        stmt = (
            select(TicketRow)
            .where(
                TicketRow.company_id == company_id,
                TicketRow.type == type,
                TicketRow.status == status,
            )
            .limit(1)
        )
        with self._session() as session:
            row = session.scalars(stmt).first()
            return _to_ticket(row) if row else None

    def list_tickets(self) -> list[Ticket]:
        with self._session() as session:
            return [_to_ticket(row) for row in session.scalars(select(TicketRow).order_by(TicketRow.id))]

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------
    def create_ticket(
        self,
        *,
        type: TicketType,
        status: TicketStatus,
        category: TicketCategory,
        company_id: int,
        assignee_id: int,
    ) -> Ticket:
        with self._session() as session:
            row = TicketRow(
                type=type,
                status=status,
                category=category,
                company_id=company_id,
                assignee_id=assignee_id,
            )
            session.add(row)
            session.flush()
            return _to_ticket(row)

    def resolve_open_tickets(self, company_id: int, *, exclude_id: int) -> int:
        stmt = (
            update(TicketRow)
            .where(
                TicketRow.company_id == company_id,
                TicketRow.status == TicketStatus.OPEN,
                TicketRow.id != exclude_id,
            )
            .values(status=TicketStatus.RESOLVED)
            .execution_options(synchronize_session=False)
        )
        with self._session() as session:
            return session.execute(stmt).rowcount

    def ping(self) -> None:
        with self._session() as session:
            session.execute(select(1))
