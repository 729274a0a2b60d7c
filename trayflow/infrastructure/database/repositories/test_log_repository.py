from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from trayflow.infrastructure.database.models import TestLog

from .base import BaseRepository, DatabaseError


class TestLogRepository(BaseRepository[TestLog]):
    """Read access to functional test results."""

    __test__ = False  # not a pytest test class

    @property
    def entity_class(self):
        return TestLog

    def find_latest(self, serial_number: str) -> TestLog | None:
        try:
            statement = (
                select(TestLog)
                .where(TestLog.serial_number == serial_number)
                .order_by(TestLog.registered_at.desc(), TestLog.id.desc())
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error reading test log of {serial_number}: {str(e)}") from e
