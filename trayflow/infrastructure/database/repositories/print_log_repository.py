from typing import Any

from sqlalchemy import delete, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from trayflow.infrastructure.database.models import PrintLog

from .base import BaseRepository, DatabaseError


class PrintLogRepository(BaseRepository[PrintLog]):
    @property
    def entity_class(self):
        return PrintLog

    def add_many(self, rows: list[dict[str, Any]]) -> None:
        if rows:
            self._execute(insert(PrintLog).values(rows), "add_many")

    def find_for(self, print_identifier: str) -> list[PrintLog]:
        try:
            statement = (
                select(PrintLog)
                .where(PrintLog.print_identifier == print_identifier)
                .order_by(PrintLog.id)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error reading print log of {print_identifier}: {str(e)}"
            ) from e

    def delete_for(self, print_identifier: str) -> int:
        result = self._execute(
            delete(PrintLog).where(PrintLog.print_identifier == print_identifier),
            "delete_for",
        )
        return result.rowcount
