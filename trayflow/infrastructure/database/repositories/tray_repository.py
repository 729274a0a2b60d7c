from datetime import datetime

from sqlalchemy import update

from trayflow.infrastructure.database.models import TrayClaim

from .base import BaseRepository


class TrayClaimRepository(BaseRepository[TrayClaim]):
    """Repository for the per-tray rows that serialise batch generation."""

    @property
    def entity_class(self):
        return TrayClaim

    def claim(self, tray_id: str, order_number: str, now: datetime) -> None:
        """
        Write-lock the tray row for the rest of the transaction.

        The row is created on first use; a concurrent creator surfaces as
        EntityAlreadyExistsError and the whole transaction rolls back.
        """
        statement = (
            update(TrayClaim)
            .where(TrayClaim.tray_id == tray_id)
            .values(order_number=order_number, claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        if self._execute(statement, "claim").rowcount == 0:
            self.add(TrayClaim(tray_id=tray_id, order_number=order_number, claimed_at=now))
        self.session.expire_all()

    def release(self, tray_id: str, order_number: str) -> bool:
        statement = (
            update(TrayClaim)
            .where(TrayClaim.tray_id == tray_id)
            .where(TrayClaim.order_number == order_number)
            .values(order_number=None)
            .execution_options(synchronize_session=False)
        )
        released = self._execute(statement, "release").rowcount == 1
        self.session.expire_all()
        return released
