"""
Print application service.

Builds job descriptors from the label policy, hands them to the configured
dispatcher and appends the outcome to the print log. Printing always runs
after the triggering transition has committed: a failed print becomes a
warning on an otherwise successful result, and a failed log write is only
logged.
"""

import logging

from trayflow.domain.printing.label_policy import PrintJobKind, excluded_labels, printed_labels
from trayflow.domain.routing.enums import PrintStatus
from trayflow.domain.shared.exceptions import DomainError, TransientPrintError
from trayflow.infrastructure.database.models import PartNumber
from trayflow.infrastructure.printing.dispatcher import (
    PrintDispatcher,
    PrintJob,
    build_print_dispatcher,
)
from trayflow.utils import utc_now

from ..dtos.order_dtos import PrintOutcome
from .base_service import ApplicationServiceBase

logger = logging.getLogger(__name__)


class PrintService(ApplicationServiceBase):
    def __init__(self, dispatcher: PrintDispatcher | None = None, **kwargs):
        super().__init__(**kwargs)
        self._dispatcher = dispatcher or build_print_dispatcher(self._settings)

    @staticmethod
    def unit_job(kind: PrintJobKind, part: PartNumber, serial_number: str) -> PrintJob:
        return PrintJob(
            target_identifier=serial_number,
            part_number=part.part_number,
            sku=part.product_code,
            fields={
                "SERIAL": serial_number,
                "PART": part.part_number,
                "SKU": part.product_code,
                "STATIC": part.description or "",
            },
            quantity=1,
            exclude_label_types=excluded_labels(kind),
            job_description=f"{kind.value} {serial_number}",
        )

    @staticmethod
    def order_job(
        kind: PrintJobKind, part: PartNumber, order_number: str, quantity: int
    ) -> PrintJob:
        return PrintJob(
            target_identifier=order_number,
            part_number=part.part_number,
            sku=part.product_code,
            fields={
                "SERIAL": order_number,
                "PART": part.part_number,
                "SKU": part.product_code,
                "STATIC": part.description or "",
            },
            quantity=quantity,
            exclude_label_types=excluded_labels(kind),
            job_description=f"{kind.value} {order_number}",
        )

    def send(self, kind: PrintJobKind, jobs: list[PrintJob]) -> PrintOutcome:
        """
        Dispatch ``jobs`` as one print job and record the result.

        Args:
            kind: Kind of job, used for the log
            jobs: Descriptors sent together

        Returns:
            Outcome carrying a warning instead of raising on print failure
        """
        identifier = jobs[0].target_identifier if len(jobs) == 1 else f"{len(jobs)} units"
        try:
            receipt = self._dispatcher.dispatch(jobs)
        except TransientPrintError as e:
            logger.warning(f"Print of {kind.value} for {identifier} failed: {e.message}")
            self._record(kind, jobs, PrintStatus.ERROR, e.message, None)
            return PrintOutcome(identifier=identifier, printed=False, warning=e.message)

        logger.info(f"Printed {kind.value} for {identifier} (job {receipt.job_id})")
        self._record(kind, jobs, PrintStatus.SUCCESS, receipt.message, receipt.job_id)
        return PrintOutcome(identifier=identifier, printed=True, job_id=receipt.job_id)

    def _record(
        self,
        kind: PrintJobKind,
        jobs: list[PrintJob],
        status: PrintStatus,
        message: str | None,
        job_id: str | None,
    ) -> None:
        now = utc_now()
        labels = ",".join(label.value for label in printed_labels(kind))
        rows = [
            {
                "print_identifier": job.target_identifier,
                "status": status,
                "message": (message or "")[:500],
                "file_name": labels,
                "job_id": job_id,
                "job_content": job.model_dump_json(),
                "timestamp": now,
            }
            for job in jobs
        ]
        try:
            with self._transaction() as uow:
                uow.print_logs.add_many(rows)
        except DomainError as e:
            logger.error(f"Could not record print log for {kind.value}: {e.message}")
