"""
Print dispatch adapters.

A print job is a list of descriptors sent to the label service as one
request. Dispatchers raise TransientPrintError on any failure; they never
decide what a failure means for the production transition that triggered
the print.
"""

import logging
from typing import Protocol

import httpx
from pydantic import BaseModel, Field

from trayflow.core.config import Settings, get_settings
from trayflow.domain.routing.enums import LabelType
from trayflow.domain.shared.exceptions import TransientPrintError

logger = logging.getLogger(__name__)


class PrintJob(BaseModel):
    """Descriptor for one label set."""

    target_identifier: str = Field(..., description="Serial or order the labels belong to")
    part_number: str
    sku: str
    fields: dict[str, str] = Field(
        default_factory=dict, description="Values keyed by SERIAL, PART, SKU, STATIC"
    )
    quantity: int = Field(1, ge=1)
    exclude_label_types: list[LabelType] = Field(default_factory=list)
    job_description: str = ""


class PrintReceipt(BaseModel):
    job_id: str | None = None
    message: str = ""


class PrintDispatcher(Protocol):
    def dispatch(self, jobs: list[PrintJob]) -> PrintReceipt:
        """Send all descriptors as one job."""
        ...


class HttpPrintDispatcher:
    """Posts print jobs to the label service over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ):
        """
        Args:
            base_url: Root URL of the label service
            timeout: Request timeout in seconds
            client: Optional preconfigured client, mainly for tests
        """
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def dispatch(self, jobs: list[PrintJob]) -> PrintReceipt:
        """
        Send the jobs and return the service's receipt.

        Raises:
            TransientPrintError: On transport failure, non-2xx status or an
                unreadable response body
        """
        payload = {"jobs": [job.model_dump(mode="json") for job in jobs]}
        try:
            response = self._client.post("/jobs", json=payload)
            response.raise_for_status()
            body = response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            raise TransientPrintError(
                f"Print service rejected job ({e.response.status_code})"
            ) from e
        except httpx.HTTPError as e:
            raise TransientPrintError(f"Print service unreachable: {str(e)}") from e
        except ValueError as e:
            raise TransientPrintError("Print service returned an invalid response") from e

        if not isinstance(body, dict):
            body = {}
        return PrintReceipt(
            job_id=str(body["job_id"]) if body.get("job_id") is not None else None,
            message=body.get("message", "queued"),
        )

    def close(self) -> None:
        self._client.close()


class NullPrintDispatcher:
    """Used when no label service is configured; jobs are only logged."""

    def dispatch(self, jobs: list[PrintJob]) -> PrintReceipt:
        for job in jobs:
            logger.info(
                f"Print service not configured, skipping labels for {job.target_identifier}"
            )
        return PrintReceipt(job_id=None, message="print service not configured")


def build_print_dispatcher(settings: Settings | None = None) -> PrintDispatcher:
    settings = settings or get_settings()
    if settings.PRINT_SERVICE_URL:
        return HttpPrintDispatcher(
            settings.PRINT_SERVICE_URL, timeout=settings.PRINT_TIMEOUT_SECONDS
        )
    return NullPrintDispatcher()
