import json

import httpx
import pytest

from trayflow.core.config import Settings
from trayflow.domain.routing.enums import LabelType
from trayflow.domain.shared.exceptions import TransientPrintError
from trayflow.infrastructure.printing import (
    HttpPrintDispatcher,
    NullPrintDispatcher,
    PrintJob,
    build_print_dispatcher,
)


def make_job(serial: str = "KA001-001M") -> PrintJob:
    return PrintJob(
        target_identifier=serial,
        part_number="PN-100",
        sku="SKU-100",
        fields={"SERIAL": serial, "PART": "PN-100", "SKU": "SKU-100", "STATIC": ""},
        exclude_label_types=[LabelType.CARTON1, LabelType.CARTON2],
    )


def dispatcher_for(handler) -> HttpPrintDispatcher:
    client = httpx.Client(base_url="http://labels.test", transport=httpx.MockTransport(handler))
    return HttpPrintDispatcher("http://labels.test", client=client)


def test_posts_all_jobs_in_one_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"job_id": 42, "message": "queued"})

    receipt = dispatcher_for(handler).dispatch([make_job("A"), make_job("B")])

    assert receipt.job_id == "42"
    assert receipt.message == "queued"
    [request] = seen
    assert request.url.path == "/jobs"
    payload = json.loads(request.content)
    assert [job["target_identifier"] for job in payload["jobs"]] == ["A", "B"]
    assert payload["jobs"][0]["exclude_label_types"] == ["CARTON1", "CARTON2"]


def test_error_status_is_transient():
    dispatcher = dispatcher_for(lambda request: httpx.Response(503))
    with pytest.raises(TransientPrintError, match="503"):
        dispatcher.dispatch([make_job()])


def test_connection_failure_is_transient():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientPrintError, match="unreachable"):
        dispatcher_for(handler).dispatch([make_job()])


def test_unreadable_body_is_transient():
    dispatcher = dispatcher_for(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(TransientPrintError):
        dispatcher.dispatch([make_job()])


def test_empty_body_is_accepted():
    receipt = dispatcher_for(lambda request: httpx.Response(204)).dispatch([make_job()])
    assert receipt.job_id is None


def test_null_dispatcher_without_url():
    dispatcher = build_print_dispatcher(Settings(_env_file=None, PRINT_SERVICE_URL=None))
    assert isinstance(dispatcher, NullPrintDispatcher)
    assert dispatcher.dispatch([make_job()]).job_id is None


def test_http_dispatcher_with_url():
    dispatcher = build_print_dispatcher(
        Settings(_env_file=None, PRINT_SERVICE_URL="http://labels.test")
    )
    assert isinstance(dispatcher, HttpPrintDispatcher)
    dispatcher.close()
