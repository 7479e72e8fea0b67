from __future__ import annotations

import io

import pikepdf
import pytest
from fastapi.testclient import TestClient

import main
from models.pdf_types import ErrorResponse


@pytest.fixture()
def client() -> TestClient:
    return TestClient(main.app)


def _upload(path, filename: str = "doc.pdf"):
    return {"file": (filename, path.read_bytes(), "application/pdf")}


def test_root(client) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["version"] == main.API_VERSION


def test_health(client) -> None:
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert set(body["dependencies"]) == {"fontTools", "pdfminer", "pikepdf", "numpy"}


@pytest.mark.parametrize("route", ["/content-bounds", "/crop-to-content"])
def test_error_responses_documented(client, route) -> None:
    responses = client.get("/openapi.json").json()["paths"][route]["post"]["responses"]

    for status in ("400", "408", "500"):
        schema = responses[status]["content"]["application/json"]["schema"]
        assert schema["$ref"].endswith("/ErrorResponse")


def test_content_bounds(client, pdf_factory) -> None:
    path = pdf_factory(b"0 0 100 50 re f", b"")

    response = client.post("/content-bounds", files=_upload(path))

    assert response.status_code == 200
    body = response.json()
    assert body["coordinateOrigin"] == "bottom-left"
    assert body["pages"][0]["bounds"] == {"x": 0, "y": 0, "width": 100, "height": 50}
    assert body["pages"][1]["hasContent"] is False
    assert body["pages"][1]["bounds"] is None


def test_content_bounds_top_left(client, pdf_factory) -> None:
    path = pdf_factory(b"0 0 100 50 re f")

    response = client.post(
        "/content-bounds", files=_upload(path), data={"coordinate_origin": "top-left"}
    )

    assert response.status_code == 200
    assert response.json()["pages"][0]["bounds"] == {"x": 0, "y": 150, "width": 100, "height": 50}


def test_content_bounds_page_range(client, pdf_factory) -> None:
    path = pdf_factory(b"", b"0 0 1 1 re f", b"")

    response = client.post("/content-bounds?start_page=2&end_page=2", files=_upload(path))

    assert [page["pageNumber"] for page in response.json()["pages"]] == [2]


def test_content_bounds_rejects_inverted_range(client, pdf_factory) -> None:
    response = client.post("/content-bounds?start_page=3&end_page=1", files=_upload(pdf_factory(b"")))

    assert response.status_code == 400


def test_content_bounds_rejects_unknown_origin(client, pdf_factory) -> None:
    response = client.post(
        "/content-bounds", files=_upload(pdf_factory(b"")), data={"coordinate_origin": "center"}
    )

    assert response.status_code == 422


def test_non_pdf_filename_rejected(client, pdf_factory) -> None:
    response = client.post("/content-bounds", files=_upload(pdf_factory(b""), filename="doc.txt"))

    assert response.status_code == 400
    assert ErrorResponse.model_validate(response.json()).detail == "Only PDF files are supported"


def test_bad_signature_rejected(client) -> None:
    response = client.post(
        "/content-bounds", files={"file": ("doc.pdf", b"not a pdf at all", "application/pdf")}
    )

    assert response.status_code == 400
    assert "%PDF" in ErrorResponse.model_validate(response.json()).detail


def test_dispatch_failure_maps_to_422(client, pdf_factory, monkeypatch) -> None:
    from utils.validation import ContentDispatchError

    def broken(*args, **kwargs):
        raise ContentDispatchError("Page 1: unreadable", page_number=1)

    monkeypatch.setattr(main, "extract_content_bounds", broken)

    response = client.post("/content-bounds", files=_upload(pdf_factory(b"")))

    assert response.status_code == 422
    assert "unreadable" in response.json()["detail"]


def test_internal_error_maps_to_500(client, pdf_factory, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise TypeError("unsupported operand")

    monkeypatch.setattr("engine.bounds_processor.trace_page_bounds", broken)

    response = client.post("/content-bounds", files=_upload(pdf_factory(b"0 0 1 1 re f")))

    assert response.status_code == 500
    assert ErrorResponse.model_validate(response.json()).detail.startswith("Internal server error")


def test_crop_to_content(client, pdf_factory) -> None:
    path = pdf_factory(b"20 30 40 50 re f")

    response = client.post("/crop-to-content", files=_upload(path), data={"margin": "10"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "cropped_doc.pdf" in response.headers["content-disposition"]
    with pikepdf.open(io.BytesIO(response.content)) as pdf:
        assert [float(v) for v in pdf.pages[0].obj["/CropBox"]] == [10.0, 20.0, 70.0, 90.0]
