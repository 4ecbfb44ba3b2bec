import inspect
import io

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from mortar_stager.web.app import app
from mortar_stager.web.routers.segment import segment

client = TestClient(app)


def create_image_bytes(rgba, ext=".png"):
    """Encode an RGBA array as an in-memory image file."""
    _, encoded = cv2.imencode(ext, cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA))
    return io.BytesIO(encoded.tobytes())


def test_health_endpoint():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_segment_default_params(random_rgba):
    response = client.post(
        "/api/segment",
        files={"file": ("tile.png", create_image_bytes(random_rgba), "image/png")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == 0
    assert body["stage_count"] == 6
    assert body["used_k"] == 5
    assert body["label_ids"] == []
    permilles = [s["mortar_permille"] for s in body["stages"]]
    assert permilles == sorted(permilles)
    assert body["stages"][0]["image_png_base64"]


def test_segment_refine_without_images(gradient_rgba):
    response = client.post(
        "/api/segment",
        files={"file": ("grad.png", create_image_bytes(gradient_rgba), "image/png")},
        data={
            "stage_steps": "4",
            "stage_idx": "2",
            "refine_mode": "true",
            "refine_steps": "3",
            "include_images": "false",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["stage_count"] == 3
    assert body["stages"][1]["threshold_q"] == pytest.approx(0.4)
    assert body["stages"][1]["mortar_permille"] == pytest.approx(400.0, abs=15.0)
    assert all(s["image_png_base64"] is None for s in body["stages"])


def test_segment_with_roi(gradient_rgba):
    response = client.post(
        "/api/segment",
        files={"file": ("grad.png", create_image_bytes(gradient_rgba), "image/png")},
        data={"roi": "0,0;127,0;127,49;0,49", "stage_steps": "1"},
    )
    assert response.status_code == 200
    assert response.json()["stage_count"] == 1


def test_segment_undecodable_upload():
    response = client.post(
        "/api/segment",
        files={"file": ("broken.png", io.BytesIO(b"not an image"), "image/png")},
    )
    assert response.status_code == 400


def test_segment_malformed_roi(random_rgba):
    response = client.post(
        "/api/segment",
        files={"file": ("tile.png", create_image_bytes(random_rgba), "image/png")},
        data={"roi": "1,2;oops"},
    )
    assert response.status_code == 400
    assert "Invalid ROI point" in response.json()["detail"]


def test_segment_roi_too_small(random_rgba):
    response = client.post(
        "/api/segment",
        files={"file": ("tile.png", create_image_bytes(random_rgba), "image/png")},
        data={"roi": "10,10;14,10;14,14;10,14"},
    )
    assert response.status_code == 422
    assert response.json()["detail"] == {"status": -6, "message": "Too few pixels in ROI"}


def test_segment_internal_error_maps_to_500(random_rgba, mocker):
    mocker.patch("cv2.bitwise_and", side_effect=cv2.error("render failed"))
    response = client.post(
        "/api/segment",
        files={"file": ("tile.png", create_image_bytes(random_rgba), "image/png")},
    )
    assert response.status_code == 500
    assert response.json()["detail"]["status"] == -100


def test_segment_grayscale_upload_is_converted():
    gray = np.tile(np.arange(0, 250, 2, dtype=np.uint8), (40, 1))
    _, encoded = cv2.imencode(".png", gray)
    response = client.post(
        "/api/segment",
        files={"file": ("gray.png", io.BytesIO(encoded.tobytes()), "image/png")},
        data={"stage_steps": "2"},
    )
    assert response.status_code == 200
    assert response.json()["stage_count"] == 2


def test_segment_endpoint_runs_off_event_loop():
    """CPU 연산 엔드포인트는 동기 함수로 선언되어 스레드풀에서 실행된다"""
    assert not inspect.iscoroutinefunction(segment)
