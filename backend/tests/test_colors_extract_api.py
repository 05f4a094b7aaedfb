"""
API integration tests for the color extraction endpoint.

Tests the complete HTTP contract:
- JSON request body with image_url
- success and error response shapes
- parameter validation and error handling
"""

import asyncio
import io
import threading
import time
from unittest.mock import patch

import numpy as np
import pytest
import requests
from PIL import Image

from conftest import decreasing_frequency_row, encode_png, mock_http_response
from main import _watch_disconnect


class TestColorExtractAPI:
    """Test the /extractColors endpoint"""

    @patch("app.services.imaging.requests.get")
    def test_solid_red_image(self, mock_get, test_client, red_png):
        """100x100 solid red image yields a single-entry palette"""
        mock_get.return_value = mock_http_response(red_png)

        response = test_client.post("/extractColors", json={"image_url": "https://cdn.example.com/red.png"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {"colors": ["rgb(255,0,0)"]}

    @pytest.mark.parametrize("body", [{}, {"image_url": ""}, {"image_url": None}, {"other": "x"}])
    def test_missing_image_url(self, test_client, body):
        """Missing or empty image_url is a 400 with the fixed message"""
        response = test_client.post("/extractColors", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Image URL not provided."}

    @patch("app.services.imaging.requests.get")
    def test_unreachable_url(self, mock_get, test_client):
        """Network failure becomes a 400 error body, never an unhandled exception"""
        mock_get.side_effect = requests.ConnectionError("Connection refused")

        response = test_client.post("/extractColors", json={"image_url": "http://10.255.255.1/img.png"})

        assert response.status_code == 400
        data = response.json()
        assert set(data) == {"error"}
        assert data["error"]

    @patch("app.services.imaging.requests.get")
    def test_non_2xx_status(self, mock_get, test_client):
        not_found = mock_http_response()
        not_found.raise_for_status.side_effect = requests.HTTPError("404 Client Error: Not Found")
        mock_get.return_value = not_found

        response = test_client.post("/extractColors", json={"image_url": "https://cdn.example.com/gone.png"})

        assert response.status_code == 400
        assert response.json() == {"error": "Failed to fetch the image"}

    @patch("app.services.imaging.requests.get")
    def test_top_three_of_fifty(self, mock_get, test_client, monkeypatch):
        """num_colors=3 returns the three most frequent colors in order"""
        from app.config import config
        monkeypatch.setattr(config, "SAMPLE_STRIDE", 1)
        monkeypatch.setattr(config, "SAMPLE_OFFSET", 0)
        monkeypatch.setattr(config, "MAX_EDGE", 4000)
        mock_get.return_value = mock_http_response(encode_png(decreasing_frequency_row(50, 60)))

        response = test_client.post(
            "/extractColors",
            json={"image_url": "https://cdn.example.com/row.png", "num_colors": 3}
        )

        assert response.status_code == 200
        expected = [f"rgb({i * 5},{255 - i * 5},{(i * 37) % 256})" for i in range(3)]
        assert response.json() == {"colors": expected}

    @patch("app.services.imaging.requests.get")
    def test_camel_case_num_colors(self, mock_get, test_client, monkeypatch):
        from app.config import config
        monkeypatch.setattr(config, "SAMPLE_STRIDE", 1)
        monkeypatch.setattr(config, "SAMPLE_OFFSET", 0)
        monkeypatch.setattr(config, "MAX_EDGE", 4000)
        mock_get.return_value = mock_http_response(encode_png(decreasing_frequency_row(10, 20)))

        response = test_client.post(
            "/extractColors",
            json={"image_url": "https://cdn.example.com/row.png", "numColors": 2}
        )

        assert len(response.json()["colors"]) == 2

    @patch("app.services.imaging.requests.get")
    def test_hex_format_and_swatch(self, mock_get, test_client, red_png):
        mock_get.return_value = mock_http_response(red_png)

        response = test_client.post(
            "/extractColors",
            json={"image_url": "https://cdn.example.com/red.png", "color_format": "hex", "include_swatch": True}
        )

        data = response.json()
        assert data["colors"] == ["#FF0000"]
        assert isinstance(data["swatch_png_b64"], str) and data["swatch_png_b64"]

    def test_invalid_json(self, test_client):
        response = test_client.post(
            "/extractColors",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_non_object_body(self, test_client):
        response = test_client.post("/extractColors", json=["https://cdn.example.com/a.png"])
        assert response.status_code == 400
        assert response.json() == {"error": "Request body must be a JSON object."}

    def test_invalid_color_format(self, test_client):
        response = test_client.post(
            "/extractColors",
            json={"image_url": "https://cdn.example.com/a.png", "color_format": "hsl"}
        )
        assert response.status_code == 400
        assert "color_format" in response.json()["error"]

    def test_get_not_allowed(self, test_client):
        assert test_client.get("/extractColors").status_code == 405

    @patch("app.services.imaging.requests.get")
    def test_metrics_endpoint_reflects_requests(self, mock_get, test_client, red_png):
        mock_get.return_value = mock_http_response(red_png)
        test_client.post("/extractColors", json={"image_url": "https://cdn.example.com/red.png"})
        test_client.post("/extractColors", json={})

        summary = test_client.get("/metrics").json()

        assert summary["requests_total"] == 2
        assert summary["succeeded_total"] == 1
        assert summary["failures_by_kind"] == {"invalid_request": 1}
        assert summary["palette_size"]["max"] == 1
        assert "total" in summary["stage_timings_ms"]

    @pytest.mark.parametrize("value", [True, False, 2.0, "3"])
    def test_num_colors_must_be_integer(self, test_client, value):
        with patch("app.services.imaging.requests.get") as mock_get:
            response = test_client.post(
                "/extractColors",
                json={"image_url": "https://cdn.example.com/red.png", "num_colors": value}
            )
            mock_get.assert_not_called()

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid field")

    @patch("app.services.imaging.requests.get")
    def test_sixteen_bit_grayscale_png(self, mock_get, test_client):
        out = io.BytesIO()
        Image.fromarray(np.full((20, 20), 40000, dtype=np.uint16)).save(out, format="PNG")
        mock_get.return_value = mock_http_response(out.getvalue())

        response = test_client.post("/extractColors", json={"image_url": "https://cdn.example.com/gray16.png"})

        assert response.json() == {"colors": ["rgb(156,156,156)"]}

    @patch("app.services.imaging.requests.get")
    def test_oversized_image_rejected(self, mock_get, test_client):
        mock_get.return_value = mock_http_response(headers={"Content-Length": str(50 * 1024 * 1024)})

        response = test_client.post("/extractColors", json={"image_url": "https://cdn.example.com/huge.png"})

        assert response.status_code == 400
        assert response.json() == {"error": "Image too large. Maximum size: 10MB"}

    @pytest.mark.parametrize("method,path", [("get", "/"), ("post", "/colors/extract")])
    def test_unknown_routes(self, test_client, method, path):
        assert getattr(test_client, method)(path).status_code == 404


class TestClientDisconnect:
    """Test cancellation when the caller goes away mid-request"""

    def test_disconnect_cancels_extraction(self, test_client, monkeypatch, red_png):
        async def always_disconnected(self):
            return True

        def slow_fetch(*args, **kwargs):
            time.sleep(0.3)
            return mock_http_response(red_png)

        monkeypatch.setattr("starlette.requests.Request.is_disconnected", always_disconnected)

        with patch("app.services.imaging.requests.get", side_effect=slow_fetch), \
                patch("app.services.colors.extraction.decode_image") as mock_decode:
            response = test_client.post("/extractColors", json={"image_url": "https://cdn.example.com/red.png"})
            mock_decode.assert_not_called()

        assert response.status_code == 400
        assert response.json()["error"].startswith("Extraction cancelled before")
        assert test_client.get("/metrics").json()["failures_by_kind"] == {"cancelled": 1}

    def test_watcher_sets_event_on_disconnect(self):
        class FakeRequest:
            def __init__(self, connected_polls):
                self.polls = 0
                self.connected_polls = connected_polls

            async def is_disconnected(self):
                self.polls += 1
                return self.polls > self.connected_polls

        request = FakeRequest(connected_polls=2)
        cancel = threading.Event()

        asyncio.run(_watch_disconnect(request, cancel, interval=0.01))

        assert cancel.is_set()
        assert request.polls == 3

    def test_watcher_stops_when_already_cancelled(self):
        class NeverCalled:
            async def is_disconnected(self):
                raise AssertionError("should not poll")

        cancel = threading.Event()
        cancel.set()

        asyncio.run(_watch_disconnect(NeverCalled(), cancel, interval=0.01))
