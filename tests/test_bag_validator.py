"""Tests for the BagValidator client."""

import json
from unittest.mock import patch

import httpx
import pytest

from vault_ingest.clients import APIError, BagValidator, ResponseValidationError
from vault_ingest.exceptions import InvalidDepositError

BASE_URL = "http://localhost:20330"


def make_validator(handler, **config) -> BagValidator:
    """BagValidator whose requests are answered by *handler*."""
    http_client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return BagValidator({"base_url": BASE_URL, **config}, http_client=http_client)


class TestBagValidatorValidate:
    """Tests for BagValidator.validate()."""

    def test_sends_validate_command(self, tmp_path):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"isCompliant": True, "ruleViolations": []})

        result = make_validator(handler).validate(tmp_path)

        assert result.is_compliant is True
        assert requests[0].method == "POST"
        assert requests[0].url.path == "/validate"
        assert json.loads(requests[0].content) == {
            "bagLocation": str(tmp_path.resolve()),
            "packageType": "DEPOSIT",
            "level": "STAND-ALONE",
        }

    def test_configured_path_and_package_type(self, tmp_path):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"isCompliant": True})

        make_validator(handler, validate_path="/api/validate", package_type="MIGRATION").validate(tmp_path)

        assert requests[0].url.path == "/api/validate"
        assert json.loads(requests[0].content)["packageType"] == "MIGRATION"

    def test_non_compliant_bag(self, tmp_path):
        def handler(request):
            return httpx.Response(200, json={
                "isCompliant": False,
                "ruleViolations": [
                    {"rule": "1.2.1", "violation": "bag-info.txt is missing"},
                    {"rule": "3.1.2", "violation": "dataset.xml has no title"},
                ],
            })

        with pytest.raises(InvalidDepositError) as exc_info:
            make_validator(handler).validate(tmp_path)

        assert exc_info.value.violations == [
            "1.2.1: bag-info.txt is missing",
            "3.1.2: dataset.xml has no title",
        ]
        assert "bag-info.txt is missing" in exc_info.value.message

    def test_unexpected_response(self, tmp_path):
        def handler(request):
            return httpx.Response(200, json={"status": "ok"})

        with pytest.raises(ResponseValidationError):
            make_validator(handler).validate(tmp_path)

    def test_response_not_json(self, tmp_path):
        def handler(request):
            return httpx.Response(200, text="<html>proxy error</html>")

        with pytest.raises(ResponseValidationError):
            make_validator(handler).validate(tmp_path)

    def test_server_error(self, tmp_path):
        def handler(request):
            return httpx.Response(500, text="internal error")

        with pytest.raises(APIError) as exc_info:
            make_validator(handler).validate(tmp_path)

        assert exc_info.value.status_code == 500


class TestBagValidatorPing:
    """Tests for BagValidator.ping()."""

    def test_healthy(self):
        assert make_validator(lambda request: httpx.Response(200, text="pong")).ping() is True

    @patch("vault_ingest.clients.client.sleep")
    def test_unreachable(self, mock_sleep):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        assert make_validator(handler).ping() is False
