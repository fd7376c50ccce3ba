"""Tests for file tools."""

from __future__ import annotations

import base64

import httpx
import pytest

from agentsandbox.exceptions import ApiRequestError, InvalidEncodingError, InvalidUsageError
from agentsandbox.tools import decode_base64_payload


@pytest.fixture(autouse=True)
def _token(api_key: str) -> None:
    """Every test here authenticates through SANDBOX_API_KEY."""


class TestDecodeBase64:
    def test_valid(self) -> None:
        assert decode_base64_payload("AAEC/w==") == bytes([0, 1, 2, 255])

    def test_round_trip(self) -> None:
        assert base64.b64encode(decode_base64_payload("AAEC/w==")) == b"AAEC/w=="
        assert decode_base64_payload(base64.b64encode(bytes([0, 1, 2, 255])).decode()) == bytes(
            [0, 1, 2, 255]
        )

    def test_empty(self) -> None:
        assert decode_base64_payload("") == b""

    @pytest.mark.parametrize("data", ["not valid base64!!!", "abc$def", "QUJD\n", "QQ==="])
    def test_invalid(self, data: str) -> None:
        with pytest.raises(InvalidEncodingError, match="Invalid base64 encoding in file_data"):
            decode_base64_payload(data)

    def test_bad_padding(self) -> None:
        with pytest.raises(InvalidEncodingError):
            decode_base64_payload("QUJ")


class TestUploadFile:
    def test_multipart_body(self, json_transport, registry_for) -> None:
        transport = json_transport({"file_id": "f-new", "filename": "bin.dat"})
        result = registry_for(transport).execute(
            "sandbox_upload_file", "id", {"file_data": "AAEC/w==", "filename": "bin.dat"}
        )

        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.test/v1/files"
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.read()
        assert b'filename="bin.dat"' in body
        assert bytes([0, 1, 2, 255]) in body
        assert result.details == {"ok": True, "filename": "bin.dat", "file_id": "f-new"}

    def test_session_id_in_query(self, json_transport, registry_for) -> None:
        transport = json_transport({"file_id": "f-1"})
        registry_for(transport).execute(
            "sandbox_upload_file",
            "id",
            {"file_data": "aGVsbG8=", "filename": "hello.txt", "session_id": "sess-1"},
        )
        assert str(transport.requests[0].url) == "https://api.test/v1/files?session_id=sess-1"
        assert b"hello" in transport.requests[0].read()

    @pytest.mark.parametrize("data", ["not valid base64!!!", "abc$def"])
    def test_invalid_payload_sends_nothing(self, json_transport, registry_for, data) -> None:
        transport = json_transport({})
        with pytest.raises(InvalidEncodingError):
            registry_for(transport).execute(
                "sandbox_upload_file", "id", {"file_data": data, "filename": "x"}
            )
        assert transport.requests == []

    def test_filename_required(self, json_transport, registry_for) -> None:
        with pytest.raises(InvalidUsageError):
            registry_for(json_transport({})).execute(
                "sandbox_upload_file", "id", {"file_data": "AA=="}
            )


class TestDownloadFile:
    def test_text_content(self, transport_for, registry_for) -> None:
        transport = transport_for(
            lambda request: httpx.Response(
                200, headers={"content-type": "text/csv"}, text="a,b\n1,2\n"
            )
        )
        result = registry_for(transport).execute(
            "sandbox_download_file", "id", {"file_id": "f-1"}
        )

        assert str(transport.requests[0].url) == "https://api.test/v1/files/f-1"
        assert result.text == "a,b\n1,2\n"
        assert result.details == {"ok": True, "file_id": "f-1"}

    def test_json_content_is_pretty_printed(self, json_transport, registry_for) -> None:
        transport = json_transport({"rows": [1, 2]})
        result = registry_for(transport).execute(
            "sandbox_download_file", "id", {"file_id": "f-1"}
        )
        assert result.text == '{\n  "rows": [\n    1,\n    2\n  ]\n}'

    def test_large_content_truncated(self, transport_for, registry_for) -> None:
        transport = transport_for(
            lambda request: httpx.Response(
                200, headers={"content-type": "text/plain"}, text="y" * 60_000
            )
        )
        result = registry_for(transport).execute(
            "sandbox_download_file", "id", {"file_id": "big"}
        )
        assert result.text.endswith("... [truncated — 60000 chars total]")
        assert result.text.startswith("y" * 50_000 + "\n\n")


class TestListFiles:
    def test_no_params(self, json_transport, registry_for) -> None:
        transport = json_transport({"files": []})
        result = registry_for(transport).execute("sandbox_list_files", "id", {})
        assert str(transport.requests[0].url) == "https://api.test/v1/files"
        assert result.details == {"ok": True, "files": []}

    def test_limit_and_offset(self, json_transport, registry_for) -> None:
        transport = json_transport({"files": []})
        registry_for(transport).execute("sandbox_list_files", "id", {"limit": 25, "offset": 50})
        assert str(transport.requests[0].url) == "https://api.test/v1/files?limit=25&offset=50"

    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 101}, {"offset": -1}])
    def test_out_of_range(self, json_transport, registry_for, params) -> None:
        transport = json_transport({})
        with pytest.raises(InvalidUsageError):
            registry_for(transport).execute("sandbox_list_files", "id", params)
        assert transport.requests == []


class TestDeleteFile:
    def test_delete(self, json_transport, registry_for) -> None:
        transport = json_transport({"status": "deleted"})
        result = registry_for(transport).execute("sandbox_delete_file", "id", {"file_id": "f-1"})

        assert transport.requests[0].method == "DELETE"
        assert str(transport.requests[0].url) == "https://api.test/v1/files/f-1"
        assert result.details == {"ok": True, "file_id": "f-1", "status": "deleted"}

    def test_already_absent(self, json_transport, registry_for) -> None:
        transport = json_transport({"detail": "missing"}, status_code=404)
        result = registry_for(transport).execute("sandbox_delete_file", "id", {"file_id": "f-1"})

        assert result.text == "File deleted (already absent)."
        assert result.details == {"ok": True, "file_id": "f-1", "already_gone": True}

    def test_transient_error_then_gone(self, transport_for, registry_for) -> None:
        responses = iter([httpx.Response(502, text="bad gateway"), httpx.Response(404)])
        transport = transport_for(lambda request: next(responses))

        result = registry_for(transport).execute("sandbox_delete_file", "id", {"file_id": "f-1"})

        assert len(transport.requests) == 2
        assert result.details["already_gone"] is True

    def test_rate_limit_exhausted(self, json_transport, registry_for) -> None:
        transport = json_transport({"detail": "slow down"}, status_code=429)
        with pytest.raises(ApiRequestError, match=r"API DELETE /v1/files/f-1 failed \(429\)"):
            registry_for(transport).execute("sandbox_delete_file", "id", {"file_id": "f-1"})
        assert len(transport.requests) == 3
