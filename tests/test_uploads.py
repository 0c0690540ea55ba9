import os

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from manuorder.core.exceptions import ValidationError, UploadError, NotFoundError, InternalError
from manuorder.files.storage import (
    S3BlobStore, LocalBlobStore, FallbackBlobStore, key_from_reference, reference_for_key,
)
from manuorder.files.validation import validate_upload, safe_file_name

MIB = 1024 * 1024


class TestValidation:

    def test_pdf_within_limit_passes(self):
        assert validate_upload("drawing.pdf", "application/pdf", 2 * MIB) == ("drawing.pdf", "application/pdf")

    def test_oversize_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_upload("huge.pdf", "application/pdf", 15 * MIB)

    def test_limit_is_inclusive(self):
        validate_upload("edge.pdf", "application/pdf", 10 * MIB)

    def test_empty_file_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_upload("empty.pdf", "application/pdf", 0)

    @pytest.mark.parametrize("name", ["part.STEP", "part.stp", "part.iges", "part.igs", "plan.dwg"])
    def test_cad_extension_with_generic_type(self, name):
        assert validate_upload(name, "application/octet-stream", 100) == (name, "application/octet-stream")
        assert validate_upload(name, None, 100) == (name, "application/octet-stream")

    def test_extension_does_not_override_a_specific_type(self):
        with pytest.raises(ValidationError):
            validate_upload("payload.step", "text/html", 100)

    @pytest.mark.parametrize("name,content_type", [
        ("script.exe", "application/x-msdownload"),
        ("notes.txt", "text/plain"),
        ("archive.zip", "application/octet-stream"),
    ])
    def test_unsupported_types(self, name, content_type):
        with pytest.raises(ValidationError):
            validate_upload(name, content_type, 100)

    def test_names_are_reduced_to_base_name(self):
        assert safe_file_name("../../etc/passwd.pdf") == "passwd.pdf"
        assert safe_file_name("C:\\drawings\\bracket.pdf") == "bracket.pdf"
        with pytest.raises(ValidationError):
            safe_file_name("../")


class TestS3BlobStore:

    @pytest.fixture
    def s3_client(self, mocker):
        client = mocker.Mock()
        client.generate_presigned_url.return_value = "https://bucket.s3.amazonaws.com/signed"
        return client

    def test_put_uses_private_acl_and_returns_route_reference(self, s3_client, mocker):
        mocker.patch("manuorder.files.storage._epoch_ms", return_value=1700000000000)
        store = S3BlobStore("design-bucket", client=s3_client)

        reference = store.put(b"%PDF", "../bracket v2.pdf", "application/pdf")

        s3_client.put_object.assert_called_once_with(
            Bucket="design-bucket",
            Key="uploads/1700000000000-bracket v2.pdf",
            Body=b"%PDF",
            ContentType="application/pdf",
            ACL="private",
        )
        assert reference == "/api/v1/files/uploads%2F1700000000000-bracket%20v2.pdf"
        assert key_from_reference(reference) == "uploads/1700000000000-bracket v2.pdf"

    def test_put_failure_is_upload_error(self, s3_client):
        s3_client.put_object.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")
        with pytest.raises(UploadError):
            S3BlobStore("design-bucket", client=s3_client).put(b"x", "a.pdf", "application/pdf")

    def test_signed_url_uses_configured_ttl(self, s3_client):
        store = S3BlobStore("design-bucket", client=s3_client, signed_url_ttl=600)
        url = store.get_retrievable_url(reference_for_key("uploads/1-a.pdf"))
        assert url == "https://bucket.s3.amazonaws.com/signed"
        s3_client.generate_presigned_url.assert_called_once_with(
            "get_object", Params={"Bucket": "design-bucket", "Key": "uploads/1-a.pdf"}, ExpiresIn=600,
        )

    def test_missing_object_is_not_found(self, s3_client):
        s3_client.head_object.side_effect = ClientError({"Error": {"Code": "404"}}, "HeadObject")
        with pytest.raises(NotFoundError):
            S3BlobStore("design-bucket", client=s3_client).get_retrievable_url("uploads/gone.pdf")

    def test_client_is_built_with_timeouts(self, mocker):
        boto_client = mocker.patch("manuorder.files.storage.boto3.client")
        S3BlobStore("design-bucket")
        _, kwargs = boto_client.call_args
        config = kwargs["config"]
        assert config.connect_timeout > 0
        assert config.read_timeout > 0
        assert config.retries["max_attempts"] >= 1


class TestLocalAndFallback:

    def test_local_store_writes_timestamped_file(self, tmp_path, mocker):
        mocker.patch("manuorder.files.storage._epoch_ms", return_value=42)
        store = LocalBlobStore(str(tmp_path))
        first = store.put(b"one", "a.pdf", "application/pdf")
        second = store.put(b"two", "a.pdf", "application/pdf")

        assert first == "/uploads/42-a.pdf"
        assert second == "/uploads/43-a.pdf"
        assert (tmp_path / "42-a.pdf").read_bytes() == b"one"
        assert store.get_retrievable_url(first) == "/uploads/42-a.pdf"
        with pytest.raises(NotFoundError):
            store.get_retrievable_url("/uploads/missing.pdf")

    @pytest.mark.parametrize("name", ["bracket%20v2.pdf", "bracket v2.pdf", "part#3.pdf", "what?.pdf"])
    def test_local_reference_resolves_for_awkward_names(self, tmp_path, name):
        store = FallbackBlobStore(None, LocalBlobStore(str(tmp_path)))
        reference = store.put(b"x", name, "application/pdf")

        assert "#" not in reference and "?" not in reference and " " not in reference
        assert store.get_retrievable_url(reference) == reference
        stored = os.listdir(tmp_path)
        assert len(stored) == 1 and stored[0].endswith("-" + name)

    def test_primary_failure_falls_back_to_local(self, tmp_path, mocker):
        primary = mocker.Mock(backend="s3")
        primary.put.side_effect = UploadError(technical_details="endpoint unreachable")
        store = FallbackBlobStore(primary, LocalBlobStore(str(tmp_path)))

        reference = store.put(b"data", "plan.dwg", "application/octet-stream")

        assert reference.startswith("/uploads/")
        assert os.listdir(tmp_path) == [reference[len("/uploads/"):]]

    def test_network_fault_in_s3_falls_back(self, tmp_path):
        class Unreachable:
            def put_object(self, **kwargs):
                raise EndpointConnectionError(endpoint_url="https://s3.example")

        store = FallbackBlobStore(S3BlobStore("b", client=Unreachable()), LocalBlobStore(str(tmp_path)))
        assert store.put(b"data", "a.pdf", "application/pdf").startswith("/uploads/")

    def test_failing_fallback_is_internal_error(self, tmp_path, mocker):
        primary = mocker.Mock(backend="s3")
        primary.put.side_effect = UploadError()
        fallback = mocker.Mock(backend="local")
        fallback.put.side_effect = UploadError(technical_details="disk full")

        with pytest.raises(InternalError):
            FallbackBlobStore(primary, fallback).put(b"x", "a.pdf", "application/pdf")

    def test_unconfigured_primary_goes_straight_to_local(self, tmp_path):
        store = FallbackBlobStore(None, LocalBlobStore(str(tmp_path)))
        assert store.backend == "local"
        reference = store.put(b"x", "a.pdf", "application/pdf")
        assert store.get_retrievable_url(reference) == reference
        with pytest.raises(NotFoundError):
            store.get_retrievable_url(reference_for_key("uploads/1-a.pdf"))


class TestUploadEndpoint:

    def test_oversize_upload_never_reaches_store(self, client, blob_store, customer_headers, mocker):
        put = mocker.spy(blob_store, "put")
        response = client.post(
            "/api/v1/upload",
            files={"file": ("huge.pdf", b"\0" * (15 * MIB), "application/pdf")},
            headers=customer_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        put.assert_not_called()

    def test_pdf_upload_is_usable_in_order(self, client, blob_store, customer_headers):
        response = client.post(
            "/api/v1/upload",
            files={"file": ("bracket.pdf", b"%PDF" + b"\0" * (2 * MIB), "application/pdf")},
            headers=customer_headers,
        )
        assert response.status_code == 200
        uploaded = response.json()
        assert uploaded["file_name"] == "bracket.pdf"
        assert uploaded["file_type"] == "application/pdf"
        assert uploaded["file_size"] == 2 * MIB + 4
        assert uploaded["file_url"] in blob_store.objects

        created = client.post(
            "/api/v1/orders/",
            json={"customer_notes": "Brackets per drawing", "design_files": [uploaded]},
            headers=customer_headers,
        )
        assert created.status_code == 201
        assert created.json()["design_files"][0]["file_url"] == uploaded["file_url"]

    def test_cad_file_without_type(self, client, customer_headers):
        response = client.post(
            "/api/v1/upload",
            files={"file": ("housing.step", b"ISO-10303-21;", "application/octet-stream")},
            headers=customer_headers,
        )
        assert response.status_code == 200
        assert response.json()["file_type"] == "application/octet-stream"

    def test_missing_file_field(self, client, customer_headers):
        response = client.post("/api/v1/upload", data={"other": "x"}, headers=customer_headers)
        assert response.status_code == 400

    def test_upload_requires_session(self, client):
        response = client.post("/api/v1/upload", files={"file": ("a.pdf", b"x", "application/pdf")})
        assert response.status_code == 401


class TestDownloadEndpoint:

    def upload(self, client, headers):
        response = client.post(
            "/api/v1/upload", files={"file": ("a.pdf", b"%PDF", "application/pdf")}, headers=headers
        )
        return response.json()

    def test_redirects_to_signed_url(self, client, customer_headers):
        uploaded = self.upload(client, customer_headers)
        response = client.get(uploaded["file_url"], headers=customer_headers, follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"].startswith("https://blobs.example.test/uploads/")

    def test_attached_file_follows_order_ownership(self, client, customer_headers, other_headers, admin_headers):
        uploaded = self.upload(client, customer_headers)
        client.post(
            "/api/v1/orders/",
            json={"customer_notes": "With drawing", "design_files": [uploaded]},
            headers=customer_headers,
        )
        assert client.get(uploaded["file_url"], headers=other_headers, follow_redirects=False).status_code == 403
        assert client.get(uploaded["file_url"], headers=admin_headers, follow_redirects=False).status_code == 307

    def test_unknown_key_is_404(self, client, customer_headers):
        response = client.get("/api/v1/files/uploads%2Fnope.pdf", headers=customer_headers, follow_redirects=False)
        assert response.status_code == 404
