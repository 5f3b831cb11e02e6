"""Tests for the HTTP API."""

import io

import pytest
from fastapi.testclient import TestClient

import app.main as main
from app.storage.file_storage import FileSystemStorageService


@pytest.fixture
def client(storage_root, mock_ingestion_service, monkeypatch):
    """Test client running the app lifespan over a temporary folder."""
    service = FileSystemStorageService(storage_root, mock_ingestion_service)
    monkeypatch.setattr(main, "build_storage_service", lambda settings: service)

    with TestClient(main.app, raise_server_exceptions=False) as client:
        yield client


def upload(client, filename, content, content_type="application/json"):
    files = {"file": (filename, io.BytesIO(content), content_type)}
    return client.post("/api/v1/files", files=files)


class TestStartup:
    """Tests for application startup and shutdown."""

    def test_startup_resets_storage(self, storage_root, mock_ingestion_service, monkeypatch):
        """Test files left from a previous run are wiped at startup."""
        storage_root.mkdir(parents=True)
        (storage_root / "old.json").write_text("[]")
        service = FileSystemStorageService(storage_root, mock_ingestion_service)
        monkeypatch.setattr(main, "build_storage_service", lambda settings: service)

        with TestClient(main.app) as client:
            assert client.get("/api/v1/files").json() == []
            assert storage_root.is_dir()

        mock_ingestion_service.vector_store.initialize.assert_awaited_once()
        mock_ingestion_service.vector_store.close.assert_awaited_once()

    def test_requests_before_startup_unavailable(self):
        """Test endpoints answer 503 when services are not running."""
        client = TestClient(main.app)

        response = client.get("/api/v1/files")

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "Service Unavailable"
        assert data["detail"] == "Storage service not initialized"
        assert data["request_id"]


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["redis_index"] == main.settings.redis_index

    def test_unknown_route(self, client):
        """Test routing errors use the error response body."""
        response = client.get("/api/v1/unknown")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "Not Found"
        assert data["request_id"]


class TestUpload:
    """Tests for the upload endpoint."""

    def test_upload_success(self, client, storage_root, mock_ingestion_service, sample_records_json):
        """Test a JSON upload is stored and indexed."""
        response = upload(client, "records.json", sample_records_json)

        assert response.status_code == 201
        data = response.json()
        assert data["filename"] == "records.json"
        assert data["file_size"] == len(sample_records_json)
        assert data["records_indexed"] == 2
        assert (storage_root / "records.json").read_bytes() == sample_records_json
        mock_ingestion_service.ingest.assert_awaited_once()

    def test_upload_empty_file(self, client, storage_root):
        """Test empty uploads are rejected with 400."""
        response = upload(client, "empty.json", b"")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Storage Error"
        assert "empty file" in data["detail"]
        assert data["request_id"]
        assert not (storage_root / "empty.json").exists()

    def test_upload_outside_root(self, client, storage_root):
        """Test path traversal in the declared filename is rejected."""
        response = upload(client, "../evil.json", b"{}")

        assert response.status_code == 400
        assert "outside current directory" in response.json()["detail"]
        assert not (storage_root.parent / "evil.json").exists()

    def test_upload_too_large(self, client, storage_root, monkeypatch):
        """Test uploads over the size limit are rejected."""
        monkeypatch.setattr(main.settings, "max_file_size", 4)

        response = upload(client, "big.json", b"[1, 2, 3]")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Bad Request"
        assert "exceeds maximum allowed size" in data["detail"]
        assert data["request_id"]
        assert not (storage_root / "big.json").exists()

    def test_upload_blank_filename(self, client, storage_root, mock_ingestion_service):
        """Test a file part with an empty filename is rejected with 400."""
        body = (
            b"--boundary\r\n"
            b'Content-Disposition: form-data; name="file"; filename=""\r\n'
            b"Content-Type: application/json\r\n"
            b"\r\n"
            b"{}\r\n"
            b"--boundary--\r\n"
        )

        response = client.post(
            "/api/v1/files",
            content=body,
            headers={"Content-Type": "multipart/form-data; boundary=boundary"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Bad Request"
        assert data["detail"] == "Filename is required"
        assert data["request_id"]
        assert list(storage_root.iterdir()) == []
        mock_ingestion_service.ingest.assert_not_awaited()

    def test_upload_ingestion_failure(self, client, storage_root, mock_ingestion_service):
        """Test indexing errors fail the request but keep the file."""
        mock_ingestion_service.ingest.side_effect = RuntimeError("redis unavailable")

        response = upload(client, "records.json", b"[]")

        assert response.status_code == 500
        assert "redis unavailable" in response.json()["detail"]
        assert (storage_root / "records.json").exists()

    def test_upload_write_failure(self, client, storage_root):
        """Test filesystem failures map to 500."""
        (storage_root / "taken").mkdir()

        response = upload(client, "taken", b"{}")

        assert response.status_code == 500
        assert response.json()["error"] == "Storage Error"

    def test_upload_missing_file_field(self, client):
        """Test a request without a file is a validation error."""
        response = client.post("/api/v1/files")

        assert response.status_code == 422
        assert response.json()["error"] == "Validation Error"


class TestFiles:
    """Tests for listing, serving and deleting stored files."""

    def test_list_files(self, client, storage_root):
        """Test listing shows uploaded files and no nested content."""
        upload(client, "a.json", b"[]")
        upload(client, "b.json", b"[]")
        (storage_root / "nested").mkdir()
        (storage_root / "nested" / "deep.json").write_text("[]")

        response = client.get("/api/v1/files")

        assert response.status_code == 200
        assert sorted(response.json()) == ["a.json", "b.json", "nested"]

    def test_serve_file(self, client):
        """Test a stored file is downloaded as an attachment."""
        upload(client, "a.json", b'[{"tema": "1"}]')

        response = client.get("/api/v1/files/a.json")

        assert response.status_code == 200
        assert response.content == b'[{"tema": "1"}]'
        assert "attachment" in response.headers["content-disposition"]
        assert "a.json" in response.headers["content-disposition"]

    def test_serve_missing_file(self, client):
        """Test a file never written answers 404."""
        response = client.get("/api/v1/files/missing.json")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "File Not Found"
        assert "missing.json" in data["detail"]

    def test_reupload_replaces_content(self, client):
        """Test uploading the same name twice serves the latest bytes."""
        upload(client, "a.json", b'{"v": 1}')
        upload(client, "a.json", b'{"v": 2}')

        assert client.get("/api/v1/files/a.json").content == b'{"v": 2}'

    def test_delete_files(self, client, storage_root):
        """Test deleting wipes the folder and leaves it usable."""
        upload(client, "a.json", b"[]")

        response = client.delete("/api/v1/files")

        assert response.status_code == 204
        assert storage_root.is_dir()
        assert client.get("/api/v1/files").json() == []
        assert upload(client, "b.json", b"[]").status_code == 201
