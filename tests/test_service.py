"""Unit tests for tasklist.engine.service — task operations and image upload policy."""

import re

import pytest

from tasklist.engine.config import UploadConfig
from tasklist.engine.errors import (
    TaskListBackendError,
    TaskListPreconditionError,
    TaskListUploadError,
    TaskListValidationError,
)
from tasklist.engine.models import SelectedFile
from tasklist.engine.service import (
    TaskService,
    build_service,
    detect_content_type,
    new_object_key,
)


BACKEND_URL = "https://backend.test"
UUID_RE = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


@pytest.fixture
def service(service_factory, session):
    return service_factory(session)


class TestHelpers:
    def test_object_key_keeps_extension(self):
        assert re.fullmatch(UUID_RE + r"\.png", new_object_key("Photo.PNG"))

    def test_object_key_without_extension(self):
        assert re.fullmatch(UUID_RE, new_object_key("photo"))

    def test_object_keys_are_unique(self):
        assert len({new_object_key("a.png") for _ in range(50)}) == 50

    def test_detect_content_type(self):
        assert detect_content_type("a.png") == "image/png"
        assert detect_content_type("a.unknownext") == "application/octet-stream"


class TestValidateUpload:
    def test_valid(self, png_file):
        assert TaskService(lambda: None).validate_upload(png_file) == (True, None)

    def test_empty(self):
        ok, err = TaskService(lambda: None).validate_upload(
            SelectedFile(filename="a.png", content_type="image/png")
        )
        assert not ok and "empty" in err

    def test_wrong_type(self):
        ok, err = TaskService(lambda: None).validate_upload(
            SelectedFile(filename="a.pdf", content_type="application/pdf", data=b"%PDF")
        )
        assert not ok and "not allowed" in err

    def test_too_large(self, png_file):
        service = TaskService(lambda: None, upload=UploadConfig(max_upload_size_mb=0))
        ok, err = service.validate_upload(png_file)
        assert not ok and "exceeds" in err

    def test_empty_allow_list_accepts_any_type(self):
        service = TaskService(lambda: None, upload=UploadConfig(allowed_types=[]))
        ok, _ = service.validate_upload(
            SelectedFile(filename="a.bin", content_type="application/x-thing", data=b"x")
        )
        assert ok


class TestLoadTasks:
    @pytest.mark.asyncio
    async def test_returns_backend_order(self, service, backend):
        backend.seed("b")
        backend.seed("a")
        assert [t.name for t in await service.load_tasks()] == ["b", "a"]


class TestCreateTask:
    @pytest.mark.asyncio
    async def test_uploads_then_inserts(self, service, backend, png_file):
        key = await service.create_task("Buy milk", png_file)

        assert re.fullmatch(UUID_RE + r"\.png", key)
        assert backend.objects[key] == (png_file.data, "image/png")
        row = backend.rows_for()[0]
        assert row["name"] == "Buy milk"
        assert row["is_done"] is False
        assert row["image_url"] == f"{BACKEND_URL}/storage/v1/object/public/tasks_image/{key}"

        paths = [(r.method, r.url.path) for r in backend.data_requests()]
        assert paths == [
            ("POST", f"/storage/v1/object/tasks_image/{key}"),
            ("POST", "/rest/v1/tasks"),
        ]

    @pytest.mark.asyncio
    async def test_empty_name_is_allowed(self, service, backend, png_file):
        await service.create_task("", png_file)
        assert backend.rows_for()[0]["name"] == ""

    @pytest.mark.asyncio
    async def test_no_file(self, service, backend):
        with pytest.raises(TaskListPreconditionError):
            await service.create_task("x", None)
        assert backend.data_requests() == []

    @pytest.mark.asyncio
    async def test_any_image_type_uploaded_by_default(self, service, backend):
        webp = SelectedFile(filename="milk.webp", content_type="image/webp", data=b"RIFF....WEBP")
        key = await service.create_task("Buy milk", webp)
        assert backend.objects[key] == (webp.data, "image/webp")
        assert [r["name"] for r in backend.rows_for()] == ["Buy milk"]

    @pytest.mark.asyncio
    async def test_empty_file_uploaded_by_default(self, service, backend):
        await service.create_task("x", SelectedFile(filename="a.png", content_type="image/png"))
        assert len(backend.rows_for()) == 1

    @pytest.mark.asyncio
    async def test_invalid_file_not_uploaded_when_validating(
        self, app_config, provider, session, backend
    ):
        config = app_config.model_copy(update={"upload": UploadConfig(validate_files=True)})
        service = build_service(config, provider, session, transport=backend.transport)
        bad = SelectedFile(filename="a.txt", content_type="text/plain", data=b"hi")
        with pytest.raises(TaskListValidationError):
            await service.create_task("x", bad)
        assert backend.data_requests() == []

    @pytest.mark.asyncio
    async def test_upload_failure_still_creates_task(self, service, backend, png_file):
        backend.fail["upload"] = 500
        key = await service.create_task("x", png_file)
        assert backend.objects == {}
        row = backend.rows_for()[0]
        assert row["image_url"].endswith(f"/tasks_image/{key}")

    @pytest.mark.asyncio
    async def test_upload_failure_blocks_when_configured(
        self, app_config, provider, session, backend, png_file
    ):
        config = app_config.model_copy(
            update={"upload": UploadConfig(block_on_upload_failure=True)}
        )
        service = build_service(config, provider, session, transport=backend.transport)
        backend.fail["upload"] = 500
        with pytest.raises(TaskListUploadError):
            await service.create_task("x", png_file)
        assert backend.rows_for() == []

    @pytest.mark.asyncio
    async def test_insert_failure_raises(self, service, backend, png_file):
        backend.fail["insert"] = 400
        with pytest.raises(TaskListBackendError) as exc_info:
            await service.create_task("x", png_file)
        assert exc_info.value.operation == "insert_task"


class TestSetDoneAndDelete:
    @pytest.mark.asyncio
    async def test_set_done_and_back(self, service, backend):
        task_id = backend.seed("x")
        await service.set_done(task_id, True)
        assert backend.rows_for()[0]["is_done"] is True
        await service.set_done(task_id, False)
        assert backend.rows_for()[0]["is_done"] is False

    @pytest.mark.asyncio
    async def test_delete(self, service, backend):
        task_id = backend.seed("x")
        await service.delete_task(task_id)
        assert backend.rows_for() == []

    @pytest.mark.asyncio
    async def test_other_users_rows_untouched(self, service, backend):
        theirs = backend.seed("theirs", user_id="user-2")
        await service.delete_task(theirs)
        assert len(backend.rows) == 1
