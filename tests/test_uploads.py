import io
import os

import pytest
from starlette.datastructures import Headers, UploadFile

from recipeshare import config
from recipeshare.errors import ValidationFailure
from recipeshare.uploads import delete_image, save_image, unique_filename, upload_guard


def _upload(data=b"\x89PNG fake image", filename="photo.PNG", content_type="image/png"):
    return UploadFile(file=io.BytesIO(data), filename=filename,
                      headers=Headers({"content-type": content_type}))


def test_unique_filename_keeps_extension():
    name = unique_filename("My Photo.JPG")
    assert name.startswith("recipe-")
    assert name.endswith(".jpg")
    assert unique_filename("a.png") != unique_filename("a.png")


def test_save_and_delete_image():
    stored = save_image(_upload())
    assert stored.public_path.startswith(config.UPLOAD_URL_PREFIX)
    assert os.path.exists(stored.file_path)

    delete_image(stored.public_path)
    assert not os.path.exists(stored.file_path)


def test_rejects_non_image_type():
    with pytest.raises(ValidationFailure):
        save_image(_upload(content_type="application/pdf", filename="doc.pdf"))


def test_rejects_oversized_file(monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 10)
    before = set(os.listdir(config.UPLOAD_DIR)) if os.path.isdir(config.UPLOAD_DIR) else set()
    with pytest.raises(ValidationFailure):
        save_image(_upload(data=b"x" * 100))
    assert set(os.listdir(config.UPLOAD_DIR)) == before


def test_upload_guard_removes_file_on_failure():
    with pytest.raises(RuntimeError):
        with upload_guard(_upload()) as stored:
            path = stored.file_path
            assert os.path.exists(path)
            raise RuntimeError("database write failed")
    assert not os.path.exists(path)


def test_upload_guard_without_upload():
    with upload_guard(None) as stored:
        assert stored is None


def test_default_image_is_never_deleted():
    delete_image(config.DEFAULT_RECIPE_IMAGE)
    delete_image(None)
