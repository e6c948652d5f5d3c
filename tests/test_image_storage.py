import base64

import pytest

from survey_api.errors import DecodeError, FormatError
from survey_api.services.image_storage import ImageStorage, decode_data_uri

from conftest import PNG_BYTES, PNG_DATA_URI


def stored_files(storage: ImageStorage):
    if not storage.images_dir.exists():
        return []
    return list(storage.images_dir.iterdir())


def test_png_roundtrip(storage: ImageStorage):
    relative_path = storage.save_data_uri(PNG_DATA_URI)

    assert relative_path.startswith("images/")
    assert relative_path.endswith(".png")
    assert not relative_path.startswith("/")
    assert storage.absolute_path(relative_path).read_bytes() == PNG_BYTES


def test_creates_images_directory(tmp_path):
    storage = ImageStorage(tmp_path / "does" / "not" / "exist")

    relative_path = storage.save_data_uri(PNG_DATA_URI)

    assert storage.images_dir.is_dir()
    assert storage.absolute_path(relative_path).is_file()


def test_filenames_are_unique(storage: ImageStorage):
    first = storage.save_data_uri(PNG_DATA_URI)
    second = storage.save_data_uri(PNG_DATA_URI)

    assert first != second
    assert len(stored_files(storage)) == 2


def test_subtype_is_lowercased(storage: ImageStorage):
    data_uri = PNG_DATA_URI.replace("image/png", "image/JPEG")

    relative_path = storage.save_data_uri(data_uri)

    assert relative_path.endswith(".jpeg")


def test_spaces_are_restored_to_plus():
    content = bytes([0xFB, 0xEF, 0xFF]) * 4
    encoded = base64.b64encode(content).decode("ascii")
    assert "+" in encoded

    image_type, decoded = decode_data_uri(
        "data:image/gif;base64," + encoded.replace("+", " ")
    )

    assert image_type == "gif"
    assert decoded == content


@pytest.mark.parametrize(
    "data_uri",
    [
        "not a data uri",
        "data:text/plain;base64,aGVsbG8=",
        "data:image/png,aGVsbG8=",
        "",
    ],
)
def test_wrong_prefix_is_rejected(storage: ImageStorage, data_uri):
    with pytest.raises(FormatError) as exc_info:
        storage.save_data_uri(data_uri)

    assert exc_info.value.message == "Did not match data URI with image data"
    assert stored_files(storage) == []


@pytest.mark.parametrize("subtype", ["svg", "webp", "bmp"])
def test_unsupported_subtype_is_rejected(storage: ImageStorage, subtype):
    with pytest.raises(FormatError) as exc_info:
        storage.save_data_uri(f"data:image/{subtype};base64,aGVsbG8=")

    assert exc_info.value.message == "Invalid image type"
    assert stored_files(storage) == []


@pytest.mark.parametrize("payload", ["!!!not-base64!!!", "abc", ""])
def test_corrupt_payload_is_rejected(storage: ImageStorage, payload):
    with pytest.raises(DecodeError):
        storage.save_data_uri("data:image/png;base64," + payload)

    assert stored_files(storage) == []


@pytest.mark.parametrize("payload", ["YWI", "YWJj\nZGVm", "YWJj\r\nZGVm"])
def test_unpadded_or_wrapped_payload_is_rejected(storage: ImageStorage, payload):
    with pytest.raises(DecodeError):
        storage.save_data_uri("data:image/png;base64," + payload)

    assert stored_files(storage) == []


def test_delete_removes_file(storage: ImageStorage):
    relative_path = storage.save_data_uri(PNG_DATA_URI)

    assert storage.delete(relative_path) is True
    assert not storage.absolute_path(relative_path).exists()


def test_delete_missing_file_is_noop(storage: ImageStorage):
    assert storage.delete("images/missing.png") is False
    assert storage.delete(None) is False
    assert storage.delete("") is False


def test_paths_outside_public_dir_are_rejected(storage: ImageStorage):
    with pytest.raises(FormatError):
        storage.delete("../../etc/passwd")


def test_public_url():
    assert (
        ImageStorage.public_url("images/a.png", "http://localhost:8000/")
        == "http://localhost:8000/images/a.png"
    )
    assert ImageStorage.public_url(None, "http://localhost:8000") is None
