import base64
import binascii
import logging
import re
import uuid
from pathlib import Path
from typing import Optional, Union

from survey_api.errors import DecodeError, FormatError

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:image/(\w+);base64,")
ALLOWED_IMAGE_TYPES = ("jpg", "jpeg", "gif", "png")


def decode_data_uri(data_uri: str) -> tuple:
    """
    Split a ``data:image/<type>;base64,<payload>`` string into its image type
    and the decoded bytes.
    """
    match = DATA_URI_PATTERN.match(data_uri or "")
    if not match:
        raise FormatError("Did not match data URI with image data")

    image_type = match.group(1).lower()
    if image_type not in ALLOWED_IMAGE_TYPES:
        raise FormatError("Invalid image type")

    # '+' arrives as ' ' if the payload went through URL decoding somewhere
    payload = data_uri[data_uri.index(",") + 1 :].replace(" ", "+")
    # strict: padding is required and line breaks are not accepted
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise DecodeError("base64_decode failed")
    if not content:
        raise DecodeError("base64_decode failed")
    return image_type, content


class ImageStorage:
    """Stores uploaded survey images below the public web root."""

    def __init__(self, public_dir: Union[str, Path], images_subdir: str = "images"):
        self.public_dir = Path(public_dir)
        self.images_subdir = images_subdir.strip("/")

    @property
    def images_dir(self) -> Path:
        return self.public_dir / self.images_subdir

    def save_data_uri(self, data_uri: str) -> str:
        """
        Decode a data URI and write it to a new file.

        Returns the path relative to the public web root, e.g.
        ``images/3f2a...c1.png``. Nothing is written if the payload is invalid.
        """
        image_type, content = decode_data_uri(data_uri)

        file_name = f"{uuid.uuid4().hex}.{image_type}"
        self.images_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.images_dir / file_name
        file_path.write_bytes(content)

        relative_path = f"{self.images_subdir}/{file_name}"
        logger.info("Stored image %s (%d bytes)", relative_path, len(content))
        return relative_path

    def absolute_path(self, relative_path: str) -> Path:
        root = self.public_dir.resolve()
        path = (root / relative_path).resolve()
        if root != path and root not in path.parents:
            raise FormatError("Image path outside of the public directory")
        return path

    def delete(self, relative_path: Optional[str]) -> bool:
        """Remove a stored image. A missing file is not an error."""
        if not relative_path:
            return False
        path = self.absolute_path(relative_path)
        if not path.is_file():
            logger.warning("Image %s not found, nothing to delete", relative_path)
            return False
        path.unlink()
        logger.info("Deleted image %s", relative_path)
        return True

    @staticmethod
    def public_url(relative_path: Optional[str], base_url: str) -> Optional[str]:
        if not relative_path:
            return None
        return f"{base_url.rstrip('/')}/{relative_path.lstrip('/')}"
