"""
Image loading, verification and preview thumbnails.

Previews are small PNG thumbnails written to temporary files so a front
end can display them while a batch is pending. Their lifetime is tied to
``preview_scope``: every preview is released when the scope exits, whether
the analysis succeeded, failed or raised.
"""

import io
import logging
import mimetypes
import tempfile
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from config import PREVIEW_SIZE, SUPPORTED_IMAGE_TYPES

logger = logging.getLogger(__name__)


def verify_image_bytes(data: bytes) -> str:
    """
    Check that bytes decode as an image and return its MIME type.

    Args:
        data: Raw file contents

    Returns:
        MIME type reported by Pillow (e.g. 'image/jpeg')

    Raises:
        ValueError: If the bytes are empty or not a readable image
    """
    if not data:
        raise ValueError("Image data is empty.")

    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValueError("Image data could not be decoded.") from exc

    # Multi-picture camera JPEGs are still JPEG files
    if image_format == "MPO":
        image_format = "JPEG"

    mime_type = Image.MIME.get(image_format or '', '')
    if mime_type not in SUPPORTED_IMAGE_TYPES:
        raise ValueError(f"Unsupported image type: {image_format}")
    return mime_type


def load_image(path: str, image_id: Optional[str] = None):
    """
    Read an image file into an ImageInput.

    Args:
        path: Path to a JPEG, PNG, WebP or GIF file
        image_id: Identifier within the batch (defaults to the file name)

    Returns:
        ImageInput holding the file bytes and detected MIME type
    """
    from pipeline.inputs import ImageInput

    file_path = Path(path)
    data = file_path.read_bytes()
    # Decodability is checked by batch validation so bad files are reported per item
    mime_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    return ImageInput(
        id=image_id or file_path.name,
        data=data,
        mime_type=mime_type,
        source=str(file_path)
    )


def load_images(paths: Sequence[str]) -> List:
    """Load several image files, disambiguating repeated file names."""
    images = []
    seen = {}
    for path in paths:
        name = Path(path).name
        seen[name] = seen.get(name, 0) + 1
        image_id = name if seen[name] == 1 else f"{name}#{seen[name]}"
        images.append(load_image(path, image_id=image_id))
    return images


class ImagePreview:
    """
    Thumbnail of an input image stored in a temporary file.

    Args:
        path: Location of the thumbnail PNG
    """

    def __init__(self, path: Path):
        self.path = path
        self.released = False

    @classmethod
    def create(
        cls,
        data: bytes,
        max_size: Tuple[int, int] = PREVIEW_SIZE,
        background: Tuple[int, int, int] = (255, 255, 255)
    ) -> 'ImagePreview':
        """Render a thumbnail that fits within max_size, flattened against background."""
        try:
            src = Image.open(io.BytesIO(data)).convert("RGBA")
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Image data could not be decoded.") from exc

        src.thumbnail(max_size, Image.LANCZOS)

        flattened = Image.new("RGB", src.size, background)
        flattened.paste(src, mask=src.split()[3])

        with tempfile.NamedTemporaryFile(prefix="egg_preview_", suffix=".png", delete=False) as handle:
            flattened.save(handle, format="PNG", optimize=True)
            return cls(Path(handle.name))

    def release(self) -> None:
        """Delete the thumbnail file. Safe to call more than once."""
        if self.released:
            return
        self.path.unlink(missing_ok=True)
        self.released = True

    def __enter__(self) -> 'ImagePreview':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else "open"
        return f"ImagePreview(path={self.path}, {state})"


@contextmanager
def preview_scope(images: Sequence) -> Iterator[List]:
    """
    Attach previews to images for the duration of a block.

    Yields copies of the ImageInputs with ``preview`` set. Every preview
    created is released on exit, including when the block raises.

    Example:
        with preview_scope(images) as shown:
            result = coordinator.run_batch("B-17", AnalysisType.IMAGE, shown)
    """
    previews: List[ImagePreview] = []
    try:
        shown = []
        for image in images:
            try:
                preview = ImagePreview.create(image.data)
            except ValueError:
                logger.warning("No preview for %s: image could not be decoded", image.id)
                shown.append(image)
                continue
            previews.append(preview)
            shown.append(replace(image, preview=preview))
        yield shown
    finally:
        for preview in previews:
            try:
                preview.release()
            except OSError as exc:
                logger.warning("Could not release preview %s: %s", preview.path, exc)
