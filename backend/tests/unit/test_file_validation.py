"""Unit tests for upload validation and image normalisation"""

import io

import pytest
from PIL import Image

from conftest import make_image_bytes
from passportflow.documents.image_processing import OUTPUT_CONTENT_TYPE, normalize_image
from passportflow.domain.documents import (
    MAX_FILE_SIZE,
    SUPPORTED_MIME_TYPES,
    is_supported_mime_type,
    validate_file_size,
    validate_upload,
)
from passportflow.domain.errors import InputValidationError, ProcessingError


class TestMimeTypeValidation:

    def test_supported_mime_types_constant(self):
        assert SUPPORTED_MIME_TYPES == {'image/jpeg', 'image/png', 'image/jpg'}

    @pytest.mark.parametrize("mime_type", ['image/jpeg', 'image/png', 'image/jpg', 'IMAGE/PNG'])
    def test_image_types_supported(self, mime_type):
        assert is_supported_mime_type(mime_type) is True

    @pytest.mark.parametrize("mime_type", ['application/pdf', 'image/gif', 'text/csv', '', None])
    def test_other_types_rejected(self, mime_type):
        assert is_supported_mime_type(mime_type) is False

    def test_custom_allow_list(self):
        assert is_supported_mime_type('image/png', allowed=['image/jpeg']) is False
        assert is_supported_mime_type('image/jpeg', allowed=['image/jpeg']) is True


class TestFileSizeValidation:

    def test_max_file_size_constant(self):
        assert MAX_FILE_SIZE == 5 * 1024 * 1024

    def test_valid_size(self):
        assert validate_file_size(1024) == (True, None)

    def test_exactly_at_limit(self):
        assert validate_file_size(MAX_FILE_SIZE) == (True, None)

    def test_one_byte_over_limit(self):
        is_valid, error = validate_file_size(MAX_FILE_SIZE + 1)
        assert is_valid is False
        assert "5MB" in error

    def test_empty_file(self):
        assert validate_file_size(0) == (False, "File is empty (0 bytes)")

    def test_custom_limit(self):
        is_valid, _ = validate_file_size(2048, max_size=1024)
        assert is_valid is False


class TestValidateUpload:

    def test_accepts_png(self):
        validate_upload(b"x" * 10, "image/png")

    def test_rejects_wrong_type(self):
        with pytest.raises(InputValidationError, match="Invalid file type"):
            validate_upload(b"x" * 10, "application/pdf")

    def test_rejects_missing_type(self):
        with pytest.raises(InputValidationError):
            validate_upload(b"x" * 10, None)

    def test_size_checked_before_type(self):
        with pytest.raises(InputValidationError, match="empty"):
            validate_upload(b"", "application/pdf")


class TestNormalizeImage:

    def _open(self, data):
        return Image.open(io.BytesIO(data))

    def test_output_is_jpeg(self):
        output = normalize_image(make_image_bytes(fmt="PNG"))
        assert self._open(output).format == "JPEG"
        assert OUTPUT_CONTENT_TYPE == "image/jpeg"

    def test_wide_image_fits_bounding_box(self):
        output = normalize_image(make_image_bytes(size=(2400, 1200)))
        assert self._open(output).size == (1200, 600)

    def test_tall_image_fits_bounding_box(self):
        output = normalize_image(make_image_bytes(size=(1000, 4000)))
        assert self._open(output).size == (300, 1200)

    def test_small_image_not_enlarged(self):
        output = normalize_image(make_image_bytes(size=(320, 240)))
        assert self._open(output).size == (320, 240)

    def test_transparency_flattened(self):
        output = normalize_image(make_image_bytes(mode="RGBA"))
        assert self._open(output).mode == "RGB"

    def test_undecodable_bytes(self):
        with pytest.raises(ProcessingError):
            normalize_image(b"definitely not an image")
