"""
Local filesystem storage for uploaded book files.
"""
import logging
import os
import uuid

from werkzeug.utils import secure_filename

from library_api.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {
    'image': {'.jpg', '.jpeg', '.png'},
    'pdf': {'.pdf', '.doc'},
}

# Subdirectory of the upload folder for each kind of file
SUBDIRECTORIES = {
    'image': 'CoverImage',
    'pdf': 'BookPDF',
}


def allowed_file_extension(filename, file_type):
    """
    Check a filename's extension against the allowed set for a file type.

    Args:
        filename (str): Client-supplied filename
        file_type (str): "image" or "pdf"

    Returns:
        bool: True if the extension is allowed
    """
    ext = os.path.splitext(filename or '')[1].lower()
    return ext in ALLOWED_EXTENSIONS.get(file_type, set())


class LocalStorage:
    """Stores uploads under a root folder, one subdirectory per file type."""

    def __init__(self, root):
        self.root = root

    def save(self, upload, file_type):
        """
        Validate and persist an uploaded file.

        Args:
            upload (werkzeug.datastructures.FileStorage): The uploaded file
            file_type (str): "image" or "pdf"

        Returns:
            str: Path of the stored file relative to the upload root
        """
        if not allowed_file_extension(upload.filename, file_type):
            allowed = ', '.join(sorted(ext.lstrip('.') for ext in ALLOWED_EXTENSIONS[file_type]))
            raise ValidationError(f"Invalid {file_type} format. Only {allowed} are allowed.")

        filename = f"{uuid.uuid4().hex}_{secure_filename(upload.filename)}"
        relative_path = os.path.join(SUBDIRECTORIES[file_type], filename)
        target = os.path.join(self.root, relative_path)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        upload.save(target)
        logger.debug("Stored upload %s", relative_path)
        return relative_path

    def remove(self, relative_path):
        """Delete a stored file; missing files are ignored."""
        if not relative_path:
            return
        try:
            os.remove(os.path.join(self.root, relative_path))
        except FileNotFoundError:
            logger.warning("Stored file %s was already gone", relative_path)
