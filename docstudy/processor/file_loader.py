from pathlib import Path

from docstudy.processor.exceptions import UnsupportedStorageDiskError
from docstudy.processor.models import Document

SUPPORTED_STORAGE_DISK = "local"


def document_file_path(files_root: Path, file_key: str) -> Path:
    """Build path to a stored upload: {files_root}/{file_key}.

    Raises:
        ValueError: if the key escapes files_root.
    """
    root = files_root.resolve()
    path = (root / file_key).resolve()
    if not path.is_relative_to(root):
        raise ValueError(f"file_key '{file_key}' escapes the files root")
    return path


class FileLoader:
    """Reads and writes document bytes under the local files root."""

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    def load(self, document: Document) -> bytes:
        """Read document bytes from disk.

        Raises:
            FileNotFoundError: if the file does not exist at resolved path.
            UnsupportedStorageDiskError: if storage_disk is not 'local'.
        """
        if document.storage_disk != SUPPORTED_STORAGE_DISK:
            raise UnsupportedStorageDiskError(
                f"storage_disk '{document.storage_disk}' is not supported"
            )
        path = document_file_path(self._files_root, document.file_key)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return path.read_bytes()

    def store(self, file_key: str, content: bytes) -> Path:
        """Write an upload under its key, creating parent directories."""
        path = document_file_path(self._files_root, file_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path
