import logging
import os
import stat
import tempfile

from omnivolt.constants import FILE_ENCODING
from omnivolt.exceptions import FilesystemError

log = logging.getLogger(__name__)


class VersionStore:
    """
    Persists the tag of the last successfully installed release in a single text file.

    An absent file and an empty file both mean that nothing is installed.
    """

    DEFAULT_MODE = 0o644

    def __init__(self, working_dir: str, file_name: str):
        self.path = os.path.join(working_dir, file_name)

    def read(self) -> str:
        try:
            if not os.path.exists(self.path):
                log.debug("Creating empty version record %s", self.path)
                with open(self.path, "w", encoding=FILE_ENCODING):
                    pass
                return ""
            with open(self.path, encoding=FILE_ENCODING) as f:
                return f.read()
        except OSError as e:
            raise FilesystemError(f"Could not read version record {self.path}", e) from e

    def write(self, tag: str) -> None:
        """
        Replaces the recorded tag; the new content is written to a temporary file first and then
        moved over the record, such that readers never observe partially written content.
        """
        directory = os.path.dirname(self.path)
        try:
            mode = stat.S_IMODE(os.stat(self.path).st_mode) if os.path.exists(self.path) else self.DEFAULT_MODE
            fd, tmp_path = tempfile.mkstemp(prefix=".version-", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding=FILE_ENCODING) as f:
                    f.write(tag)
                # mkstemp creates the file with mode 0600
                os.chmod(tmp_path, mode)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise FilesystemError(f"Could not write version record {self.path}", e) from e
        log.info("Recorded installed version %s in %s", tag, self.path)
