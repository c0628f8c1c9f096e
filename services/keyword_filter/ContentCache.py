"""Read-through file cache owned by a single pipeline run."""

import os

from shared.helper.HelperConfig import HelperConfig


class ContentCache:
    """Caches file contents by absolute path.

    Entries are filled on the first read and never invalidated. Create one
    cache per pipeline run and pass it to the components that read the same
    reference files.
    """

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self._contents: dict[str, str] = {}

    def read(self, path: str) -> str:
        """Return the contents of a file, reading it only on the first call.

        Args:
            path (str): Path of the file.

        Returns:
            str: The file contents.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        key = os.path.abspath(path)
        if key in self._contents:
            self.logging.debug("Using cached content from: %s", key)
            return self._contents[key]

        if not os.path.isfile(key):
            raise FileNotFoundError(f"Reference file not found: {key}")
        self.logging.debug("Reading content from: %s", key)
        with open(key, "r", encoding="utf-8") as f:
            content = f.read()
        self._contents[key] = content
        return content
