"""Working directory access for the jit client"""
import os
import logging


class Workspace:
    """Lists and reads the files of a working directory. Only regular files directly
    inside the root are considered; subdirectories are not descended into.

    :param str root_path: Path to the working directory.
    """

    # Entries of the working directory that are never committed
    IGNORE = [".git"]

    def __init__(self, root_path):
        self.root_path = os.fspath(root_path)

    def list_files(self):
        """List the files of the working directory.

        :return: Sorted names of the files, relative to the root path.
        :rtype: list
        """
        file_names = [
            name
            for name in os.listdir(self.root_path)
            if name not in self.IGNORE
            and os.path.isfile(os.path.join(self.root_path, name))
        ]
        logging.debug(
            "Workspace - list_files: Found %s files in: %s",
            len(file_names),
            self.root_path,
        )
        return sorted(file_names)

    def read_file(self, relative_path):
        """Read a file of the working directory as raw bytes.

        :param str relative_path: Path relative to the root path.

        :return: File contents.
        :rtype: bytes
        """
        with open(os.path.join(self.root_path, relative_path), "rb") as file:
            return file.read()
