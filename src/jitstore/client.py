"""Jit Command Line App"""
import logging
import os
import sys
from argparse import ArgumentParser
import yaml
from jitstore.objectdb import ObjectDatabaseFactory
from jitstore.objectdb_config import CONFIG_FILE, STORE_DIR, default_properties
from jitstore.gitobjects import Author, Blob, Commit, Tree, TreeEntry
from jitstore.workspace import Workspace


class JitParser:
    """Class to setup client arguments"""

    PROGRAM_NAME = "jit"
    DESCRIPTION = (
        "A command-line tool to record snapshots of a working directory"
        + " in a git compatible object database."
    )

    def __init__(self):
        """Initialize the argparse 'parser'."""
        self.parser = ArgumentParser(
            prog=self.PROGRAM_NAME,
            description=self.DESCRIPTION,
        )
        self.parser.add_argument(
            "-loglevel",
            dest="logging_level",
            help="Set logging level for the client",
        )

        subparsers = self.parser.add_subparsers(dest="command", required=True)
        init_parser = subparsers.add_parser(
            "init", help="Create an empty jit repository"
        )
        init_parser.add_argument(
            "path",
            nargs="?",
            default=None,
            help="Directory to initialize, defaults to the current directory",
        )
        commit_parser = subparsers.add_parser(
            "commit",
            help="Record the working directory, the message is read from stdin",
        )
        commit_parser.add_argument(
            "-repo",
            dest="repo_path",
            default=None,
            help="Repository to commit, defaults to the current directory",
        )

    @staticmethod
    def load_store_properties(configuration_yaml):
        """Get and return the contents of the current store configuration.

        :return: Store properties with the following keys (and values):
            - ``store_depth`` (int): Depth when sharding an object's identity.
            - ``store_width`` (int): Width of directories when sharding an object's identity.
            - ``store_algorithm`` (str): Hash algo used for calculating the object's identity.
            - ``store_compression_level`` (int): zlib compression level of stored objects.
        :rtype: dict
        """
        property_required_keys = [
            "store_depth",
            "store_width",
            "store_algorithm",
            "store_compression_level",
        ]

        if not os.path.exists(configuration_yaml):
            exception_string = (
                "JitParser - load_store_properties: jitstore.yaml not found"
                + " in store root path."
            )
            raise FileNotFoundError(exception_string)
        # Open file
        with open(configuration_yaml, "r", encoding="utf-8") as file:
            yaml_data = yaml.safe_load(file)

        # Get store properties
        configuration_yaml_dict = {}
        for key in property_required_keys:
            checked_property = yaml_data[key]
            if key != "store_algorithm":
                checked_property = int(yaml_data[key])
            configuration_yaml_dict[key] = checked_property
        return configuration_yaml_dict

    def get_parser_args(self, argv=None):
        """Get command line arguments"""
        return self.parser.parse_args(argv)


class JitClient:
    """Create and commit to a jit repository through the command line.

    :param str repo_path: Path of the working directory holding the repository.
    """

    module_name = "jitstore.fileobjectdb"
    class_name = "FileObjectDatabase"

    def __init__(self, repo_path):
        self.repo_path = os.path.abspath(repo_path)
        self.git_path = os.path.join(self.repo_path, STORE_DIR)
        self.workspace = Workspace(self.repo_path)

    def init_repository(self):
        """Create the repository directories and the object database.

        :return: Path to the created store directory.
        :rtype: str
        """
        for folder in ["objects", "refs"]:
            os.makedirs(os.path.join(self.git_path, folder), exist_ok=True)
        self.get_object_database()
        logging.info("JitClient - init_repository: Initialized: %s", self.git_path)
        return self.git_path

    def get_object_database(self):
        """Get the object database of the repository, creating its configuration
        with default properties if the store has none yet."""
        configuration_yaml = os.path.join(self.git_path, CONFIG_FILE)
        if os.path.exists(configuration_yaml):
            props = JitParser.load_store_properties(configuration_yaml)
            # Reminder: 'jitstore.yaml' does not contain the store path
            props["store_path"] = self.git_path
        else:
            props = default_properties(self.git_path)
        factory = ObjectDatabaseFactory()
        return factory.get_object_database(self.module_name, self.class_name, props)

    def commit(self, author, message):
        """Store every workspace file as a blob, a tree of all of them and a commit
        pointing to the tree, then point HEAD at the commit.

        :param Author author: Author and committer of the commit.
        :param bytes message: Commit message.

        :return: Identity of the commit.
        :rtype: str
        """
        if not os.path.isdir(self.git_path):
            raise FileNotFoundError(
                f"not a jit repository (missing {STORE_DIR} directory): {self.repo_path}"
            )
        database = self.get_object_database()

        entries = []
        for path in self.workspace.list_files():
            blob = Blob(self.workspace.read_file(path))
            entries.append(TreeEntry(path, database.store(blob)))
        tree_oid = database.store(Tree(entries))
        logging.debug(
            "JitClient - commit: Stored tree %s with %s entries.", tree_oid, len(entries)
        )

        commit_oid = database.store(Commit(tree_oid, author, message))
        self.update_head(commit_oid)
        logging.info("JitClient - commit: HEAD updated to commit: %s", commit_oid)
        return commit_oid

    def update_head(self, oid):
        """Write the given object identity to the HEAD file of the repository."""
        with open(os.path.join(self.git_path, "HEAD"), "w", encoding="utf-8") as head:
            head.write(oid)


def author_from_environment():
    """Build the commit author from `GIT_AUTHOR_NAME` and `GIT_AUTHOR_EMAIL`."""
    values = []
    for variable in ["GIT_AUTHOR_NAME", "GIT_AUTHOR_EMAIL"]:
        value = os.environ.get(variable)
        if not value:
            raise ValueError(f"{variable} environment variable is not set")
        values.append(value)
    return Author.now(*values)


def setup_logging(git_path, logging_level_arg):
    """Setup logging, create log file in the store directory if it doesn't already exist"""
    jit_py_log = os.path.join(git_path, "jit_client.log")
    if logging_level_arg is None:
        logging_level = "INFO"
    else:
        logging_level = logging_level_arg.upper()
    logging.basicConfig(
        filename=jit_py_log,
        level=logging_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv=None):
    """Entry point of the jit client."""

    parser = JitParser()
    args = parser.get_parser_args(argv)
    logging_level = getattr(args, "logging_level")

    try:
        if args.command == "init":
            repo_path = getattr(args, "path") or os.getcwd()
            jit_client = JitClient(repo_path)
            os.makedirs(jit_client.git_path, exist_ok=True)
            setup_logging(jit_client.git_path, logging_level)
            git_path = jit_client.init_repository()
            print(f"Initialized empty Jit repository in {git_path}")

        elif args.command == "commit":
            repo_path = getattr(args, "repo_path") or os.getcwd()
            jit_client = JitClient(repo_path)
            if os.path.isdir(jit_client.git_path):
                setup_logging(jit_client.git_path, logging_level)
            author = author_from_environment()
            message = sys.stdin.buffer.read()
            commit_oid = jit_client.commit(author, message)
            print(f"[(root-commit) {commit_oid}]")
            print(message.decode("utf-8", errors="replace"))
    # pylint: disable=W0718
    except Exception as err:
        # Without a configured handler the error would also reach stderr
        if logging.getLogger().hasHandlers():
            logging.error("jit - main: %s", err)
        print(f"fatal: {err}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
