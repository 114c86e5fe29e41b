"""Core module for FileObjectDatabase"""

import os
import shutil
import logging
import zlib
from tempfile import NamedTemporaryFile
import yaml
from jitstore.objectdb import ObjectDatabase
from jitstore.objectaddress import ObjectAddress
from jitstore.objectdb_config import CONFIG_FILE
from jitstore.gitobjects import compute_object_id, frame_object, is_object_id
from jitstore.objectdb_exceptions import InvalidObjectId, UnsupportedAlgorithm


class FileObjectDatabase(ObjectDatabase):
    """FileObjectDatabase stores git objects as zlib compressed loose files, each one
    addressed by the SHA-1 digest of its frame. The on-disk layout is git's: an object
    with identity `bd9dbf5a...` lives at `<store_path>/objects/bd/9dbf5a...`.

    FileObjectDatabase initializes using a given properties dictionary containing the
    required keys (see Args). Upon initialization, FileObjectDatabase verifies the provided
    properties and attempts to write a configuration file 'jitstore.yaml' to the given
    store path directory. Properties must always be supplied to ensure consistent
    usage of FileObjectDatabase once configured.

    :param dict properties: A Python dictionary with the following keys (and values):
        - store_path (str): Path to the store directory (ex. "<repo>/.git").
        - store_depth (int): Depth when sharding an object's identity.
        - store_width (int): Width of directories when sharding an object's identity.
        - store_algorithm (str): Hash algorithm used for calculating the object's identity.
        - store_compression_level (int): zlib compression level of stored objects.
    """

    # Property (store configuration) requirements
    property_required_keys = [
        "store_path",
        "store_depth",
        "store_width",
        "store_algorithm",
        "store_compression_level",
    ]
    # Permissions settings for writing files and creating directories
    fmode = 0o444
    dmode = 0o755
    # Algorithms able to produce git compatible identities, hashlib name to config name
    supported_algorithms = {"sha1": "SHA-1"}
    # Prefix of temporary files written next to their permanent address
    tmp_prefix = "tmp_obj_"

    def __init__(self, properties=None):
        if properties:
            # Validate properties against existing configuration if present
            checked_properties = self._validate_properties(properties)
            (
                prop_store_path,
                prop_store_depth,
                prop_store_width,
                prop_store_algorithm,
                prop_store_compression_level,
            ) = [
                checked_properties[property_name]
                for property_name in self.property_required_keys
            ]
            prop_store_path = os.fspath(prop_store_path)
            checked_algorithm = self._clean_algorithm(prop_store_algorithm)
            checked_compression_level = self._check_compression_level(
                prop_store_compression_level
            )

            # Check to see if a configuration is present in the given store path
            self.configuration_yaml = os.path.join(prop_store_path, CONFIG_FILE)
            self._verify_store_properties(properties, prop_store_path)

            # If no exceptions thrown, FileObjectDatabase ready for initialization
            logging.debug("FileObjectDatabase - Initializing, properties verified.")
            self.root = prop_store_path
            self.depth = int(prop_store_depth)
            self.width = int(prop_store_width)
            self.algorithm = checked_algorithm
            self.compression_level = checked_compression_level
            # Write 'jitstore.yaml' to store path
            if not os.path.exists(self.configuration_yaml):
                logging.debug(
                    "FileObjectDatabase - Store does not exist & configuration file not found."
                    + " Writing configuration file."
                )
                self._write_properties(properties)
            # Complete initialization by setting and creating the objects directory
            self.objects = os.path.join(self.root, "objects")
            if not os.path.exists(self.objects):
                self._create_path(self.objects)
            logging.debug(
                "FileObjectDatabase - Initialization success. Store root: %s", self.root
            )
        else:
            # Cannot instantiate or initialize FileObjectDatabase without config
            exception_string = (
                "FileObjectDatabase - Store properties must be supplied."
                + f" Properties: {properties}"
            )
            logging.debug(exception_string)
            raise ValueError(exception_string)

    # Configuration and Related Methods

    @staticmethod
    def _load_properties(configuration_yaml_path, required_prop_keys):
        """Get and return the contents of the current store configuration.

        :return: Store properties with the following keys (and values):
            - ``store_depth`` (int): Depth when sharding an object's identity.
            - ``store_width`` (int): Width of directories when sharding an object's identity.
            - ``store_algorithm`` (str): Hash algo used for calculating the object's identity.
            - ``store_compression_level`` (int): zlib compression level of stored objects.
        :rtype: dict
        """
        if not os.path.exists(configuration_yaml_path):
            exception_string = (
                "FileObjectDatabase - load_properties: jitstore.yaml not found"
                + " in store root path."
            )
            logging.critical(exception_string)
            raise FileNotFoundError(exception_string)

        # Open file
        with open(configuration_yaml_path, "r", encoding="utf-8") as js_yaml_file:
            yaml_data = yaml.safe_load(js_yaml_file)

        # Get store properties
        configuration_yaml_dict = {}
        for key in required_prop_keys:
            if key != "store_path":
                configuration_yaml_dict[key] = yaml_data[key]
        logging.debug(
            "FileObjectDatabase - load_properties: Successfully retrieved 'jitstore.yaml'"
            + " properties."
        )
        return configuration_yaml_dict

    def _write_properties(self, properties):
        """Writes 'jitstore.yaml' to FileObjectDatabase's root directory with the respective
        properties object supplied.

        :param dict properties: A Python dictionary with the following keys (and values):
            - ``store_depth`` (int): Depth when sharding an object's identity.
            - ``store_width`` (int): Width of directories when sharding an object's identity.
            - ``store_algorithm`` (str): Hash algo used for calculating the object's identity.
            - ``store_compression_level`` (int): zlib compression level of stored objects.
        """
        # If jitstore.yaml already exists, must throw exception and proceed with caution
        if os.path.exists(self.configuration_yaml):
            exception_string = (
                "FileObjectDatabase - write_properties: configuration file 'jitstore.yaml'"
                + " already exists."
            )
            logging.error(exception_string)
            raise FileExistsError(exception_string)
        # Validate properties
        checked_properties = self._validate_properties(properties)

        # Collect configuration properties from validated & supplied dictionary
        (_, store_depth, store_width, store_algorithm, store_compression_level) = [
            checked_properties[property_name]
            for property_name in self.property_required_keys
        ]
        # Standardize algorithm value, ex. "sha1" is written as "SHA-1"
        checked_store_algorithm = self.supported_algorithms[
            self._clean_algorithm(store_algorithm)
        ]

        # If given store path doesn't exist yet, create it.
        if not os.path.exists(self.root):
            self._create_path(self.root)

        # .yaml file to write
        configuration_yaml = self._build_configuration_yaml_string(
            int(store_depth),
            int(store_width),
            checked_store_algorithm,
            self._check_compression_level(store_compression_level),
        )
        # Write 'jitstore.yaml'
        with open(self.configuration_yaml, "w", encoding="utf-8") as js_yaml_file:
            js_yaml_file.write(configuration_yaml)

        logging.debug(
            "FileObjectDatabase - write_properties: Configuration file written to: %s",
            self.configuration_yaml,
        )
        return

    @staticmethod
    def _build_configuration_yaml_string(
        store_depth, store_width, store_algorithm, store_compression_level
    ):
        """Build a YAML string representing the configuration for a FileObjectDatabase.

        :param int store_depth: Depth when sharding an object's identity.
        :param int store_width: Width of directories when sharding an object's identity.
        :param str store_algorithm: Hash algorithm used for calculating the object's identity.
        :param int store_compression_level: zlib compression level of stored objects.

        :return: A YAML string representing the configuration for a FileObjectDatabase.
        :rtype: str
        """
        configuration_yaml = f"""
        # Configuration variables for the jit object database

        ############### Directory Structure ###############
        # Desired amount of directories when sharding an object id to form the permanent address
        store_depth: {store_depth}  # WARNING: DO NOT CHANGE UNLESS SETTING UP NEW STORE
        # Width of directories created when sharding an object id to form the permanent address
        store_width: {store_width}  # WARNING: DO NOT CHANGE UNLESS SETTING UP NEW STORE
        # Example:
        # Below, objects are shown listed in directories that are 1 level deep (DIR_DEPTH=1),
        # with each directory consisting of 2 characters (DIR_WIDTH=2).
        #    <repo>/.git/objects
        #    └── bd
        #        └── 9dbf5aae1a3862dd1526723246b20206e5fc37

        ############### Hash Algorithm ###############
        # Hash algorithm to use when calculating an object's identity
        store_algorithm: "{store_algorithm}"

        ############### Compression ###############
        # zlib compression level (0-9) of loose objects
        store_compression_level: {store_compression_level}
        """
        return configuration_yaml

    def _verify_store_properties(self, properties, prop_store_path):
        """Determines whether FileObjectDatabase can instantiate by validating a set of
        arguments and throwing exceptions. The store will not instantiate if an existing
        configuration file's properties (`jitstore.yaml`) are different from what is
        supplied. Without a `jitstore.yaml` the supplied properties are accepted, even
        when objects already exist at the given path.

        :param dict properties: Store properties.
        :param str prop_store_path: Store path to check.
        """
        if os.path.exists(self.configuration_yaml):
            logging.debug(
                "FileObjectDatabase - Config found (jitstore.yaml) at {%s}. Verifying"
                + " properties.",
                self.configuration_yaml,
            )
            # If 'jitstore.yaml' is found, verify given properties before init
            configuration_yaml_dict = self._load_properties(
                self.configuration_yaml, self.property_required_keys
            )
            for key in self.property_required_keys:
                # 'store_path' is required to init the store but not saved in `jitstore.yaml`
                if key == "store_path":
                    continue
                supplied_value = properties[key]
                stored_value = configuration_yaml_dict[key]
                if key == "store_algorithm":
                    supplied_value = self._clean_algorithm(supplied_value)
                    stored_value = self._clean_algorithm(stored_value)
                else:
                    supplied_value = int(supplied_value)
                if stored_value != supplied_value:
                    exception_string = (
                        f"FileObjectDatabase - Given properties ({key}: {properties[key]})"
                        + f" does not match. Store configuration ({key}:"
                        + f" {configuration_yaml_dict[key]}) found at:"
                        + f" {self.configuration_yaml}"
                    )
                    logging.critical(exception_string)
                    raise ValueError(exception_string)
        elif os.path.isdir(os.path.join(prop_store_path, "objects")):
            # Loose objects are addressed by their frame alone, so an existing object
            # directory (ex. one created by git) is adopted as is
            logging.debug(
                "FileObjectDatabase - No config found at {%s}. Adopting existing objects.",
                self.configuration_yaml,
            )

    def _validate_properties(self, properties):
        """Validate a properties dictionary by checking if it contains all the
        required keys and non-None values.

        :param dict properties: Dictionary containing FileObjectDatabase properties.

        :raises KeyError: If key is missing from the required keys.
        :raises ValueError: If value is missing for a required key.

        :return: The given properties object (that has been validated).
        :rtype: dict
        """
        if not isinstance(properties, dict):
            exception_string = (
                "FileObjectDatabase - _validate_properties: Invalid argument -"
                + " expected a dictionary."
            )
            logging.debug(exception_string)
            raise ValueError(exception_string)

        for key in self.property_required_keys:
            if key not in properties:
                exception_string = (
                    "FileObjectDatabase - _validate_properties: Missing required"
                    + f" key: {key}."
                )
                logging.debug(exception_string)
                raise KeyError(exception_string)
            if properties.get(key) is None:
                exception_string = (
                    "FileObjectDatabase - _validate_properties: Value for key:"
                    + f" {key} is none."
                )
                logging.debug(exception_string)
                raise ValueError(exception_string)
        return properties

    # Public API / ObjectDatabase Interface Methods

    def store(self, git_object):
        logging.debug(
            "FileObjectDatabase - store: Request to store %s object.", git_object.type
        )
        object_address = self.put_object(git_object)
        logging.info(
            "FileObjectDatabase - store: Successfully stored %s object: %s",
            git_object.type,
            object_address.id,
        )
        return object_address.id

    def hash_object(self, git_object):
        frame = frame_object(git_object)
        return compute_object_id(frame, self.algorithm)

    def exists(self, oid):
        self._check_object_id(oid)
        return os.path.isfile(self._build_path(oid))

    # FileObjectDatabase Core Methods

    def put_object(self, git_object):
        """Frame an object, compute its identity and write it to disk.

        :param GitObject git_object: Blob, Tree or Commit to store.

        :return: ObjectAddress - object that contains the identity, relative file path,
            absolute file path and whether the object was already stored.
        """
        frame = frame_object(git_object)
        oid = compute_object_id(frame, self.algorithm)
        logging.debug(
            "FileObjectDatabase - put_object: Framed %s object (%s bytes), id: %s",
            git_object.type,
            len(frame),
            oid,
        )
        return self._write_object(oid, frame)

    def _write_object(self, oid, frame):
        """Compress `frame` into a temporary file next to its permanent address and
        atomically move it into place. If an object already exists at the permanent
        address, nothing is written since its content is identified by `oid`.

        :param str oid: Object identity.
        :param bytes frame: Framed object.

        :return: ObjectAddress - object that contains the identity, relative file path,
            absolute file path and whether the object was already stored.
        """
        abs_file_path = self._build_path(oid)
        rel_file_path = os.path.relpath(abs_file_path, self.objects)

        # Objects are stored once and only once
        if os.path.isfile(abs_file_path):
            logging.debug(
                "FileObjectDatabase - _write_object: Object exists at: %s, skipping write.",
                abs_file_path,
            )
            return ObjectAddress(oid, rel_file_path, abs_file_path, True)

        object_directory = os.path.dirname(abs_file_path)
        self._create_path(object_directory)
        tmp = self._mktmpfile(object_directory)
        logging.debug(
            "FileObjectDatabase - _write_object: tmp file created: %s", tmp.name
        )

        tmp_file_moved_flag = False
        try:
            # tmp is a file-like object that is already opened for writing by default
            with tmp as tmp_file:
                tmp_file.write(zlib.compress(frame, self.compression_level))
            # Loose objects are read-only once written
            if self.fmode is not None:
                os.chmod(tmp.name, self.fmode)
            logging.debug(
                "FileObjectDatabase - _write_object: Moving tmp file to permanent location: %s",
                abs_file_path,
            )
            shutil.move(tmp.name, abs_file_path)
            tmp_file_moved_flag = True
        except Exception as err:
            exception_string = (
                "FileObjectDatabase - _write_object: Object has not been stored for id:"
                + f" {oid} - an unexpected error has occurred. Error: {err}"
            )
            logging.error(exception_string)
            raise
        finally:
            if not tmp_file_moved_flag and os.path.exists(tmp.name):
                logging.debug(
                    "FileObjectDatabase - _write_object: Deleting tmp file: %s", tmp.name
                )
                os.remove(tmp.name)

        return ObjectAddress(oid, rel_file_path, abs_file_path, False)

    def _mktmpfile(self, path):
        """Create a temporary file at the given path ready to be written.

        :param str path: Path to the file location.

        :return: file object - object with a file-like interface.
        """
        return NamedTemporaryFile(dir=path, prefix=self.tmp_prefix, delete=False)

    # FileObjectDatabase Utility & Supporting Methods

    def _clean_algorithm(self, algorithm_string):
        """Format an algorithm string and ensure that it produces git compatible
        identities.

        :param str algorithm_string: Algorithm to validate (ex. "SHA-1", "sha1").

        :return: `hashlib` supported algorithm string.
        :rtype: str
        """
        cleaned_string = (
            str(algorithm_string).lower().replace("-", "").replace("_", "")
        )
        if cleaned_string not in self.supported_algorithms:
            exception_string = (
                "FileObjectDatabase - _clean_algorithm: Algorithm not supported: "
                + cleaned_string
            )
            logging.error(exception_string)
            raise UnsupportedAlgorithm(exception_string)
        return cleaned_string

    @staticmethod
    def _check_compression_level(compression_level):
        """Check whether a given compression level is an integer between 0 and 9;
        throw an exception if not.

        :param int compression_level: zlib compression level.

        :return: The compression level as an integer.
        :rtype: int
        """
        if isinstance(compression_level, bool) or not isinstance(
            compression_level, int
        ):
            exception_string = (
                "FileObjectDatabase - _check_compression_level: level must be an integer."
                + f" Level: {compression_level}. Arg Type: {type(compression_level)}."
            )
            logging.error(exception_string)
            raise TypeError(exception_string)
        if not zlib.Z_NO_COMPRESSION <= compression_level <= zlib.Z_BEST_COMPRESSION:
            exception_string = (
                "FileObjectDatabase - _check_compression_level: level must be between"
                + f" {zlib.Z_NO_COMPRESSION} and {zlib.Z_BEST_COMPRESSION}."
            )
            logging.error(exception_string)
            raise ValueError(exception_string)
        return compression_level

    @staticmethod
    def _check_object_id(oid):
        """Check whether `oid` is a valid object identity; throw an exception if not.

        :param str oid: Value to check.
        """
        if not is_object_id(oid):
            exception_string = (
                f"FileObjectDatabase - _check_object_id: invalid object id: {oid!r}"
            )
            logging.error(exception_string)
            raise InvalidObjectId(exception_string)

    def _shard(self, digest):
        """Generates a list given a digest of `self.depth` number of tokens with width
        `self.width` from the first part of the digest plus the remainder.

        Example:
            ['bd', '9dbf5aae1a3862dd1526723246b20206e5fc37']

        :param str digest: The string to be divided into tokens.

        :return: A list containing the tokens of fixed width.
        :rtype: list
        """

        def compact(items):
            """Return only truthy elements of `items`."""
            return [item for item in items if item]

        # This creates a list of `depth` number of tokens with width
        # `width` from the first part of the id plus the remainder.
        hierarchical_list = compact(
            [digest[i * self.width : self.width * (i + 1)] for i in range(self.depth)]
            + [digest[self.depth * self.width :]]
        )

        return hierarchical_list

    def _create_path(self, path):
        """Physically create the folder path (and all intermediate ones) on disk.

        :param str path: The path to create.
        :raises NotADirectoryError: If the path already exists but is not a directory.
        """
        try:
            os.makedirs(path, self.dmode)
        except FileExistsError as fee:
            if not os.path.isdir(path):
                exception_string = (
                    f"FileObjectDatabase - _create_path: expected {path} to be a directory."
                )
                logging.error(exception_string)
                raise NotADirectoryError(exception_string) from fee

    def _build_path(self, oid):
        """Build the absolute file path for a given object identity.

        :param str oid: An object identity to build a file path for.

        :return: An absolute file path for the specified identity.
        :rtype: str
        """
        paths = self._shard(oid)
        absolute_path = os.path.join(os.path.abspath(self.objects), *paths)
        return absolute_path

    def _count(self):
        """Return the count of the number of files in the objects directory.

        :return: Number of files in the directory.
        :rtype: int
        """
        count = 0
        for _, _, files in os.walk(self.objects):
            for _ in files:
                count += 1
        return count
