"""Object database interface"""
from abc import ABC, abstractmethod
import importlib.metadata
import importlib.util


class ObjectDatabase(ABC):
    """ObjectDatabase is a content-addressable store for git objects. Every object
    is addressed by the digest of its framed canonical form (its identity)."""

    @staticmethod
    def version():
        """Return the version number"""
        __version__ = importlib.metadata.version("jitstore")
        return __version__

    @abstractmethod
    def store(self, git_object):
        """Persist an object and return its identity. The `store` method frames the
        object's canonical content (`<type> <length>\\0<content>`), computes the digest
        of the frame and writes the frame to the store if an object with that identity
        is not already present. Storing the same object twice is a no-op the second time.

        Filesystem errors (permissions, disk full) propagate unchanged and never leave a
        partially written object at its permanent address.

        :param GitObject git_object: Blob, Tree or Commit to store.

        :return: str - Identity of the object (40 lowercase hex characters).
        """
        raise NotImplementedError()

    @abstractmethod
    def hash_object(self, git_object):
        """Compute the identity an object would be stored under without writing it.

        :param GitObject git_object: Blob, Tree or Commit.

        :return: str - Identity of the object.
        """
        raise NotImplementedError()

    @abstractmethod
    def exists(self, oid):
        """Check whether an object with the given identity is present in the store.

        :param str oid: Object identity.

        :return: bool - `True` if the object exists.
        """
        raise NotImplementedError()


class ObjectDatabaseFactory:
    """A factory class for creating `ObjectDatabase`-like objects.

    This factory class provides a method to retrieve an `ObjectDatabase` object based on
    a given module (e.g., "jitstore.fileobjectdb") and class name (e.g., "FileObjectDatabase").
    """

    @staticmethod
    def get_object_database(module_name, class_name, properties=None):
        """Get an `ObjectDatabase`-like object based on the specified `module_name` and
        `class_name`.

        :param str module_name: Name of the package (e.g., "jitstore.fileobjectdb").
        :param str class_name: Name of the class in the given module (e.g.,
            "FileObjectDatabase").
        :param dict properties: Desired store properties. Example Properties Dictionary:
            {
                "store_path": "/path/to/repo/.git",
                "store_depth": 1,
                "store_width": 2,
                "store_algorithm": "SHA-1",
                "store_compression_level": 1
            }

        :return: ObjectDatabase - An object database based on the given `module_name`
            and `class_name`.

        :raises ModuleNotFoundError: If the module is not found.
        :raises AttributeError: If the class does not exist within the module.
        """
        # Validate module
        if importlib.util.find_spec(module_name) is None:
            raise ModuleNotFoundError(f"No module found for '{module_name}'")

        # Get ObjectDatabase
        imported_module = importlib.import_module(module_name)

        # If class is not part of module, raise error
        if hasattr(imported_module, class_name):
            object_database_class = getattr(imported_module, class_name)
            return object_database_class(properties=properties)
        raise AttributeError(
            f"Class name '{class_name}' is not an attribute of module '{module_name}'"
        )
