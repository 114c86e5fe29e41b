"""ObjectAddress is returned for every loose object write"""
from collections import namedtuple


class ObjectAddress(
    namedtuple("ObjectAddress", ["id", "relpath", "abspath", "is_duplicate"])
):
    """File address containing an object's path on disk and its identity.

    :param str ab_id: Object identity (hex digest of the object's frame).
    :param str relpath: Relative path location to the store's objects directory.
    :param str abspath: Absolute path location of the object on disk.
    :param bool is_duplicate: Whether the object already existed before the write,
        in which case nothing was written. Defaults to ``False``.
    """

    # Default value to prevent dangerous default value
    def __new__(cls, ab_id, relpath, abspath, is_duplicate=False):
        return super(ObjectAddress, cls).__new__(
            cls, ab_id, relpath, abspath, is_duplicate
        )
