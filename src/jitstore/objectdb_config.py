"""Default configuration variables for the object database"""

############### Store Path ###############
# Name of the directory holding the store inside a working directory
STORE_DIR = ".git"
# Name of the configuration file written to the store path
CONFIG_FILE = "jitstore.yaml"

############### Directory Structure ###############
# Desired amount of directories when sharding an object id to form the permanent address
DIR_DEPTH = 1  # WARNING: DO NOT CHANGE UNLESS SETTING UP NEW STORE
# Width of directories created when sharding an object id to form the permanent address
DIR_WIDTH = 2  # WARNING: DO NOT CHANGE UNLESS SETTING UP NEW STORE
# Example:
# Below, objects are shown listed in directories that are 1 level deep (DIR_DEPTH=1),
# with each directory consisting of 2 characters (DIR_WIDTH=2).
#    <repo>/.git/objects
#    ├── bd
#    │   └── 9dbf5aae1a3862dd1526723246b20206e5fc37
#    └── e6
#        └── 9de29bb2d1d6434b8b29ae775ad8c2e48c5391

############### Hash Algorithm ###############
# Hash algorithm used to calculate an object's id. Only SHA-1 is compatible with git.
ALGORITHM = "SHA-1"

############### Compression ###############
# zlib compression level for loose objects (zlib.Z_BEST_SPEED)
COMPRESSION_LEVEL = 1


def default_properties(store_path):
    """Build the default properties dictionary for a store located at `store_path`.

    :param str store_path: Path to the store directory (ex. "<repo>/.git").

    :return: Properties dictionary accepted by `FileObjectDatabase`.
    :rtype: dict
    """
    return {
        "store_path": store_path,
        "store_depth": DIR_DEPTH,
        "store_width": DIR_WIDTH,
        "store_algorithm": ALGORITHM,
        "store_compression_level": COMPRESSION_LEVEL,
    }
