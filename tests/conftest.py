"""Pytest overall configuration file for fixtures"""

import pytest
from jitstore.fileobjectdb import FileObjectDatabase


@pytest.fixture(name="props")
def init_props(tmp_path):
    """Properties to initialize FileObjectDatabase."""
    directory = tmp_path / "repo" / ".git"
    directory.mkdir(parents=True)
    store_path = directory.as_posix()
    # Note, objects generated via tests are placed in a temporary folder
    # with the 'directory' parameter above appended
    properties = {
        "store_path": store_path,
        "store_depth": 1,
        "store_width": 2,
        "store_algorithm": "SHA-1",
        "store_compression_level": 1,
    }
    return properties


@pytest.fixture(name="store")
def init_store(props):
    """Create FileObjectDatabase instance for all tests."""
    store = FileObjectDatabase(props)
    return store


@pytest.fixture(name="blobs")
def init_blobs():
    """Shared test harness data.
    - frame: exact bytes hashed and stored for the blob
    - sha1: identity git assigns to the blob (`git hash-object`)
    """
    test_blobs = {
        "empty": {
            "data": b"",
            "frame": b"blob 0\x00",
            "sha1": "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391",
        },
        "what is up, doc?": {
            "data": b"what is up, doc?\n",
            "frame": b"blob 17\x00what is up, doc?\n",
            "sha1": "bd9dbf5aae1a3862dd1526723246b20206e5fc37",
        },
        "test content": {
            "data": b"test content\n",
            "frame": b"blob 13\x00test content\n",
            "sha1": "d670460b4b4aece5915caf5c68d12f560a9fe3e4",
        },
    }
    return test_blobs
