"""Test module for FileObjectDatabase init, core, utility and supporting methods."""

import os
import shutil
import zlib
from datetime import datetime
import pytest
from jitstore.fileobjectdb import FileObjectDatabase
from jitstore.objectdb_config import default_properties
from jitstore.gitobjects import (
    Author,
    Blob,
    Commit,
    Tree,
    TreeEntry,
    frame_object,
    is_object_id,
)
from jitstore.objectdb_exceptions import InvalidObjectId, UnsupportedAlgorithm


# pylint: disable=W0212


def read_stored_frame(path):
    """Decompress a stored loose object."""
    with open(path, "rb") as stored:
        return zlib.decompress(stored.read())


def test_init_directories_created(store):
    """Confirm that the objects directory has been created."""
    assert os.path.exists(store.root)
    assert os.path.exists(store.objects)
    assert store.objects == os.path.join(store.root, "objects")


def test_init_write_properties_yaml_exists(store):
    """Verify config file present in store root directory."""
    assert os.path.exists(store.configuration_yaml)
    assert os.path.basename(store.configuration_yaml) == "jitstore.yaml"


def test_init_store_path_created(tmp_path):
    """Check that a store path that does not exist yet is created."""
    properties = {
        "store_path": (tmp_path / "new" / ".git").as_posix(),
        "store_depth": 1,
        "store_width": 2,
        "store_algorithm": "SHA-1",
        "store_compression_level": 1,
    }
    store = FileObjectDatabase(properties)
    assert os.path.isdir(store.objects)


def test_init_existing_store(store, props):
    """Confirm second instance of the store with the same properties."""
    second_store = FileObjectDatabase(props)
    assert isinstance(second_store, FileObjectDatabase)
    assert second_store.root == store.root


def test_init_existing_store_algorithm_spelling(store, props):
    """Confirm second instance of the store with another spelling of SHA-1."""
    props["store_algorithm"] = "sha1"
    second_store = FileObjectDatabase(props)
    assert second_store.algorithm == "sha1"


def test_init_with_existing_store_mismatched_config_depth(store, props):
    """Test init with existing store raises a ValueError when supplied with
    mismatching depth."""
    props["store_depth"] = 2
    with pytest.raises(ValueError):
        FileObjectDatabase(props)


def test_init_with_existing_store_mismatched_config_width(store, props):
    """Test init with existing store raises a ValueError when supplied with
    mismatching width."""
    props["store_width"] = 3
    with pytest.raises(ValueError):
        FileObjectDatabase(props)


def test_init_with_existing_store_mismatched_config_compression(store, props):
    """Test init with existing store raises a ValueError when supplied with
    mismatching compression level."""
    props["store_compression_level"] = 9
    with pytest.raises(ValueError):
        FileObjectDatabase(props)


def test_init_unsupported_algorithm(props):
    """Check that only SHA-1 can address objects."""
    for algorithm in ["SHA-256", "MD5", "dou_algo"]:
        props["store_algorithm"] = algorithm
        with pytest.raises(UnsupportedAlgorithm):
            FileObjectDatabase(props)


def test_init_compression_level_out_of_range(props):
    """Check that compression levels outside of zlib's range raise an exception."""
    props["store_compression_level"] = 10
    with pytest.raises(ValueError):
        FileObjectDatabase(props)


def test_init_compression_level_not_int(props):
    """Check that compression levels must be integers."""
    props["store_compression_level"] = "fast"
    with pytest.raises(TypeError):
        FileObjectDatabase(props)


def test_init_with_existing_objects_missing_yaml(tmp_path):
    """Test that a store without jitstore.yaml adopts objects written by another
    tool and keeps storing into it."""
    git_path = tmp_path / "repo" / ".git"
    empty_blob_oid = "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
    object_directory = git_path / "objects" / empty_blob_oid[:2]
    object_directory.mkdir(parents=True)
    existing_object = object_directory / empty_blob_oid[2:]
    existing_object.write_bytes(zlib.compress(b"blob 0\x00"))

    store = FileObjectDatabase(default_properties(git_path.as_posix()))
    assert os.path.isfile(store.configuration_yaml)
    assert store.exists(empty_blob_oid)

    assert store.store(Blob(b"")) == empty_blob_oid
    assert existing_object.read_bytes() == zlib.compress(b"blob 0\x00")
    oid = store.store(Blob(b"test content\n"))
    assert read_stored_frame(store._build_path(oid)) == b"blob 13\x00test content\n"
    assert store._count() == 2


def test_init_no_properties():
    """Check that properties must be supplied."""
    with pytest.raises(ValueError):
        FileObjectDatabase()


def test_load_properties(store):
    """Verify dictionary returned from _load_properties matches initialization."""
    loaded = store._load_properties(
        store.configuration_yaml, store.property_required_keys
    )
    assert loaded.get("store_depth") == 1
    assert loaded.get("store_width") == 2
    assert loaded.get("store_algorithm") == "SHA-1"
    assert loaded.get("store_compression_level") == 1
    assert "store_path" not in loaded


def test_load_properties_yaml_missing(store):
    """Confirm FileNotFoundError is raised when jitstore.yaml does not exist."""
    os.remove(store.configuration_yaml)
    with pytest.raises(FileNotFoundError):
        store._load_properties(store.configuration_yaml, store.property_required_keys)


def test_write_properties_yaml_exists(store, props):
    """Confirm FileExistsError is raised when jitstore.yaml already exists."""
    with pytest.raises(FileExistsError):
        store._write_properties(props)


def test_validate_properties(store, props):
    """Confirm properties validated when all key/values are supplied."""
    assert store._validate_properties(props) == props


def test_validate_properties_missing_key(store, props):
    """Confirm exception raised when key missing in properties."""
    del props["store_compression_level"]
    with pytest.raises(KeyError):
        store._validate_properties(props)


def test_validate_properties_key_value_is_none(store, props):
    """Confirm exception raised when a value is None."""
    props["store_depth"] = None
    with pytest.raises(ValueError):
        store._validate_properties(props)


def test_validate_properties_incorrect_type(store):
    """Confirm exception raised when a bad properties value is given."""
    with pytest.raises(ValueError):
        store._validate_properties("etc/jit/jitstore.yaml")


def test_store_returns_object_id(store, blobs):
    """Check that store returns the identity of the object."""
    for blob_data in blobs.values():
        assert store.store(Blob(blob_data["data"])) == blob_data["sha1"]


def test_store_object_path(store, blobs):
    """Check that objects are written to objects/<2 hex chars>/<38 hex chars>."""
    for blob_data in blobs.values():
        oid = store.store(Blob(blob_data["data"]))
        object_path = os.path.join(store.objects, oid[:2], oid[2:])
        assert os.path.isfile(object_path)


def test_store_frame_round_trip(store, blobs):
    """Check that decompressing a stored object yields exactly the hashed frame."""
    for blob_data in blobs.values():
        oid = store.store(Blob(blob_data["data"]))
        assert read_stored_frame(store._build_path(oid)) == blob_data["frame"]


def test_store_tree_and_commit(store):
    """Check storing a tree and a commit that references it."""
    blob_oid = store.store(Blob(b"what is up, doc?\n"))
    tree = Tree([TreeEntry("hello.txt", blob_oid)])
    tree_oid = store.store(tree)
    author = Author("Jane Doe", "jane@example.com", datetime.now())
    commit = Commit(tree_oid, author, b"Initial commit\n")
    commit_oid = store.store(commit)

    assert read_stored_frame(store._build_path(tree_oid)) == frame_object(tree)
    stored_commit = read_stored_frame(store._build_path(commit_oid))
    assert stored_commit.startswith(b"commit ")
    assert f"tree {tree_oid}\n".encode("ascii") in stored_commit
    assert store._count() == 3


def test_store_empty_tree(store):
    """Check the identity of the empty tree."""
    assert store.store(Tree([])) == "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def test_store_reordered_tree_same_id(store):
    """Check that re-ordering tree entries before storage yields the same identity."""
    first_oid = store.store(Blob(b"a\n"))
    second_oid = store.store(Blob(b"b\n"))
    tree_oid = store.store(
        Tree([TreeEntry("b.txt", second_oid), TreeEntry("a.txt", first_oid)])
    )
    reordered_tree_oid = store.store(
        Tree([TreeEntry("a.txt", first_oid), TreeEntry("b.txt", second_oid)])
    )
    assert tree_oid == reordered_tree_oid
    assert store._count() == 3


def test_store_duplicate_object(store):
    """Check that storing the same object twice results in exactly one file that is
    left untouched by the second store."""
    blob = Blob(b"test content\n")
    oid = store.store(blob)
    object_path = store._build_path(oid)
    with open(object_path, "rb") as stored:
        stored_bytes = stored.read()
    stat_before = os.stat(object_path)

    assert store.store(blob) == oid

    stat_after = os.stat(object_path)
    with open(object_path, "rb") as stored:
        assert stored.read() == stored_bytes
    assert stat_after.st_mtime_ns == stat_before.st_mtime_ns
    assert stat_after.st_ino == stat_before.st_ino
    assert store._count() == 1


def test_put_object_is_duplicate(store):
    """Check the object address reports whether the object was already stored."""
    blob = Blob(b"test content\n")
    first_address = store.put_object(blob)
    second_address = store.put_object(blob)
    assert not first_address.is_duplicate
    assert second_address.is_duplicate
    assert first_address.id == second_address.id
    assert first_address.abspath == second_address.abspath
    assert first_address.relpath == os.path.join(
        first_address.id[:2], first_address.id[2:]
    )


def test_store_object_is_read_only(store):
    """Check that loose objects are written with read-only permissions."""
    oid = store.store(Blob(b"test content\n"))
    assert os.stat(store._build_path(oid)).st_mode & 0o777 == 0o444


def test_store_no_tmp_files_left(store, blobs):
    """Check that no temporary files remain after storing objects."""
    for blob_data in blobs.values():
        store.store(Blob(blob_data["data"]))
    for _, _, files in os.walk(store.objects):
        for name in files:
            assert not name.startswith(store.tmp_prefix)
    assert store._count() == len(blobs)


def test_store_move_failure_cleans_up(store, monkeypatch):
    """Check that a failed move propagates and leaves neither a temporary file nor an
    object at the permanent address."""

    def failing_move(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(shutil, "move", failing_move)
    blob = Blob(b"test content\n")
    with pytest.raises(OSError):
        store.store(blob)
    assert not store.exists(store.hash_object(blob))
    assert store._count() == 0


def test_store_unwritable_directory(store):
    """Check that a storage fault propagates unchanged."""
    blob = Blob(b"test content\n")
    oid = store.hash_object(blob)
    # A file where the shard directory should be
    with open(os.path.join(store.objects, oid[:2]), "w", encoding="utf-8") as blocker:
        blocker.write("not a directory")
    with pytest.raises(NotADirectoryError):
        store.store(blob)
    assert not os.path.isfile(store._build_path(oid))


def test_store_chmod_failure_cleans_up(store, monkeypatch):
    """Check that failing to make the object read-only leaves no temporary file."""

    def failing_chmod(path, mode):
        raise PermissionError("operation not permitted")

    monkeypatch.setattr(os, "chmod", failing_chmod)
    blob = Blob(b"test content\n")
    with pytest.raises(PermissionError):
        store.store(blob)
    monkeypatch.undo()
    assert not store.exists(store.hash_object(blob))
    assert store._count() == 0


def test_store_compression_level(props, tmp_path):
    """Check that stored objects decompress to the frame whatever the level."""
    props["store_path"] = (tmp_path / "level9" / ".git").as_posix()
    props["store_compression_level"] = 9
    store = FileObjectDatabase(props)
    blob = Blob(b"x" * 4096)
    oid = store.store(blob)
    assert read_stored_frame(store._build_path(oid)) == frame_object(blob)


def test_hash_object_does_not_write(store, blobs):
    """Check that hash_object computes the identity without storing the object."""
    for blob_data in blobs.values():
        oid = store.hash_object(Blob(blob_data["data"]))
        assert oid == blob_data["sha1"]
        assert not store.exists(oid)
    assert store._count() == 0


def test_exists(store):
    """Check exists before and after storing an object."""
    blob = Blob(b"test content\n")
    oid = store.hash_object(blob)
    assert not store.exists(oid)
    store.store(blob)
    assert store.exists(oid)


def test_exists_invalid_id(store):
    """Check that exists rejects malformed identities."""
    with pytest.raises(InvalidObjectId):
        store.exists("../../etc/passwd")


def test_shard(store):
    """Test shard creates list."""
    hash_id = "bd9dbf5aae1a3862dd1526723246b20206e5fc37"
    predefined_list = ["bd", "9dbf5aae1a3862dd1526723246b20206e5fc37"]
    sharded_list = store._shard(hash_id)
    assert predefined_list == sharded_list


def test_shard_deeper_store(props, tmp_path):
    """Test shard with a configured depth of 3."""
    props["store_path"] = (tmp_path / "deep" / ".git").as_posix()
    props["store_depth"] = 3
    store = FileObjectDatabase(props)
    hash_id = "bd9dbf5aae1a3862dd1526723246b20206e5fc37"
    assert store._shard(hash_id) == ["bd", "9d", "bf", "5aae1a3862dd1526723246b20206e5fc37"]
    oid = store.store(Blob(b"what is up, doc?\n"))
    assert os.path.isfile(os.path.join(store.objects, "bd", "9d", "bf", oid[6:]))


def test_build_path(store):
    """Test build path returns the absolute path of an object."""
    oid = "bd9dbf5aae1a3862dd1526723246b20206e5fc37"
    path = store._build_path(oid)
    assert os.path.isabs(path)
    assert path == os.path.join(os.path.abspath(store.objects), oid[:2], oid[2:])


def test_count(store, blobs):
    """Check that count returns the number of stored objects."""
    assert store._count() == 0
    for blob_data in blobs.values():
        store.store(Blob(blob_data["data"]))
    assert store._count() == len(blobs)


def test_stored_ids_are_valid(store, blobs):
    """Check that every stored identity is a 40 character lowercase hex string."""
    for blob_data in blobs.values():
        assert is_object_id(store.store(Blob(blob_data["data"])))
