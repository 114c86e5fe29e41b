"""Canonical encoding of git objects (blobs, flat trees and commits) and the
framing/digest functions that give every object its identity."""

import hashlib
import logging
import os
from abc import ABC, abstractmethod
from collections import namedtuple
from datetime import datetime
from jitstore.objectdb_exceptions import (
    DuplicateTreeEntry,
    InvalidObjectId,
    ObjectEncodingError,
)

# Length of a hex encoded SHA-1 digest
OBJECT_ID_LENGTH = 40
HEX_DIGITS = "0123456789abcdef"
# Mode of every tree entry, right-padded with a space to the 7 byte mode field
REGULAR_FILE_MODE = b"100644"
MODE_FIELD_WIDTH = 7
# Commit timestamps are always written in UTC
UTC_OFFSET = "+0000"


def is_object_id(oid):
    """Check whether `oid` is a 40 character lowercase hex string.

    :param oid: Value to check.

    :return: True if `oid` can be used as an object identity.
    :rtype: bool
    """
    return (
        isinstance(oid, str)
        and len(oid) == OBJECT_ID_LENGTH
        and all(char in HEX_DIGITS for char in oid)
    )


def hex_to_raw(oid):
    """Decode a hex object identity into its 20 raw digest bytes.

    :param str oid: Object identity.

    :raises InvalidObjectId: If `oid` is not a 40 character lowercase hex string.

    :return: Raw digest bytes.
    :rtype: bytes
    """
    if not is_object_id(oid):
        exception_string = (
            f"gitobjects - hex_to_raw: invalid object id: {oid!r}. Expected"
            + f" {OBJECT_ID_LENGTH} lowercase hex characters."
        )
        logging.error(exception_string)
        raise InvalidObjectId(exception_string)
    return bytes.fromhex(oid)


def frame_object(git_object):
    """Build the frame of an object: type tag, a space, the decimal content length,
    a NUL byte and the content itself. The frame is what gets hashed and stored.

    :param GitObject git_object: Object to frame.

    :return: Framed object bytes.
    :rtype: bytes
    """
    content = git_object.content
    header = f"{git_object.type} {len(content)}".encode("ascii")
    return header + b"\0" + content


def compute_object_id(frame, algorithm="sha1"):
    """Calculate the identity of a framed object.

    :param bytes frame: Framed object (see `frame_object`).
    :param str algorithm: `hashlib` algorithm name.

    :return: Lowercase hex digest.
    :rtype: str
    """
    hashobj = hashlib.new(algorithm)
    hashobj.update(frame)
    return hashobj.hexdigest()


def _encode_ascii(text, field):
    try:
        return text.encode("ascii")
    except UnicodeEncodeError as uee:
        exception_string = (
            f"gitobjects - _encode_ascii: {field} contains non-ASCII characters: {text!r}"
        )
        logging.error(exception_string)
        raise ObjectEncodingError(exception_string, errors=uee) from uee


class GitObject(ABC):
    """An immutable object stored in the object database. Subclasses define the
    type tag and how their content is canonically encoded."""

    type = None

    @property
    @abstractmethod
    def content(self):
        """Canonical content bytes of the object (without the frame header)."""
        raise NotImplementedError()


class Blob(GitObject):
    """File contents, stored exactly as read."""

    type = "blob"

    def __init__(self, data):
        if not isinstance(data, bytes):
            raise TypeError(f"Blob data must be bytes, data type supplied: {type(data)}")
        self._data = data

    @property
    def content(self):
        return self._data


class TreeEntry(namedtuple("TreeEntry", ["path", "oid"])):
    """A (path, object identity) pair in a flat tree.

    :param path: Relative file path, `str` (encoded with the filesystem encoding)
        or `bytes` (used as is).
    :param str oid: Identity of the blob the path points to.
    """

    @property
    def encoded_path(self):
        """Path as the bytes written into the tree and used for ordering."""
        if isinstance(self.path, bytes):
            return self.path
        return os.fsencode(self.path)

    def encode(self):
        """Encode the entry: mode field, path, NUL and the 20 raw digest bytes."""
        return (
            REGULAR_FILE_MODE.ljust(MODE_FIELD_WIDTH)
            + self.encoded_path
            + b"\0"
            + hex_to_raw(self.oid)
        )


class Tree(GitObject):
    """A flat directory snapshot. Entries are always encoded sorted by their path
    bytes so that the same set of entries yields the same identity."""

    type = "tree"

    def __init__(self, entries):
        self._entries = tuple(entries)

    @property
    def entries(self):
        """Entries sorted the way they are encoded."""
        return sorted(self._entries, key=lambda entry: entry.encoded_path)

    @property
    def content(self):
        entries = self.entries
        for previous, current in zip(entries, entries[1:]):
            if previous.encoded_path == current.encoded_path:
                exception_string = (
                    f"Tree - content: duplicate entry for path: {current.path!r}"
                )
                logging.error(exception_string)
                raise DuplicateTreeEntry(exception_string)
        return b"".join(entry.encode() for entry in entries)


class Author(namedtuple("Author", ["name", "email", "time"])):
    """Author/committer identity of a commit.

    :param str name: Author name.
    :param str email: Author email.
    :param datetime time: Authoring time. Naive values are taken as local time.
    """

    @property
    def timestamp(self):
        """Whole seconds since the Unix epoch followed by the UTC offset."""
        seconds = int(self.time.timestamp())
        return f"{seconds} {UTC_OFFSET}"

    def __str__(self):
        return f"{self.name} <{self.email}> {self.timestamp}"

    @classmethod
    def now(cls, name, email):
        """Author stamped with the current time."""
        return cls(name, email, datetime.now())


class Commit(GitObject):
    """A commit referencing one tree, with identical author and committer lines
    and a free-form message."""

    type = "commit"

    def __init__(self, tree_oid, author, message):
        self.tree_oid = tree_oid
        self.author = author
        self.message = message

    @property
    def content(self):
        if not is_object_id(self.tree_oid):
            exception_string = f"Commit - content: invalid tree id: {self.tree_oid!r}"
            logging.error(exception_string)
            raise InvalidObjectId(exception_string)
        author = str(self.author)
        header = (
            f"tree {self.tree_oid}\n"
            + f"author {author}\n"
            + f"committer {author}\n"
            + "\n"
        )
        message = self.message
        if not isinstance(message, bytes):
            message = _encode_ascii(message, "message")
        return _encode_ascii(header, "header") + message
