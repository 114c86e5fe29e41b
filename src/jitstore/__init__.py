"""jitstore is a content-addressable object database that writes git compatible
loose objects, plus a small command line client (`jit`) built on top of it.

Some properties:

- Objects (blobs, flat trees and commits) are immutable and never change
- Objects are named using the SHA-1 hex digest of their framed content
    (`<type> <length>\\0<content>`), thus identical objects are stored once
- Objects are zlib compressed and written to a temporary file that is atomically
    renamed to `objects/<first 2 hex chars>/<remaining 38 hex chars>`
- Store properties are persisted in a `jitstore.yaml` file in the store root
"""

from jitstore.objectdb import ObjectDatabase, ObjectDatabaseFactory

__all__ = ("ObjectDatabase", "ObjectDatabaseFactory")
__version__ = "1.0.0"
