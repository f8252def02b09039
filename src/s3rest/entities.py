from functools import total_ordering
from s3rest.errors import NoSuchKey
from s3rest.errors import raise_for_response
from s3rest.errors import S3Error
from s3rest.interfaces import IBucket
from s3rest.interfaces import IS3Object
from zope.interface import implementer

import logging
import weakref


logger = logging.getLogger(__name__)

META_PREFIX = "x-amz-meta-"


def escape_key(object_key):
    """Escape an object key for use in a request path.

    Only spaces are rewritten (to ``+``). Query parameters such as listing
    prefixes are escaped with ``urllib.parse.quote`` instead.
    """
    return object_key.replace(" ", "+")


def object_path(bucket_name, object_key):
    return f"/{bucket_name}/{escape_key(object_key)}"


class _ClientBound:
    """Holds a non-owning reference to the S3 client an entity came from."""

    def __init__(self, client):
        self._client_ref = weakref.ref(client)

    @property
    def client(self):
        client = self._client_ref()
        if client is None:
            raise S3Error(f"The S3 client of {self!r} no longer exists")
        return client


@total_ordering
@implementer(IBucket)
class Bucket(_ClientBound):
    """An S3 bucket. Obtained from an S3 client, not built directly."""

    def __init__(self, client, name, creation_date):
        super().__init__(client)
        self.name = name
        self.creation_date = creation_date

    def __repr__(self):
        return f"<Bucket {self.name!r}>"

    def __eq__(self, other):
        if not isinstance(other, Bucket):
            return NotImplemented
        return self.name == other.name

    def __lt__(self, other):
        if not isinstance(other, Bucket):
            return NotImplemented
        return self.name < other.name

    def __hash__(self):
        return hash(self.name)

    def object_exists(self, object_key):
        return object_key in self.get_objects()

    def create_object(self, object_key, value, metadata=None):
        """Store ``value`` under ``object_key``, replacing any existing object.

        ``value`` is a bytes-like buffer, a str (sent as UTF-8) or a
        seekable binary stream. ``metadata`` entries are sent as
        ``x-amz-meta-<name>`` headers.
        """
        headers = {
            f"{META_PREFIX}{name}": meta for name, meta in (metadata or {}).items()
        }
        client = self.client
        response = client.transport.put(
            object_path(self.name, object_key), value, headers
        )
        raise_for_response(response)
        client.cache.invalidate_objects(self.name)
        return self.get_object(object_key)

    def delete_object(self, object_key):
        if self.get_object(object_key) is None:
            raise NoSuchKey("The specified key does not exist")
        client = self.client
        try:
            response = client.transport.delete(object_path(self.name, object_key))
        finally:
            client.cache.invalidate_objects(self.name)
        raise_for_response(response)
        return True

    def get_object(self, object_key):
        return self.get_objects(object_key).get(object_key)

    def get_objects(self, prefix=""):
        """Return ``{key: S3Object}`` for every key beginning with ``prefix``."""
        return self.client.get_objects(self, prefix)

    def delete(self, recursive=False):
        return self.client.delete_bucket(self.name, recursive)

    def __iter__(self):
        return iter(list(self.get_objects().values()))

    def __len__(self):
        return len(self.get_objects())

    def __contains__(self, object_key):
        return self.object_exists(object_key)

    def __getitem__(self, object_key):
        obj = self.get_object(object_key)
        if obj is None:
            raise KeyError(object_key)
        return obj

    def __setitem__(self, object_key, value):
        self.create_object(object_key, value)

    def __delitem__(self, object_key):
        self.delete_object(object_key)


@total_ordering
@implementer(IS3Object)
class S3Object(_ClientBound):
    """An object within a bucket, as last listed.

    ``size``, ``etag`` and ``last_modified`` are not refreshed when the
    value is replaced; list the bucket again to see the new metadata.
    """

    def __init__(self, bucket, key, size, etag, last_modified):
        super().__init__(bucket.client)
        self.bucket = bucket
        self.key = key
        self.size = size
        self.etag = etag
        self.last_modified = last_modified

    def __repr__(self):
        return f"<S3Object {self.bucket.name!r}/{self.key!r}>"

    def __eq__(self, other):
        if not isinstance(other, S3Object):
            return NotImplemented
        return (self.bucket.name, self.key) == (other.bucket.name, other.key)

    def __lt__(self, other):
        if not isinstance(other, S3Object):
            return NotImplemented
        return (self.bucket.name, self.key) < (other.bucket.name, other.key)

    def __hash__(self):
        return hash((self.bucket.name, self.key))

    @property
    def path(self):
        return object_path(self.bucket.name, self.key)

    @property
    def value(self):
        """The full value, read into memory."""
        response = self.client.transport.get(self.path)
        raise_for_response(response)
        return response.content

    @value.setter
    def value(self, new_value):
        self.set_value(new_value)

    def iter_value(self, chunk_size=64 * 1024):
        """Yield the value in chunks as they are read from the socket."""
        response = self.client.transport.get(self.path, stream=True)
        try:
            raise_for_response(response)
            yield from response.iter_content(chunk_size)
        finally:
            response.close()

    def set_value(self, new_value):
        client = self.client
        raise_for_response(client.transport.put(self.path, new_value))
        client.cache.invalidate_objects(self.bucket.name)
        return new_value

    def delete(self):
        return self.bucket.delete_object(self.key)
