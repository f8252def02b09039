from zope.interface import Attribute
from zope.interface import Interface


class IRequestSigner(Interface):
    """Computes authentication headers for S3 REST requests."""

    access_key_id = Attribute("Access key id named in the Authorization header.")

    def sign(method, path, content=None, headers=None, date=None):
        """Return the headers (including Authorization) for a request."""

    def string_to_sign(method, path, headers):
        """Return the canonical string the signature is computed over."""


class ITransport(Interface):
    """Sends signed requests to the S3 REST endpoint."""

    def get(path, headers=None, stream=False):
        """GET ``path``; with ``stream`` the body is left unread."""

    def put(path, content=None, headers=None):
        """PUT a buffer or seekable stream to ``path``."""

    def delete(path, headers=None):
        """DELETE ``path``."""

    def head(path, headers=None):
        """HEAD ``path``."""

    def close():
        """Release pooled connections."""


class IListingCache(Interface):
    """In-process memo of decoded bucket and object listings."""

    def get_buckets():
        """Return the cached bucket map or None."""

    def generation(bucket_name=None):
        """Return a token to hand to a later store.

        Without a bucket name the token covers the bucket map, otherwise
        the object maps of that bucket.
        """

    def set_buckets(buckets, generation=None):
        """Store the bucket map unless invalidated since ``generation``."""

    def get_objects(bucket_name, prefix):
        """Return the cached object map for this exact prefix or None."""

    def set_objects(bucket_name, prefix, objects, generation=None):
        """Store a prefix's object map unless invalidated since ``generation``."""

    def invalidate_buckets():
        """Forget the bucket map."""

    def invalidate_objects(bucket_name):
        """Forget every cached prefix of a bucket."""


class IListingPaginator(Interface):
    """Drives the multi-page XML listing protocol."""

    def list_buckets(client):
        """Return ``{name: Bucket}`` for every bucket, bound to ``client``."""

    def list_objects(bucket, prefix=""):
        """Return ``{key: S3Object}`` for every key starting with prefix."""


class IS3Client(Interface):
    """Account-level access to buckets."""

    def bucket_exists(bucket_name):
        """Return True if the account owns ``bucket_name``."""

    def create_bucket(bucket_name):
        """Create a bucket and return it."""

    def delete_bucket(bucket_name, recursive=False):
        """Delete a bucket, optionally emptying it first."""

    def get_bucket(bucket_name):
        """Return the Bucket or None."""

    def get_buckets():
        """Return ``{name: Bucket}``."""

    def get_objects(bucket, prefix=""):
        """Return ``{key: S3Object}`` for keys of ``bucket`` starting with prefix."""


class IBucket(Interface):
    """A named container of objects."""

    name = Attribute("Bucket name.")
    creation_date = Attribute("Creation timestamp (datetime).")

    def object_exists(object_key):
        """Return True if the bucket holds ``object_key``."""

    def create_object(object_key, value, metadata=None):
        """Store ``value`` under ``object_key`` and return the S3Object."""

    def delete_object(object_key):
        """Delete ``object_key``."""

    def get_object(object_key):
        """Return the S3Object or None."""

    def get_objects(prefix=""):
        """Return ``{key: S3Object}`` for keys starting with ``prefix``."""


class IS3Object(Interface):
    """A key/value entry within a bucket."""

    key = Attribute("Object key.")
    size = Attribute("Size in bytes as listed.")
    etag = Attribute("Opaque content fingerprint.")
    last_modified = Attribute("Last modification timestamp (datetime).")

    def iter_value(chunk_size=None):
        """Yield the object's value in chunks as they arrive."""

    def set_value(value):
        """Replace the object's value with a buffer or seekable stream."""
