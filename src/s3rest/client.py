from s3rest.cache import ListingCache
from s3rest.errors import NoSuchBucket
from s3rest.errors import raise_for_response
from s3rest.interfaces import IS3Client
from s3rest.listing import ListingPaginator
from s3rest.signer import REST_ENDPOINT
from s3rest.signer import RequestSigner
from s3rest.transport import Transport
from zope.interface import implementer

import logging


logger = logging.getLogger(__name__)


@implementer(IS3Client)
class S3:
    """Client for the Amazon S3 REST API.

    Bucket and object listings are cached in-process when ``enable_cache``
    is true; this saves round-trips but may return stale results while
    other clients modify the same account. Any create or delete through
    this client invalidates the affected listings.

    ``verify_ssl=False`` turns off TLS certificate verification and should
    only be used against endpoints you otherwise trust.

    The cache is locked internally, but a client shared between threads
    may still run the same listing twice when both threads miss at once.
    A listing that overlaps a create or delete is returned but not cached.

    Buckets and objects hold only a weak reference to their client, so keep
    the client alive while using them. A chained call on a temporary
    client, such as ``S3(key, secret).get_bucket("b").get_objects()``,
    raises S3Error once the client has been collected.
    """

    def __init__(
        self,
        access_key_id,
        secret_access_key,
        enable_cache=True,
        use_ssl=True,
        verify_ssl=True,
        endpoint=REST_ENDPOINT,
        connect_timeout=60,
        read_timeout=60,
        transport=None,
    ):
        if transport is None:
            transport = Transport(
                RequestSigner(access_key_id, secret_access_key, host=endpoint),
                use_ssl=use_ssl,
                verify_ssl=verify_ssl,
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
            )
        self.transport = transport
        self.cache = ListingCache(enabled=enable_cache)
        self.paginator = ListingPaginator(transport)

    @property
    def enable_cache(self):
        return self.cache.enabled

    def close(self):
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # -- Raw signed requests --

    def request_get(self, path, headers=None, stream=False):
        return self.transport.get(path, headers=headers, stream=stream)

    def request_put(self, path, content=None, headers=None):
        return self.transport.put(path, content, headers)

    def request_delete(self, path, headers=None):
        return self.transport.delete(path, headers=headers)

    def request_head(self, path, headers=None):
        return self.transport.head(path, headers=headers)

    # -- Listings --

    def get_buckets(self):
        """Return ``{name: Bucket}`` for every bucket owned by the account."""
        buckets = self.cache.get_buckets()
        if buckets is None:
            generation = self.cache.generation()
            buckets = self.paginator.list_buckets(self)
            self.cache.set_buckets(buckets, generation)
        return buckets

    def get_objects(self, bucket, prefix=""):
        """Return ``{key: S3Object}`` for keys of ``bucket`` starting with prefix."""
        objects = self.cache.get_objects(bucket.name, prefix)
        if objects is None:
            generation = self.cache.generation(bucket.name)
            objects = self.paginator.list_objects(bucket, prefix)
            self.cache.set_objects(bucket.name, prefix, objects, generation)
        return objects

    # -- Buckets --

    def bucket_exists(self, bucket_name):
        return bucket_name in self.get_buckets()

    def get_bucket(self, bucket_name):
        return self.get_buckets().get(bucket_name)

    def create_bucket(self, bucket_name):
        raise_for_response(self.transport.put(f"/{bucket_name}"))
        self.cache.invalidate_buckets()
        logger.debug("Created bucket %s", bucket_name)
        return self.get_bucket(bucket_name)

    def delete_bucket(self, bucket_name, recursive=False):
        """Delete a bucket.

        With ``recursive`` every object is deleted first; otherwise a
        non-empty bucket fails with BucketNotEmpty.
        """
        bucket = self.get_bucket(bucket_name)
        if bucket is None:
            raise NoSuchBucket("The specified bucket does not exist")

        if recursive:
            for obj in bucket:
                bucket.delete_object(obj.key)

        try:
            response = self.transport.delete(f"/{bucket_name}")
        finally:
            self.cache.invalidate_buckets()
            self.cache.invalidate_objects(bucket_name)
        raise_for_response(response)
        logger.debug("Deleted bucket %s", bucket_name)
        return True

    def __iter__(self):
        return iter(list(self.get_buckets().values()))

    def __len__(self):
        return len(self.get_buckets())

    def __contains__(self, bucket_name):
        return self.bucket_exists(bucket_name)

    def __getitem__(self, bucket_name):
        bucket = self.get_bucket(bucket_name)
        if bucket is None:
            raise KeyError(bucket_name)
        return bucket
