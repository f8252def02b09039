from s3rest.interfaces import IListingCache
from zope.interface import implementer

import logging
import threading


logger = logging.getLogger(__name__)


@implementer(IListingCache)
class ListingCache:
    """In-process memo of bucket and object listings.

    One slot holds the account's bucket map; per bucket, one slot per
    listing prefix holds that prefix's object map. Lookups are exact:
    a cached "" prefix does not answer a request for "a". Invalidating a
    bucket drops all of its prefixes.

    When ``enabled`` is false every lookup misses and stores are ignored.
    """

    def __init__(self, enabled=True):
        self.enabled = enabled
        self._buckets = None
        self._objects = {}  # {bucket_name: {prefix: {key: S3Object}}}
        # Bumped by every invalidation; a listing started under an older
        # generation is not stored.
        self._epoch = 0
        self._bucket_generation = 0
        self._object_generations = {}  # {bucket_name: int}
        self._lock = threading.Lock()

    def generation(self, bucket_name=None):
        """Return a token for the bucket slot, or for one bucket's objects.

        Take it before listing and hand it to ``set_buckets`` or
        ``set_objects``; the store is dropped if an invalidation happened
        in between.
        """
        with self._lock:
            if bucket_name is None:
                return (self._epoch, self._bucket_generation)
            return (self._epoch, self._object_generations.get(bucket_name, 0))

    def get_buckets(self):
        if not self.enabled:
            return None
        with self._lock:
            buckets = self._buckets
        logger.debug("Bucket listing cache %s", "miss" if buckets is None else "hit")
        return buckets

    def set_buckets(self, buckets, generation=None):
        if not self.enabled:
            return
        with self._lock:
            if generation is not None and generation != (
                self._epoch,
                self._bucket_generation,
            ):
                logger.debug("Dropping bucket listing invalidated while in flight")
                return
            self._buckets = buckets

    def get_objects(self, bucket_name, prefix=""):
        if not self.enabled:
            return None
        with self._lock:
            objects = self._objects.get(bucket_name, {}).get(prefix)
        logger.debug(
            "Object listing cache %s for bucket=%s prefix=%r",
            "miss" if objects is None else "hit",
            bucket_name,
            prefix,
        )
        return objects

    def set_objects(self, bucket_name, prefix, objects, generation=None):
        if not self.enabled:
            return
        with self._lock:
            current = (self._epoch, self._object_generations.get(bucket_name, 0))
            if generation is not None and generation != current:
                logger.debug(
                    "Dropping listing of bucket=%s prefix=%r invalidated while "
                    "in flight",
                    bucket_name,
                    prefix,
                )
                return
            self._objects.setdefault(bucket_name, {})[prefix] = objects

    def invalidate_buckets(self):
        with self._lock:
            self._buckets = None
            self._bucket_generation += 1

    def invalidate_objects(self, bucket_name):
        with self._lock:
            self._objects.pop(bucket_name, None)
            self._object_generations[bucket_name] = (
                self._object_generations.get(bucket_name, 0) + 1
            )

    def clear(self):
        with self._lock:
            self._buckets = None
            self._objects.clear()
            self._epoch += 1

    def cached_prefixes(self, bucket_name):
        """Return the prefixes currently cached for a bucket. For testing."""
        with self._lock:
            return set(self._objects.get(bucket_name, ()))
