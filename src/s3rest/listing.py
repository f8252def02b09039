from botocore.utils import parse_timestamp
from s3rest.entities import Bucket
from s3rest.entities import S3Object
from s3rest.errors import local_name
from s3rest.errors import raise_for_response
from s3rest.errors import S3Error
from s3rest.interfaces import IListingPaginator
from urllib.parse import quote
from xml.etree import ElementTree
from zope.interface import implementer

import logging


logger = logging.getLogger(__name__)


def _children(element, name):
    return [child for child in element if local_name(child.tag) == name]


def _child(element, name):
    for child in element:
        if local_name(child.tag) == name:
            return child
    return None


def _text(element, name, default=None):
    child = _child(element, name)
    if child is None or child.text is None:
        return default
    return child.text


def objects_path(bucket_name, prefix="", marker=None):
    path = f"/{bucket_name}?prefix={quote(prefix)}"
    if marker is not None:
        path += f"&marker={quote(marker)}"
    return path


@implementer(IListingPaginator)
class ListingPaginator:
    """Decodes bucket and object listings, following truncated pages.

    Object listings use marker pagination: the key of the last
    ``Contents`` element of a truncated page is sent as ``marker`` for the
    next one, until a page reports ``IsTruncated`` false.
    """

    def __init__(self, transport):
        self.transport = transport

    def _fetch(self, path):
        response = self.transport.get(path)
        raise_for_response(response)
        return ElementTree.fromstring(response.content)

    def list_buckets(self, client):
        root = self._fetch("/")
        buckets = {}
        container = _child(root, "Buckets")
        if container is None:
            return buckets
        for element in _children(container, "Bucket"):
            name = _text(element, "Name")
            creation_date = _text(element, "CreationDate")
            buckets[name] = Bucket(
                client,
                name,
                parse_timestamp(creation_date) if creation_date else None,
            )
        logger.debug("Listed %d buckets", len(buckets))
        return buckets

    def list_objects(self, bucket, prefix=""):
        objects = {}
        marker = None
        pages = 0
        while True:
            root = self._fetch(objects_path(bucket.name, prefix, marker))
            pages += 1
            contents = _children(root, "Contents")
            for element in contents:
                obj = self.decode_object(bucket, element)
                objects[obj.key] = obj
            logger.debug(
                "Listed page %d of bucket=%s prefix=%r: %d objects",
                pages,
                bucket.name,
                prefix,
                len(contents),
            )

            if _text(root, "IsTruncated", "false").strip().lower() != "true":
                return objects

            if contents:
                marker = _text(contents[-1], "Key")
            else:
                marker = _text(root, "NextMarker")
                if marker is None:
                    raise S3Error(
                        f"Truncated listing of bucket {bucket.name!r} "
                        "has no marker to continue from"
                    )

    @staticmethod
    def decode_object(bucket, element):
        last_modified = _text(element, "LastModified")
        return S3Object(
            bucket,
            _text(element, "Key"),
            int(_text(element, "Size", "0")),
            _text(element, "ETag"),
            parse_timestamp(last_modified) if last_modified else None,
        )
