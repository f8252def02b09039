from email.utils import formatdate
from s3rest.errors import InvalidRequestPath
from s3rest.interfaces import IRequestSigner
from zope.interface import implementer

import base64
import hashlib
import hmac
import logging
import re


logger = logging.getLogger(__name__)

REST_ENDPOINT = "s3.amazonaws.com"
CONTENT_TYPE = "binary/octet-stream"
DIGEST_CHUNK_SIZE = 64 * 1024
METHODS = ("GET", "PUT", "DELETE", "HEAD")

_PATH_RE = re.compile(r"^(/[^?]*)(?:\?.*)?$", re.DOTALL)


def canonical_path(path):
    """Return the part of ``path`` that is signed (query string removed)."""
    match = _PATH_RE.match(path or "")
    if match is None:
        raise InvalidRequestPath(f"Invalid request path: {path!r}")
    return match.group(1)


def is_stream(content):
    return hasattr(content, "read") and hasattr(content, "seek")


def stream_digest(stream, chunk_size=DIGEST_CHUNK_SIZE):
    """MD5 a seekable stream from its start and rewind it.

    Returns ``(md5 digest, byte length)``.
    """
    md5 = hashlib.md5()
    size = 0
    stream.seek(0)
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        md5.update(chunk)
        size += len(chunk)
    stream.seek(0)
    return md5.digest(), size


def content_md5(digest):
    return base64.b64encode(digest).decode("ascii")


@implementer(IRequestSigner)
class RequestSigner:
    """Signs S3 REST requests with the "AWS key:signature" HMAC-SHA1 scheme."""

    def __init__(self, access_key_id, secret_access_key, host=REST_ENDPOINT):
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self.host = host

    @property
    def access_key_id(self):
        return self._access_key_id

    def sign(self, method, path, content=None, headers=None, date=None):
        """Return the headers that authenticate this request.

        ``content`` is None, a bytes-like buffer (or str, sent as UTF-8) or
        a seekable binary stream; a stream is read once for its digest and
        left rewound at position 0. ``headers`` are merged verbatim after
        the computed ones. ``date`` overrides the current time.
        """
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")
        resource = canonical_path(path)

        signed = {
            "Host": self.host,
            "Date": date or formatdate(usegmt=True),
        }
        if content is None:
            signed["Content-Length"] = "0"
        else:
            if is_stream(content):
                digest, size = stream_digest(content)
            else:
                if isinstance(content, str):
                    content = content.encode("utf-8")
                digest, size = hashlib.md5(content).digest(), len(content)
            signed["Content-Type"] = CONTENT_TYPE
            signed["Content-Length"] = str(size)
            signed["Content-MD5"] = content_md5(digest)

        signed.update(headers or {})

        string_to_sign = self.string_to_sign(method, resource, signed)
        signature = self.signature(string_to_sign)
        signed["Authorization"] = f"AWS {self._access_key_id}:{signature}"
        logger.debug("Signed %s %s", method, resource)
        return signed

    def string_to_sign(self, method, path, headers):
        lookup = {name.lower(): value for name, value in headers.items()}
        lines = [
            method.upper(),
            lookup.get("content-md5", ""),
            lookup.get("content-type", ""),
            lookup.get("date", ""),
        ]
        amz_headers = sorted(
            (name.strip(), str(value).strip())
            for name, value in lookup.items()
            if name.startswith("x-amz-")
        )
        lines.extend(f"{name}:{value}" for name, value in amz_headers)
        lines.append(canonical_path(path))
        return "\n".join(lines)

    def signature(self, string_to_sign):
        mac = hmac.new(
            self._secret_access_key.encode("utf-8"),
            string_to_sign.encode("utf-8"),
            hashlib.sha1,
        )
        return base64.b64encode(mac.digest()).decode("ascii").strip()
