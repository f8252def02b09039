from botocore.awsrequest import AWSRequest
from botocore.httpsession import URLLib3Session
from s3rest.interfaces import ITransport
from s3rest.signer import canonical_path
from urllib.parse import quote
from zope.interface import implementer

import logging


logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024
PATH_SAFE = "/?&=+%~"


class Response:
    """Status, headers and body of one S3 REST response.

    For streamed GETs the body stays on the socket until ``content`` or
    ``iter_content`` is used; call ``close`` when done with it.
    """

    def __init__(self, http_response, streamed=False):
        self._http_response = http_response
        self._streamed = streamed

    @property
    def status(self):
        return self._http_response.status_code

    @property
    def headers(self):
        return self._http_response.headers

    @property
    def ok(self):
        return 200 <= self.status < 300

    @property
    def content(self):
        return self._http_response.content

    def iter_content(self, chunk_size=STREAM_CHUNK_SIZE):
        if not self._streamed:
            content = self.content
            for start in range(0, len(content), chunk_size):
                yield content[start : start + chunk_size]
            return
        yield from self._http_response.raw.stream(chunk_size)

    def close(self):
        if self._streamed:
            raw = self._http_response.raw
            raw.close()
            raw.release_conn()

    def __repr__(self):
        return f"<Response [{self.status}]>"


@implementer(ITransport)
class Transport:
    """Issues signed GET/PUT/DELETE/HEAD requests against one endpoint."""

    def __init__(
        self,
        signer,
        use_ssl=True,
        verify_ssl=True,
        connect_timeout=60,
        read_timeout=60,
    ):
        self.signer = signer
        self.use_ssl = use_ssl
        self.verify_ssl = verify_ssl
        if not use_ssl:
            logger.warning(
                "S3 SSL is disabled, data and credentials are transmitted in cleartext"
            )
        elif not verify_ssl:
            logger.warning(
                "S3 TLS certificate verification is disabled, "
                "the endpoint's identity is not checked"
            )
        self._session = URLLib3Session(
            verify=verify_ssl,
            timeout=(connect_timeout, read_timeout),
        )

    @property
    def base_url(self):
        scheme = "https" if self.use_ssl else "http"
        return f"{scheme}://{self.signer.host}"

    def request(self, method, path, content=None, headers=None, stream=False):
        # Validate before anything touches the network.
        canonical_path(path)
        # Sign the path exactly as it goes on the wire. Existing escapes
        # are kept, so quoted listing queries pass through unchanged.
        path = quote(path, safe=PATH_SAFE)
        if isinstance(content, str):
            content = content.encode("utf-8")
        signed = self.signer.sign(method, path, content, headers)
        request = AWSRequest(
            method=method,
            url=self.base_url + path,
            headers=signed,
            data=content,
            stream_output=stream,
        )
        logger.debug("S3 %s %s", method, path)
        http_response = self._session.send(request.prepare())
        logger.debug("S3 %s %s -> %s", method, path, http_response.status_code)
        return Response(http_response, streamed=stream)

    def get(self, path, headers=None, stream=False):
        return self.request("GET", path, headers=headers, stream=stream)

    def put(self, path, content=None, headers=None):
        return self.request("PUT", path, content=content, headers=headers)

    def delete(self, path, headers=None):
        return self.request("DELETE", path, headers=headers)

    def head(self, path, headers=None):
        return self.request("HEAD", path, headers=headers)

    def close(self):
        self._session.close()
