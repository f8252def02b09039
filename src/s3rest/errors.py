from xml.etree import ElementTree

import logging


logger = logging.getLogger(__name__)


class S3Error(Exception):
    """Base class for every error raised by s3rest.

    Raised directly for service error codes without a dedicated subclass;
    ``code`` and ``message`` then carry what the service reported.
    """

    code = None

    def __init__(self, message="", code=None, request_id=None, host_id=None):
        if code is not None:
            self.code = code
        self.message = message
        self.request_id = request_id
        self.host_id = host_id
        if code is not None and type(self) is S3Error:
            super().__init__(f"{code}: {message}")
        else:
            super().__init__(message)


class InvalidRequestPath(S3Error):
    """The request path cannot be signed (it must start with a slash)."""


class UnknownError(S3Error):
    """A failure response whose body is not an S3 ``<Error>`` document."""

    def __init__(self, status, body):
        self.status = status
        self.body = body
        text = body.decode("utf-8", "replace") if isinstance(body, bytes) else body
        super().__init__(f"Unknown error (HTTP {status}): {text}")


# Service-reported errors, one class per S3 error code.


class AccessDenied(S3Error):
    code = "AccessDenied"


class AccountProblem(S3Error):
    code = "AccountProblem"


class AllAccessDisabled(S3Error):
    code = "AllAccessDisabled"


class AmbiguousGrantByEmailAddress(S3Error):
    code = "AmbiguousGrantByEmailAddress"


class OperationAborted(S3Error):
    code = "OperationAborted"


class BadDigest(S3Error):
    code = "BadDigest"


class BucketAlreadyExists(S3Error):
    code = "BucketAlreadyExists"


class BucketNotEmpty(S3Error):
    code = "BucketNotEmpty"


class CredentialsNotSupported(S3Error):
    code = "CredentialsNotSupported"


class EntityTooLarge(S3Error):
    code = "EntityTooLarge"


class IncompleteBody(S3Error):
    code = "IncompleteBody"


class InternalError(S3Error):
    code = "InternalError"


class InvalidAccessKeyId(S3Error):
    code = "InvalidAccessKeyId"


class InvalidAddressingHeader(S3Error):
    code = "InvalidAddressingHeader"


class InvalidArgument(S3Error):
    code = "InvalidArgument"


class InvalidBucketName(S3Error):
    code = "InvalidBucketName"


class InvalidDigest(S3Error):
    code = "InvalidDigest"


class InvalidRange(S3Error):
    code = "InvalidRange"


class InvalidSecurity(S3Error):
    code = "InvalidSecurity"


class InvalidStorageClass(S3Error):
    code = "InvalidStorageClass"


class InvalidTargetBucketForLogging(S3Error):
    code = "InvalidTargetBucketForLogging"


class KeyTooLong(S3Error):
    code = "KeyTooLong"


class InvalidURI(S3Error):
    code = "InvalidURI"


class MalformedACLError(S3Error):
    code = "MalformedACLError"


class MalformedXMLError(S3Error):
    code = "MalformedXMLError"


class MaxMessageLengthExceeded(S3Error):
    code = "MaxMessageLengthExceeded"


class MetadataTooLarge(S3Error):
    code = "MetadataTooLarge"


class MethodNotAllowed(S3Error):
    code = "MethodNotAllowed"


class MissingContentLength(S3Error):
    code = "MissingContentLength"


class MissingSecurityHeader(S3Error):
    code = "MissingSecurityHeader"


class NoLoggingStatusForKey(S3Error):
    code = "NoLoggingStatusForKey"


class NoSuchBucket(S3Error):
    code = "NoSuchBucket"


class NoSuchKey(S3Error):
    code = "NoSuchKey"


class NotImplementedByService(S3Error):
    # Renamed to stay clear of the NotImplemented builtin.
    code = "NotImplemented"


class NotSignedUp(S3Error):
    code = "NotSignedUp"


class PreconditionFailed(S3Error):
    code = "PreconditionFailed"


class RequestTimeout(S3Error):
    code = "RequestTimeout"


class RequestTimeTooSkewed(S3Error):
    code = "RequestTimeTooSkewed"


class RequestTorrentOfBucketError(S3Error):
    code = "RequestTorrentOfBucketError"


class SignatureDoesNotMatch(S3Error):
    code = "SignatureDoesNotMatch"


class TooManyBuckets(S3Error):
    code = "TooManyBuckets"


class UnexpectedContent(S3Error):
    code = "UnexpectedContent"


class UnresolvableGrantByEmailAddress(S3Error):
    code = "UnresolvableGrantByEmailAddress"


ERROR_CODES = {
    cls.code: cls
    for cls in (
        AccessDenied,
        AccountProblem,
        AllAccessDisabled,
        AmbiguousGrantByEmailAddress,
        OperationAborted,
        BadDigest,
        BucketAlreadyExists,
        BucketNotEmpty,
        CredentialsNotSupported,
        EntityTooLarge,
        IncompleteBody,
        InternalError,
        InvalidAccessKeyId,
        InvalidAddressingHeader,
        InvalidArgument,
        InvalidBucketName,
        InvalidDigest,
        InvalidRange,
        InvalidSecurity,
        InvalidStorageClass,
        InvalidTargetBucketForLogging,
        KeyTooLong,
        InvalidURI,
        MalformedACLError,
        MalformedXMLError,
        MaxMessageLengthExceeded,
        MetadataTooLarge,
        MethodNotAllowed,
        MissingContentLength,
        MissingSecurityHeader,
        NoLoggingStatusForKey,
        NoSuchBucket,
        NoSuchKey,
        NotImplementedByService,
        NotSignedUp,
        PreconditionFailed,
        RequestTimeout,
        RequestTimeTooSkewed,
        RequestTorrentOfBucketError,
        SignatureDoesNotMatch,
        TooManyBuckets,
        UnexpectedContent,
        UnresolvableGrantByEmailAddress,
    )
}
# Current S3 reports malformed request XML without the "Error" suffix.
ERROR_CODES["MalformedXML"] = MalformedXMLError


def local_name(tag):
    """Strip an ``{namespace}`` prefix from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1]


def error_for_code(code, message, request_id=None, host_id=None):
    """Build the exception for a service error code.

    Unknown codes fall back to a plain S3Error carrying code and message.
    """
    cls = ERROR_CODES.get(code)
    if cls is None:
        return S3Error(message, code=code, request_id=request_id, host_id=host_id)
    return cls(message, request_id=request_id, host_id=host_id)


def parse_error(status, body):
    """Decode an S3 error response body into an exception instance."""
    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError:
        return UnknownError(status, body)
    if local_name(root.tag) != "Error":
        return UnknownError(status, body)

    fields = {local_name(child.tag): child.text or "" for child in root}
    return error_for_code(
        fields.get("Code", ""),
        fields.get("Message", ""),
        request_id=fields.get("RequestId"),
        host_id=fields.get("HostId"),
    )


def raise_for_response(response):
    """Raise the decoded S3 error if ``response`` is not a success."""
    if response.ok:
        return
    error = parse_error(response.status, response.content)
    logger.debug("S3 request failed with HTTP %s: %s", response.status, error)
    raise error
