from s3rest.client import S3
from s3rest.entities import Bucket
from s3rest.entities import S3Object
from s3rest.errors import S3Error


__all__ = ["Bucket", "S3", "S3Error", "S3Object"]
