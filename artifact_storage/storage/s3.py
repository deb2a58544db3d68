"""S3-compatible storage backend using requests (works with AWS, MinIO and friends)."""

import os
from dataclasses import dataclass
from typing import BinaryIO
from urllib.parse import quote
from xml.etree import ElementTree

import requests
from loguru import logger
from requests_aws4auth import AWS4Auth

from artifact_storage.errors import (
    ConfigurationError,
    ErrorKind,
    InvalidNameError,
    MoveIncompleteError,
    StorageError,
)

UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
REDIRECT_CODES = (301, 302, 307, 308)


class S3StorageError(StorageError):
    """Error response or transport failure from the S3 endpoint."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        name: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ):
        super().__init__(message, kind, name)
        self.status_code = status_code
        self.code = code


@dataclass
class S3Location:
    """Where a bucket lives and how to sign requests to it."""

    endpoint: str
    access_key: str
    secret_key: str
    bucket: str


def normalize_endpoint(endpoint: str, scheme: str = "") -> str:
    """Turn a bare host into a full URL, defaulting to https."""
    endpoint = endpoint.rstrip("/")
    if "://" in endpoint:
        return endpoint
    scheme = scheme.lower()
    if scheme not in ("http", "https"):
        scheme = "https"
    return f"{scheme}://{endpoint}"


def parse_connection_string(conn: str) -> S3Location:
    """Parse ``scheme://endpoint:accessKey:secretKey:bucket``.

    The scheme picks the endpoint protocol when it is ``http`` or ``https``;
    anything else (``s3://``) means https.
    """
    parts = conn.split("://")
    if len(parts) != 2:
        raise ConfigurationError(
            "Invalid S3 storage config: expected scheme://endpoint:accessKey:secretKey:bucket"
        )

    scheme, details = parts
    fields = details.split(":")
    if len(fields) != 4:
        raise ConfigurationError(
            f"Invalid S3 storage config: expected 4 ':'-separated fields, got {len(fields)}"
        )
    if not all(fields):
        raise ConfigurationError("Invalid S3 storage config: empty field")

    endpoint, access_key, secret_key, bucket = fields
    return S3Location(
        endpoint=normalize_endpoint(endpoint, scheme),
        access_key=access_key,
        secret_key=secret_key,
        bucket=bucket,
    )


class UnsignedPayloadAuth(AWS4Auth):
    """AWS4Auth that signs streamed bodies with UNSIGNED-PAYLOAD.

    AWS4Auth hashes the request body, which only works for bodies already in
    memory. File-like bodies are left unhashed so they can be streamed.
    """

    def __call__(self, req):
        body = req.body
        if body is None or isinstance(body, (bytes, str)):
            return super().__call__(req)

        req.body = None
        req.unsigned_payload = True
        try:
            return super().__call__(req)
        finally:
            req.body = body

    def get_canonical_headers(self, req, include=None):
        if getattr(req, "unsigned_payload", False):
            req.headers["x-amz-content-sha256"] = UNSIGNED_PAYLOAD
        return super().get_canonical_headers(req, include)


def _parse_error(content: bytes) -> tuple[str | None, str | None]:
    """Extract Code and Message from an S3 error document."""
    if not content:
        return None, None
    try:
        root = ElementTree.fromstring(content)
    except ElementTree.ParseError:
        return None, None
    if root.tag != "Error":
        return None, None
    return root.findtext("Code"), root.findtext("Message")


def _error_kind(status_code: int, code: str | None) -> ErrorKind:
    if status_code == 404 or code in ("NoSuchKey", "NoSuchBucket"):
        return ErrorKind.NOT_FOUND
    if status_code in (401, 403) or code == "AccessDenied":
        return ErrorKind.PERMISSION_DENIED
    if status_code >= 500 or code in ("SlowDown", "ServiceUnavailable", "InternalError"):
        return ErrorKind.UNAVAILABLE
    return ErrorKind.OTHER


class S3Storage:
    """Storage backend using requests + AWS4Auth.

    Names are used verbatim as object keys with path-style addressing
    (``{endpoint}/{bucket}/{key}``). Deleting a missing key succeeds on
    AWS S3 and stores that follow it, since they answer 204 either way.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        domain: str = "",
        region: str | None = None,
        timeout: int = 300,
    ):
        self.bucket = bucket
        self.endpoint = normalize_endpoint(endpoint)
        # Only used by callers building public URLs
        self.domain = domain
        self.base_url = f"{self.endpoint}/{bucket}"
        self.timeout = timeout

        region = region or os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or ""
        self.session = requests.Session()
        self.session.auth = UnsignedPayloadAuth(access_key, secret_key, region, "s3")

        self.name = f"S3 bucket '{bucket}' at {self.endpoint}"
        logger.info(f"The endpoint provided in config is {self.endpoint}")

    @classmethod
    def from_connection_string(cls, conn: str, domain: str = "", **kwargs) -> "S3Storage":
        """Build a backend from ``scheme://endpoint:accessKey:secretKey:bucket``."""
        location = parse_connection_string(conn)
        return cls(
            endpoint=location.endpoint,
            access_key=location.access_key,
            secret_key=location.secret_key,
            bucket=location.bucket,
            domain=domain,
            **kwargs,
        )

    def _url(self, key: str) -> str:
        return f"{self.base_url}/{quote(key, safe='/~')}"

    def _request(self, method: str, key: str, **kwargs) -> requests.Response:
        if not key:
            raise InvalidNameError(key, "empty name")
        try:
            return self.session.request(
                method,
                self._url(key),
                timeout=self.timeout,
                allow_redirects=False,
                **kwargs,
            )
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            raise S3StorageError(f"S3 {method} {key} failed: {e}", ErrorKind.UNAVAILABLE, key) from e
        except requests.exceptions.RequestException as e:
            raise S3StorageError(f"S3 {method} {key} failed: {e}", ErrorKind.OTHER, key) from e

    def _raise_for_response(self, resp: requests.Response, key: str, action: str) -> None:
        if resp.status_code in REDIRECT_CODES:
            location = resp.headers.get("Location", "unknown")
            raise S3StorageError(
                f"S3 {action} of {key} redirected to: {location}",
                ErrorKind.OTHER,
                key,
                status_code=resp.status_code,
            )

        code, message = _parse_error(resp.content)
        detail = f"{code}: {message}" if code else resp.reason
        raise S3StorageError(
            f"S3 {action} of {key} failed: {resp.status_code} {detail}",
            _error_kind(resp.status_code, code),
            key,
            status_code=resp.status_code,
            code=code,
        )

    def save(self, name: str, reader: BinaryIO) -> None:
        """Stream the reader into the object with a single PUT."""
        resp = self._request(
            "PUT",
            name,
            data=reader,
            headers={"Content-Type": "application/octet-stream"},
        )
        if resp.status_code not in (200, 201):
            self._raise_for_response(resp, name, "upload")
        logger.debug(f"Uploaded {name} to {self.bucket}")

    def open_file(self, name: str) -> BinaryIO:
        """Return the response body stream of a GET. The caller closes it."""
        resp = self._request("GET", name, stream=True)
        if resp.status_code != 200:
            try:
                self._raise_for_response(resp, name, "download")
            finally:
                resp.close()
        return resp.raw

    def get_file(self, name: str) -> BinaryIO:
        """Same as open_file; the body is not buffered locally."""
        return self.open_file(name)

    def delete(self, name: str) -> None:
        """Delete the object."""
        resp = self._request("DELETE", name)
        if resp.status_code not in (200, 204):
            self._raise_for_response(resp, name, "delete")
        logger.debug(f"Deleted {name} from {self.bucket}")

    def move(self, src: str, dest: str) -> None:
        """Copy src to dest server-side, then delete src.

        A failed copy leaves src untouched and nothing at dest. If the delete
        fails after a successful copy, MoveIncompleteError is raised and the
        object exists under both names; nothing is rolled back.
        """
        if not src:
            raise InvalidNameError(src, "empty name")
        copy_source = f"/{self.bucket}/{quote(src, safe='/~')}"
        resp = self._request("PUT", dest, headers={"x-amz-copy-source": copy_source})

        # CopyObject can answer 200 with an error document
        if resp.status_code != 200 or _parse_error(resp.content)[0] is not None:
            self._raise_for_response(resp, src, "copy")

        try:
            self.delete(src)
        except StorageError as e:
            logger.warning(f"Copied {src} to {dest} but could not delete the source: {e}")
            raise MoveIncompleteError(src, dest, e.kind) from e
        logger.debug(f"Moved {src} to {dest} in {self.bucket}")
