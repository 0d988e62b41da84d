"""Utility for turning stored S3 image locations into pre-signed URLs.

Event frames are stored either as ``s3://<bucket>/<key>`` URIs or as virtual
hosted style URLs (``https://<bucket>.s3.<region>.amazonaws.com/<key>``).
Both are replaced with a time-limited ``GetObject`` URL. Any other string,
and ``None``, is returned unchanged.
"""

from __future__ import annotations

import re
from urllib.parse import unquote, urlparse

import boto3

from config import config

_VIRTUAL_HOST_PATTERN = re.compile(r"^(?P<bucket>.+?)\.s3(?:[.-][a-z0-9-]+)?\.amazonaws\.com$")

# Created lazily on first use so that importing this module has no AWS side-effects.
_s3_client = None


def _get_s3_client():
    """Return a cached boto3 S3 client for the configured region."""
    global _s3_client
    if _s3_client is None:
        session = boto3.Session(
            region_name=config.aws.region,
            aws_access_key_id=config.aws.access_key_id or None,
            aws_secret_access_key=config.aws.secret_access_key or None,
        )
        _s3_client = session.client("s3")
    return _s3_client


def parse_s3_location(path: str) -> tuple[str, str] | None:
    """Return ``(bucket, key)`` for an S3 image location, or ``None`` if it is not one."""
    if not path:
        return None
    parsed = urlparse(path)
    if parsed.scheme == "s3":
        return parsed.netloc, parsed.path.lstrip("/")
    if parsed.scheme == "https":
        match = _VIRTUAL_HOST_PATTERN.match(parsed.netloc)
        if match:
            return match.group("bucket"), unquote(parsed.path.lstrip("/"))
    return None


def presign_image_path(path: str | None, *, client=None, expires_in: int | None = None) -> str | None:
    """Convert a single stored image location to a pre-signed HTTPS URL.

    Parameters
    ----------
    path:
        The stored ``image_path`` of an event.
    client:
        Optional boto3 S3 client (used for testing). Falls back to the
        module-level cached client.
    expires_in:
        Lifetime of the URL in seconds, ``APP.PRESIGN_EXPIRY`` by default.
    """
    location = parse_s3_location(path)
    if location is None:
        return path
    bucket, key = location

    if client is None:
        client = _get_s3_client()

    return client.generate_presigned_url(
        ClientMethod="get_object",
        Params={"Bucket": bucket, "Key": key},
        ExpiresIn=expires_in or config.app.presign_expiry,
    )


def presign_image_paths(paths: list[str | None], *, client=None) -> list[str | None]:
    """Pre-sign every S3 location in an ordered list of image paths, keeping order and gaps."""
    return [presign_image_path(path, client=client) for path in paths]
