"""Unit tests for utils/presign.py: S3 image locations to pre-signed URLs."""

import pytest
from unittest.mock import MagicMock

from utils.presign import parse_s3_location, presign_image_path, presign_image_paths


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_mock_client(prefix: str = "https://presigned.example.com/"):
    """Return a mock S3 client whose ``generate_presigned_url`` returns a
    deterministic URL derived from the bucket and key."""
    client = MagicMock()

    def _fake_presign(ClientMethod, Params, ExpiresIn):
        return f"{prefix}{Params['Bucket']}/{Params['Key']}?signed=1"

    client.generate_presigned_url.side_effect = _fake_presign
    return client


# ---------------------------------------------------------------------------
# parse_s3_location
# ---------------------------------------------------------------------------

class TestParseS3Location:

    def test_s3_uri(self):
        assert parse_s3_location("s3://frames/R-1001/a.jpg") == ("frames", "R-1001/a.jpg")

    @pytest.mark.parametrize("url", [
        "https://apm-captured-images.s3.ap-south-1.amazonaws.com/frames/R-1001/a.jpg",
        "https://apm-captured-images.s3-ap-south-1.amazonaws.com/frames/R-1001/a.jpg",
        "https://apm-captured-images.s3.amazonaws.com/frames/R-1001/a.jpg",
    ])
    def test_virtual_hosted_urls(self, url):
        assert parse_s3_location(url) == ("apm-captured-images", "frames/R-1001/a.jpg")

    def test_escaped_key_is_decoded(self):
        url = "https://bucket.s3.ap-south-1.amazonaws.com/frames/R%201001/a.jpg"
        assert parse_s3_location(url) == ("bucket", "frames/R 1001/a.jpg")

    @pytest.mark.parametrize("path", [None, "", "https://cdn.example.com/a.jpg", "frames/a.jpg"])
    def test_other_locations(self, path):
        assert parse_s3_location(path) is None


# ---------------------------------------------------------------------------
# presign_image_path / presign_image_paths
# ---------------------------------------------------------------------------

class TestPresignImagePath:

    def test_s3_uri_is_signed(self):
        client = _make_mock_client()
        result = presign_image_path("s3://my-bucket/path/to/file.jpg", client=client)
        assert result == "https://presigned.example.com/my-bucket/path/to/file.jpg?signed=1"
        client.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "my-bucket", "Key": "path/to/file.jpg"},
            ExpiresIn=3600,
        )

    def test_custom_expiry(self):
        client = _make_mock_client()
        presign_image_path("s3://b/k.jpg", client=client, expires_in=60)
        assert client.generate_presigned_url.call_args.kwargs["ExpiresIn"] == 60

    def test_other_urls_unchanged(self):
        client = _make_mock_client()
        assert presign_image_path("https://cdn.example.com/img.png", client=client) == "https://cdn.example.com/img.png"
        client.generate_presigned_url.assert_not_called()

    def test_none_unchanged(self):
        assert presign_image_path(None, client=_make_mock_client()) is None

    def test_list_keeps_order_and_gaps(self):
        client = _make_mock_client()
        result = presign_image_paths(["s3://b/1.jpg", None, "s3://b/2.jpg"], client=client)
        assert result == [
            "https://presigned.example.com/b/1.jpg?signed=1",
            None,
            "https://presigned.example.com/b/2.jpg?signed=1",
        ]
