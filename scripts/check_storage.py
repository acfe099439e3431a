#!/usr/bin/env python3
"""Check that the configured media storage backend is usable.

Usage:
    python scripts/check_storage.py

For ``MEDIA_STORAGE=local`` the upload directory must exist (or be creatable)
and be writable. For ``MEDIA_STORAGE=s3`` the bucket must be reachable with
the configured credentials.
"""

import os
import sys
import tempfile
from pathlib import Path

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, EndpointConnectionError
from dotenv import load_dotenv

backend_dir = Path(__file__).parent.parent
env_file = backend_dir / ".env"
if env_file.exists():
    load_dotenv(env_file)
else:
    print(f"⚠️  Warning: {env_file} not found, using system environment variables")

storage = os.getenv("MEDIA_STORAGE", "local").lower()


def check_local() -> int:
    upload_path = Path(os.getenv("UPLOAD_PATH", "./uploads"))
    print(f"  UPLOAD_PATH: {upload_path.resolve()}")
    try:
        upload_path.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=upload_path, suffix=".check"):
            pass
    except OSError as e:
        print(f"  ❌ Upload directory is not writable: {e}")
        return 1

    files = list(upload_path.glob("*.avif"))
    print(f"  ✅ Writable, {len(files)} AVIF file(s) present")
    return 0


def check_s3() -> int:
    endpoint = os.getenv("S3_ENDPOINT_URL", "")
    access_key = os.getenv("S3_ACCESS_KEY", "")
    secret_key = os.getenv("S3_SECRET_KEY", "")
    bucket = os.getenv("S3_BUCKET_NAME", "paayo-uploads")
    region = os.getenv("S3_REGION", "us-east-1")

    print(f"  S3_ENDPOINT_URL: {endpoint or '(AWS default)'}")
    print(f"  S3_ACCESS_KEY: {'*' * len(access_key) if access_key else '(not set)'}")
    print(f"  S3_BUCKET_NAME: {bucket}")
    print(f"  S3_REGION: {region}")

    client = boto3.client(
        "s3",
        endpoint_url=endpoint or None,
        aws_access_key_id=access_key or None,
        aws_secret_access_key=secret_key or None,
        region_name=region,
        config=Config(signature_version="s3v4"),
    )
    try:
        client.head_bucket(Bucket=bucket)
        objects = client.list_objects_v2(Bucket=bucket, MaxKeys=5)
    except EndpointConnectionError as e:
        print(f"  ❌ Cannot connect to S3 endpoint: {e}")
        return 1
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        print(f"  ❌ S3 API Error: {error_code}")
        return 1

    print(f"  ✅ Bucket reachable, {objects.get('KeyCount', 0)} object(s) sampled")
    return 0


if __name__ == "__main__":
    print("=" * 60)
    print(f"Media storage check ({storage})")
    print("=" * 60)
    sys.exit(check_s3() if storage == "s3" else check_local())
