"""Minimal client for the ImageKit media-library API."""

import base64
import hashlib
import hmac
import os
import time

import requests

API_URL = "https://api.imagekit.io/v1/files"
IMAGEKIT_BASE_URL = "https://ik.imagekit.io/appraisily"
FOLDER_PATH = "/appraiser-images"
TIMEOUT = 30


def private_key_from_env() -> str | None:
    return os.environ.get("IMAGEKIT_PRIVATE_KEY") or None


def auth_headers(private_key: str, now: float | None = None) -> dict[str, str]:
    """Basic auth plus an HMAC-SHA1 signature of the unix timestamp."""
    timestamp = str(int(now if now is not None else time.time()))
    signature = hmac.new(private_key.encode("utf-8"), timestamp.encode("utf-8"), hashlib.sha1).hexdigest()
    token = base64.b64encode(f"{private_key}:".encode("utf-8")).decode("ascii")
    return {
        "Authorization": f"Basic {token}",
        "X-ImageKit-Signature": signature,
        "X-ImageKit-Timestamp": timestamp,
    }


def list_files(private_key: str, folder: str = FOLDER_PATH, limit: int = 1000, session=None) -> list[dict]:
    """Return the files in *folder*; raises requests.HTTPError on failure."""
    http = session or requests
    response = http.get(
        API_URL,
        params={"path": folder, "type": "file", "limit": limit},
        headers=auth_headers(private_key),
        timeout=TIMEOUT,
    )
    response.raise_for_status()
    data = response.json()
    return data if isinstance(data, list) else []


def inventory_entry(item: dict) -> dict:
    return {
        "id": item.get("fileId"),
        "name": item.get("name"),
        "url": item.get("url"),
        "imageUrl": f"{IMAGEKIT_BASE_URL}{item.get('filePath', '')}",
        "size": item.get("size"),
        "fileType": item.get("fileType"),
        "width": item.get("width"),
        "height": item.get("height"),
        "createdAt": item.get("createdAt"),
    }
