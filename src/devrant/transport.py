"""
HTTP exchange and request body encoding.
"""

from __future__ import annotations

import hashlib
import logging
import urllib.parse
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import requests

from .errors import TransportError
from .types import API_BASE, DEFAULT_HEADERS

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class UploadFile:
    field: str
    filename: str
    content_type: str
    data: bytes


def encode_query(params: Mapping[str, object]) -> str:
    return urllib.parse.urlencode(
        [(key, str(value)) for key, value in params.items() if value is not None]
    )


def encode_form(fields: Mapping[str, object]) -> tuple[bytes, str]:
    return encode_query(fields).encode("utf-8"), FORM_CONTENT_TYPE


def _boundary(fields: Sequence[tuple[str, str]], files: Sequence[UploadFile]) -> str:
    # Same payload, same boundary.
    digest = hashlib.sha256()
    for key, value in fields:
        digest.update(key.encode("utf-8") + b"\0" + value.encode("utf-8") + b"\0")
    for upload in files:
        digest.update(upload.field.encode("utf-8") + b"\0" + upload.data)
    return f"Boundary-{digest.hexdigest()[:32]}"


def encode_multipart(
    fields: Mapping[str, object], files: Sequence[UploadFile]
) -> tuple[bytes, str]:
    pairs = [(key, str(value)) for key, value in fields.items() if value is not None]
    boundary = _boundary(pairs, files)
    marker = f"--{boundary}\r\n".encode("ascii")

    body = bytearray()
    for key, value in pairs:
        body += marker
        body += f'Content-Disposition: form-data; name="{key}"\r\n\r\n'.encode("utf-8")
        body += value.encode("utf-8") + b"\r\n"
    for upload in files:
        body += marker
        body += (
            f'Content-Disposition: form-data; name="{upload.field}"; '
            f'filename="{upload.filename}"\r\n'
            f"Content-Type: {upload.content_type}\r\n\r\n"
        ).encode("utf-8")
        body += upload.data + b"\r\n"
    body += f"--{boundary}--\r\n".encode("ascii")

    return bytes(body), f"multipart/form-data; boundary={boundary}"


class Transport:
    """Sends one request and hands back the raw response body."""

    def __init__(self, api_base: str = API_BASE, timeout: Optional[float] = None):
        self.api_base = api_base
        self.timeout = timeout

    def url(self, path: str, query: Optional[Mapping[str, object]] = None) -> str:
        url = f"{self.api_base}{path}"
        if query:
            url = f"{url}?{encode_query(query)}"
        return url

    def exchange(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        """Perform the request.

        Server-side failures (5xx) and network problems raise
        TransportError. Any other status returns the body, since the API
        reports client errors as ``{"error": "..."}`` documents.
        """
        merged = {**DEFAULT_HEADERS}
        if headers:
            merged.update(headers)

        try:
            resp = requests.request(
                method,
                url,
                headers=merged,
                data=body,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except requests.Timeout as exc:
            raise TransportError(f"Request timed out: {method} {url}", timed_out=True) from exc
        except requests.RequestException as exc:
            raise TransportError(f"Request failed: {exc}") from exc

        logger.debug("%s %s -> %s", method, url.split("?")[0], resp.status_code)

        if resp.status_code >= 500:
            raise TransportError(f"Server error {resp.status_code} for {method} {url.split('?')[0]}")
        return resp.content
