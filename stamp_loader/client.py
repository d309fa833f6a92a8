"""
Module for talking to the storage node's HTTP API.
"""
import logging
import os
from typing import Optional

import requests

from .exceptions import PayloadError, StatusError, UploadError
from .models import Batch

logger = logging.getLogger(__name__)


def generate_payload(size: int) -> bytes:
    """Generate a random payload.

    Args:
        size: Number of bytes to generate

    Returns:
        Random bytes of exactly ``size`` length

    Raises:
        PayloadError: If the system random source fails
    """
    try:
        payload = os.urandom(size)
    except (OSError, NotImplementedError, ValueError) as e:
        raise PayloadError(f"generate payload: {e}") from e
    if len(payload) != size:
        raise PayloadError(f"generate payload: got {len(payload)} of {size} bytes")
    return payload


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


class _NodeClient:
    """Shared plumbing for clients of a single storage node."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        """Initialize the client.

        Args:
            base_url: Node API endpoint, e.g. http://localhost:1635
            session: Session to reuse; a new one is created if omitted
            timeout: Per-request timeout in seconds, None for no timeout
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def close(self) -> None:
        self.session.close()


class BatchStatusClient(_NodeClient):
    """Fetches the state of postage batches."""

    def fetch(self, batch_id: str) -> Batch:
        """Fetch the current state of a batch.

        Args:
            batch_id: Postage batch identifier

        Returns:
            Fresh Batch snapshot

        Raises:
            StatusError: On transport failure, non-2xx status or a malformed body
        """
        if not batch_id:
            raise StatusError("get stamp: batch id cannot be empty")

        url = f"{self.base_url}/stamps/{batch_id}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return Batch.from_dict(response.json())
        except requests.RequestException as e:
            logger.debug(f"Request to {url} failed: {e}")
            raise StatusError(f"get stamp: {e}") from e
        except (ValueError, TypeError) as e:
            raise StatusError(f"get stamp: invalid response: {e}") from e


class UploadClient(_NodeClient):
    """Uploads raw payloads under a postage batch."""

    def upload(self, payload: bytes, batch_id: str, encrypt: bool = False,
               deferred: bool = False) -> str:
        """Upload one payload.

        Args:
            payload: Raw bytes to upload
            batch_id: Postage batch the upload is charged to
            encrypt: Ask the node to encrypt the content
            deferred: Ask the node for a deferred upload

        Returns:
            Content reference returned by the node

        Raises:
            UploadError: On transport failure, non-2xx status or a malformed body
        """
        headers = {
            "Swarm-Postage-Batch-Id": batch_id,
            "Content-Type": "application/octet-stream",
            "Swarm-Deferred-Upload": _format_bool(deferred),
            "Swarm-Encrypt": _format_bool(encrypt),
        }
        url = f"{self.base_url}/bytes"
        try:
            response = self.session.post(url, data=payload, headers=headers,
                                         timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            logger.debug(f"Request to {url} failed: {e}")
            raise UploadError(f"upload data: {e}") from e
        except ValueError as e:
            raise UploadError(f"upload data: invalid response: {e}") from e

        reference = body.get("reference") if isinstance(body, dict) else None
        if not isinstance(reference, str):
            raise UploadError(f"upload data: no reference in response: {body!r}")
        return reference
