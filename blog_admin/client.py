"""
HTTP client that uploads a crop session's variants in one request.
"""
import logging

import httpx

from .conf import admin_settings
from .exceptions import EmptyBatch, ServerRejected, TransportFailure
from .ingest import StoredImageRecord
from .utils import generate_base_identifier

logger = logging.getLogger(__name__)


class BatchUploadClient:
    """
    Submit a batch of variants to the multiple-upload endpoint.

    All variants share one base filename, so the server stores siblings of
    the same image under the same name in each ratio directory. The batch
    is all-or-nothing: any failure raises and no records are returned.
    """

    def __init__(self, base_url, token, upload_path="/upload/multiple/",
                 timeout=None, client=None):
        self._base_url = base_url.rstrip("/")
        self._upload_path = upload_path
        self._headers = {"Authorization": f"Bearer {token}"}
        self._timeout = timeout if timeout is not None else admin_settings.UPLOAD_TIMEOUT
        self._client = client

    def _post(self, files, data):
        url = f"{self._base_url}{self._upload_path}"
        if self._client is not None:
            return self._client.post(
                url, files=files, data=data, headers=self._headers,
                timeout=self._timeout,
            )
        with httpx.Client(headers=self._headers, timeout=self._timeout) as client:
            return client.post(url, files=files, data=data)

    def submit(self, variants, base_identifier=None):
        """
        Upload every variant under one base filename.

        Args:
            variants: non-empty sequence of Variant
            base_identifier: reuse a filename when retrying a batch

        Returns:
            List of StoredImageRecord in variant order.

        Raises:
            EmptyBatch: no variants given.
            TransportFailure: network error or timeout.
            ServerRejected: the server answered with a failure.
        """
        variants = list(variants)
        if not variants:
            raise EmptyBatch()
        base_identifier = base_identifier or generate_base_identifier()

        files = [
            ("files", (f"{v.ratio_name}-{base_identifier}", v.data, v.content_type))
            for v in variants
        ]
        data = {
            "aspectRatios": [v.ratio_name for v in variants],
            "baseFilename": base_identifier,
        }

        logger.info(
            "Uploading %d variant(s) as %s", len(variants), base_identifier
        )
        try:
            response = self._post(files, data)
        except httpx.TransportError as exc:
            logger.warning("Upload of %s failed: %s", base_identifier, exc)
            raise TransportFailure(str(exc) or None) from exc

        payload = self._json(response)
        if response.is_error:
            message = payload.get("error") or f"Upload rejected ({response.status_code})"
            logger.warning("Upload of %s rejected: %s", base_identifier, message)
            raise ServerRejected(message, status_code=response.status_code)

        uploads = payload.get("uploads") or []
        if not payload.get("success") or len(uploads) != len(variants):
            raise ServerRejected(
                "Upload response did not confirm every file",
                status_code=response.status_code,
            )
        try:
            return [StoredImageRecord.from_dict(item) for item in uploads]
        except (KeyError, TypeError) as exc:
            raise ServerRejected(
                f"Malformed upload response: {exc}",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _json(response):
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}
