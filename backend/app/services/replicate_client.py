"""
Thin client for the Replicate HTTP API.

Responsibilities:
- Upload staged image bytes to the Replicate Files API
- Start a prediction and hand back the provider's JSON untouched

No polling happens here; the returned prediction handle is for the
browser to poll.
"""

from typing import Any, Dict, Optional

import requests

from app.core.config import DEFAULT_FORMAT, DEFAULT_VERSION, Settings
from app.core.errors import ProviderUnavailableError, StagingError, UpstreamError
from app.core.logger import logger


def build_prediction_payload(
    image_url: str,
    version: Optional[str] = None,
    format: Optional[str] = None,
    default_version: str = DEFAULT_VERSION,
    default_format: str = DEFAULT_FORMAT,
) -> Dict[str, Any]:
    """Body for POST /predictions."""
    return {
        "version": version or default_version,
        "input": {
            "image": image_url,
            "format": format or default_format,
        },
    }


class ReplicateClient:
    """Holds the server-side token; callers never supply credentials."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.api_url = settings.replicate_api_url.rstrip("/")
        self.timeout = settings.request_timeout
        self._token = settings.replicate_api_token
        self._session = session or requests.Session()

    def close(self):
        self._session.close()

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    def upload_file(self, data: bytes, content_type: str, filename: str) -> str:
        """
        Upload bytes to the Files API and return a URL the model can fetch.

        Raises:
            StagingError: On transport failure, non-2xx status or a
                response without a URL
        """
        try:
            response = self._session.post(
                f"{self.api_url}/files",
                headers=self._auth_headers(),
                files={"content": (filename, data, content_type)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StagingError(f"Replicate file upload failed: {str(e)}") from e

        if not response.ok:
            raise StagingError(f"Replicate file upload failed: {response.status_code} {response.text}")

        try:
            body = response.json()
            url = (body.get("urls") or {}).get("get") or body.get("url")
        except (ValueError, AttributeError) as e:
            raise StagingError(f"Replicate file upload failed: invalid response body ({e})") from e

        if not url:
            raise StagingError("Replicate file upload failed: response did not include a file URL")

        logger.info(f"Uploaded {len(data)} bytes to Replicate files as {filename}")
        return url

    def create_prediction(self, payload: Dict[str, Any]) -> Any:
        """
        Start a prediction.

        Returns:
            The provider's prediction JSON, as received

        Raises:
            UpstreamError: Provider answered with a non-2xx status
            ProviderUnavailableError: Provider could not be reached
        """
        try:
            response = self._session.post(
                f"{self.api_url}/predictions",
                headers={**self._auth_headers(), "Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderUnavailableError(f"Could not reach Replicate: {str(e)}") from e

        if not response.ok:
            logger.warning(f"Replicate prediction start failed with status {response.status_code}")
            raise UpstreamError(
                response.status_code,
                response.text,
                response.headers.get("Content-Type"),
            )

        try:
            prediction = response.json()
        except ValueError as e:
            raise ProviderUnavailableError(f"Replicate returned an invalid prediction response: {str(e)}") from e

        if isinstance(prediction, dict):
            logger.info(f"Started prediction {prediction.get('id')} (status: {prediction.get('status')})")
        else:
            logger.info("Started prediction")
        return prediction


class ReplicateFileUploader:
    """Stages images through the provider's own file endpoint."""

    def __init__(self, client: ReplicateClient):
        self.client = client

    def upload(self, data: bytes, content_type: str, filename: str) -> str:
        return self.client.upload_file(data, content_type, filename)
