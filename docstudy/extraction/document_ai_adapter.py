import base64

import httpx

from docstudy.extraction.base import SUPPORTED_MIME_TYPES, BaseTextExtractor
from docstudy.extraction.exceptions import TextExtractionError
from docstudy.logging.logger import Log


class DocumentAiAdapter(BaseTextExtractor):
    """OCR through a Document AI style `:process` REST endpoint.

    Handles PDFs and scanned images alike. The endpoint receives the file as
    base64 `rawDocument` content and answers with `{"document": {"text": ...}}`.
    """

    supported_mime_types = SUPPORTED_MIME_TYPES

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        timeout_seconds: int = 60,
        client: httpx.Client | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("Document AI endpoint is not configured")
        self._endpoint = endpoint
        self._api_key = api_key
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def extract(self, content: bytes, mime_type: str) -> str:
        if mime_type not in self.supported_mime_types:
            raise TextExtractionError(f"Document AI cannot read '{mime_type}'")

        body = {
            "rawDocument": {
                "content": base64.b64encode(content).decode("ascii"),
                "mimeType": mime_type,
            }
        }
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

        try:
            response = self._client.post(self._endpoint, json=body, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise TextExtractionError(
                f"Document AI returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise TextExtractionError(f"Document AI request failed: {exc}") from exc

        document = data.get("document") if isinstance(data, dict) else None
        text = document.get("text") if isinstance(document, dict) else None
        if not isinstance(text, str):
            Log.warning("Document AI response contained no text")
            return ""
        return text.strip()
