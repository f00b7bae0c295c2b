"""Client for the remote bill-extraction service."""

import json
import time
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from .errors import ExtractionError

logger = logging.getLogger(__name__)

INVALID_FORMAT = 'The bill analysis response format is invalid'

def request_extraction(bill_path: Path, url: str, api_key: Optional[str] = None,
                       timeout: float = 60.0) -> Dict[str, Any]:
    """
    Send a bill PDF to the extraction service and return its JSON payload.

    Raises:
        ExtractionError: the file is not a PDF, the service could not be
            reached, answered with an error, or returned an unusable payload.
    """
    bill_path = Path(bill_path)
    if bill_path.suffix.lower() != '.pdf':
        raise ExtractionError('Please upload a PDF file for best results')

    headers = {}
    if api_key:
        headers = {'apikey': api_key, 'Authorization': f'Bearer {api_key}'}

    logger.info(f"Sending {bill_path.name} to extraction service at {url}")
    try:
        start_time = time.time()
        response = httpx.post(
            url,
            files={'file': (bill_path.name, bill_path.read_bytes(), 'application/pdf')},
            headers=headers,
            timeout=timeout,
        )
        logger.info(f"Extraction service returned {response.status_code} in {time.time() - start_time:.2f} seconds")
    except httpx.RequestError as e:
        logger.error(f"Failed to connect to extraction service: {e}")
        raise ExtractionError(f'Failed to connect to extraction service: {e}') from e
    except OSError as e:
        raise ExtractionError(f'Could not read {bill_path}: {e}') from e

    if not response.is_success:
        raise ExtractionError(_error_message(response))

    try:
        data = response.json()
    except ValueError as e:
        raise ExtractionError(INVALID_FORMAT) from e
    return validate_extraction_payload(data)

def validate_extraction_payload(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict) or not isinstance(data.get('phoneLines'), list):
        raise ExtractionError(INVALID_FORMAT)
    logger.info(f"Received {len(data['phoneLines'])} phone lines from analysis")
    if data.get('ocrProvider'):
        logger.info(f"OCR provider: {data['ocrProvider']}")
    return data

def load_extraction_json(path: Path) -> Dict[str, Any]:
    """Load a previously saved extraction payload from disk."""
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, ValueError) as e:
        raise ExtractionError(f'Could not read extraction payload {path}: {e}') from e
    return validate_extraction_payload(data)

def _error_message(response: httpx.Response) -> str:
    fallback = f'Failed to analyze bill: {response.status_code}'
    logger.error(f"Extraction service error: {response.status_code}")
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return body.get('error') or body.get('message') or fallback
    return fallback
