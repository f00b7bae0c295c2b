"""
Analyzer session state.

One session holds at most one analysis. It moves through

    EMPTY -> LOADING -> READY | FAILED
    READY | FAILED -> EMPTY       (reset)

and never carries an analysis and an error at the same time.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .datatypes import BillAnalysis, SavingsQuote
from .errors import ExtractionError, InvalidTransition
from .extraction import request_extraction, validate_extraction_payload
from .manual_entry import ManualEntryForm, analyze_manual_entry
from .normalizer import normalize
from .savings import estimate_savings

logger = logging.getLogger(__name__)

class SessionState(Enum):
    EMPTY = 'empty'
    LOADING = 'loading'
    READY = 'ready'
    FAILED = 'failed'

Extractor = Callable[..., Dict[str, Any]]
Saver = Callable[[BillAnalysis], Any]

class AnalyzerSession:
    def __init__(self, extractor: Extractor = request_extraction, saver: Optional[Saver] = None):
        self._extractor = extractor
        self._saver = saver
        self._state = SessionState.EMPTY
        self._analysis: Optional[BillAnalysis] = None
        self._error: Optional[str] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def analysis(self) -> Optional[BillAnalysis]:
        return self._analysis

    @property
    def error_message(self) -> Optional[str]:
        return self._error

    def analyze_upload(self, bill_path: Path, **extractor_kwargs) -> Optional[BillAnalysis]:
        """Extract, normalize and store a bill file. Returns None on failure."""
        self._begin()
        try:
            payload = self._extractor(bill_path, **extractor_kwargs)
        except ExtractionError as e:
            return self._fail(str(e))
        except Exception as e:
            self._fail(f'Unknown error: {e}')
            raise
        return self._finish(normalize(payload))

    def analyze_payload(self, payload: Any) -> Optional[BillAnalysis]:
        """Normalize an extraction payload that is already in hand."""
        self._begin()
        try:
            payload = validate_extraction_payload(payload)
        except ExtractionError as e:
            return self._fail(str(e))
        return self._finish(normalize(payload))

    def submit_manual(self, form: ManualEntryForm) -> BillAnalysis:
        if self._state is SessionState.LOADING:
            raise InvalidTransition('An analysis is already in progress')
        # validation errors surface before the session changes state
        analysis = analyze_manual_entry(form)
        self._begin()
        return self._finish(analysis)

    def estimate(self, carrier_id: str) -> SavingsQuote:
        return estimate_savings(carrier_id, self._analysis)

    def reset(self) -> None:
        if self._state is SessionState.LOADING:
            raise InvalidTransition('Cannot reset while an analysis is in progress')
        self._state = SessionState.EMPTY
        self._analysis = None
        self._error = None

    # -------------------- transitions --------------------

    def _begin(self) -> None:
        if self._state is SessionState.LOADING:
            raise InvalidTransition('An analysis is already in progress')
        self._state = SessionState.LOADING
        self._analysis = None
        self._error = None

    def _finish(self, analysis: BillAnalysis) -> BillAnalysis:
        if self._saver is not None:
            try:
                self._saver(analysis)
            except Exception as e:
                logger.error(f"Error saving bill analysis: {e}")
        self._state = SessionState.READY
        self._analysis = analysis
        return analysis

    def _fail(self, message: str) -> None:
        logger.error(f"Failed to analyze bill: {message}")
        self._state = SessionState.FAILED
        self._error = message
        return None
