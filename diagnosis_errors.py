"""
diagnosis_errors.py - Error taxonomy for the diagnosis pipeline.

User-facing errors carry a stable machine code, an HTTP status and a
human-readable message. Raw internal detail goes into ``debug`` only.

Per-attempt scrape failures (ScrapeError / ScrapeTimeout) stay internal:
the orchestrator folds them into DeadlineExceededError or ExhaustedError.
"""

from __future__ import annotations

from typing import Any, Optional


class DiagnosisError(Exception):
    code = "DIAGNOSIS_FAILED"
    status_code = 500
    default_message = "진단 중 알 수 없는 오류가 발생했습니다."

    def __init__(self, message: Optional[str] = None, debug: Optional[dict[str, Any]] = None):
        self.message = message or self.default_message
        self.debug = dict(debug or {})
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"ok": False, "error": self.code, "message": self.message}
        if self.debug:
            body["debug"] = self.debug
        return body


class InvalidUrlError(DiagnosisError):
    code = "INVALID_URL"
    status_code = 400
    default_message = "올바른 네이버 플레이스 링크를 입력해주세요."


class InvalidHandleError(DiagnosisError):
    code = "INVALID_HANDLE"
    status_code = 400
    default_message = "올바른 인스타그램 아이디를 입력해주세요."


class PlaceIdNotFoundError(DiagnosisError):
    code = "PLACE_ID_NOT_FOUND"
    status_code = 422
    default_message = "플레이스 ID를 추출하지 못했습니다. 링크 형식이 예상과 다를 수 있습니다."


class DeadlineExceededError(DiagnosisError):
    code = "TIMEOUT"
    status_code = 504
    default_message = "네이버 페이지 응답이 지연되어 분석이 중단되었습니다."


class ExhaustedError(DiagnosisError):
    code = "SCRAPE_FAILED"
    status_code = 500
    default_message = "페이지 정보를 수집하는데 실패했습니다."

    def __init__(self, last_cause: Optional[BaseException] = None, attempted: Optional[list[str]] = None):
        self.last_cause = last_cause
        self.attempted = list(attempted or [])
        debug: dict[str, Any] = {"attempted": self.attempted}
        if last_cause is not None:
            debug["message"] = str(last_cause)
        super().__init__(debug=debug)


class ProfileNotFoundError(DiagnosisError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "프로필을 찾을 수 없습니다."


class ParseFailedError(DiagnosisError):
    code = "PARSE_FAILED"
    status_code = 422
    default_message = "프로필 정보를 해석하지 못했습니다."


class UpstreamUnavailableError(DiagnosisError):
    code = "UPSTREAM_UNAVAILABLE"
    status_code = 503
    default_message = "외부 서비스 응답이 원활하지 않습니다. 잠시 후 다시 시도해주세요."


class ScrapeError(Exception):
    """One candidate attempt failed at ``stage``."""

    def __init__(self, stage: str, detail: str):
        super().__init__(f"{stage}: {detail}")
        self.stage = stage
        self.detail = detail


class ScrapeTimeout(ScrapeError):
    """The shared deadline ran out while an attempt was in ``stage``."""
