"""
Caller-visible errors for the story wizard.

Only entry lookup, ownership, content length and enum validation surface
to callers. Generation-provider failures are absorbed by the fallbacks and
never reach this module.
"""

from typing import Dict, Literal

WizardErrorCode = Literal[
    "ENTRY_NOT_FOUND",
    "INSUFFICIENT_CONTENT",
    "INVALID_ARCHETYPE",
    "INVALID_FRAMEWORK",
]

STATUS_CODES: Dict[str, int] = {
    "ENTRY_NOT_FOUND": 404,
    "INSUFFICIENT_CONTENT": 400,
    "INVALID_ARCHETYPE": 400,
    "INVALID_FRAMEWORK": 400,
}


class WizardError(Exception):
    """
    Wizard failure with a stable code and HTTP status.

    ENTRY_NOT_FOUND covers both a missing entry and one owned by another
    user, so ownership cannot be inferred.
    """

    def __init__(self, message: str, code: WizardErrorCode, status_code: int = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code if status_code is not None else STATUS_CODES.get(code, 400)

    def to_dict(self) -> Dict[str, object]:
        return {"error": self.message, "code": self.code}

    def __repr__(self) -> str:
        return f"WizardError(code={self.code!r}, status_code={self.status_code}, message={self.message!r})"
