"""
Error codes for Study Dashboard API responses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class ErrorCode(Enum):
    """Error codes carried in every API response."""
    SUCCESS = "SUCCESS"
    ERR_INVALID_INPUT = "ERR_INVALID_INPUT"
    ERR_EMPTY_TEXT = "ERR_EMPTY_TEXT"
    ERR_TEXT_TOO_LONG = "ERR_TEXT_TOO_LONG"
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_DASHBOARD_FULL = "ERR_DASHBOARD_FULL"


@dataclass
class ApiError:
    """Structured error with code and details."""
    code: ErrorCode
    message: str
    field: Optional[str] = None
    task_id: Optional[str] = None
    errors: Optional[Dict] = None

    def to_dict(self) -> Dict:
        result = {
            'success': False,
            'error_code': self.code.value,
            'message': self.message
        }
        if self.field:
            result['field'] = self.field
        if self.task_id is not None:
            result['task_id'] = self.task_id
        if self.errors is not None:
            result['errors'] = self.errors
        return result
