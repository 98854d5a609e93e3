from flask import jsonify, request
from typing import Any, Dict, Optional


class APIResponse:
    """Standardized API response handler"""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200):
        """Standard success response"""
        response_data = {
            'success': True,
            'message': message,
            'data': data
        }
        return jsonify(response_data), status_code

    @staticmethod
    def created(data: Any = None, message: str = "Created"):
        return APIResponse.success(data, message, status_code=201)

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400, code: Optional[str] = None):
        """Standard error response"""
        response_data = {
            'success': False,
            'message': message,
            'errors': errors or {}
        }
        if code:
            response_data['code'] = code
        return jsonify(response_data), status_code

    @staticmethod
    def handle_request_content() -> Dict[str, Any]:
        """Smart request content handling"""
        if request.is_json:
            return request.get_json(silent=True) or {}
        elif request.form:
            return request.form.to_dict()
        else:
            return {}
