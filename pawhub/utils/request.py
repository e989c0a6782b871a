# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request utilities for extracting request data and building responses.
"""

from flask import request, has_request_context
from pydantic import BaseModel
from typing import Dict, Any, Optional, List, Union
import logging

logger = logging.getLogger(__name__)


class RequestParser:
    """Utility for parsing and extracting request data."""
    
    @staticmethod
    def get_request_metadata() -> Dict[str, Any]:
        """
        Extract request metadata for logging and auditing.
        
        Returns:
            Dictionary with request metadata (empty outside a request)
        """
        if not has_request_context():
            return {}
        
        return {
            'method': request.method,
            'path': request.path,
            'ip_address': request.remote_addr,
            'user_agent': request.headers.get('User-Agent', ''),
            'request_id': request.headers.get('X-Request-ID')
        }
    
    @staticmethod
    def get_json_body() -> Dict[str, Any]:
        """
        Parse the JSON body leniently.
        
        Returns:
            Parsed JSON object, or an empty dict for missing/invalid bodies
        """
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}


def serialize(value: Union[BaseModel, List[BaseModel], None]) -> Any:
    """Convert models (or lists of models) into JSON-ready structures."""
    if value is None:
        return None
    if isinstance(value, list):
        return [serialize(item) for item in value]
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


class ResponseBuilder:
    """Utility for building consistent API responses."""
    
    @staticmethod
    def success(
        data: Any = None,
        message: Optional[str] = None,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None
    ) -> tuple:
        """
        Build success response.
        
        Args:
            data: Response data (models are serialized)
            message: Success message
            status_code: HTTP status code
            headers: Additional headers
            
        Returns:
            Tuple of (response_data, status_code, headers)
        """
        response = {
            'success': True
        }
        
        if data is not None:
            response['data'] = serialize(data)
        
        if message:
            response['message'] = message
        
        return response, status_code, headers or {}
