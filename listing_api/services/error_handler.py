"""
Error handling service for consistent error response formatting and logging.
Every failure is rendered as a JSON body of the form {"message": ...}.
"""

from typing import Dict, Any, Optional, List
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
from listing_api.utils.exceptions import APIException
import logging
import uuid

logger = logging.getLogger(__name__)


class ErrorHandlerService:
    """
    Service for handling and formatting errors consistently across the application.
    Keeps the response body to a message so clients see the same shape for every failure.
    """

    @staticmethod
    def format_error_response(
        message: str,
        details: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """
        Format error response in a consistent structure.

        Args:
            message: Human-readable error message
            details: Optional list of detailed error information

        Returns:
            Formatted error response dictionary
        """
        response: Dict[str, Any] = {"message": message}

        if details:
            response["details"] = details

        return response

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle custom API exceptions.

        Args:
            exception: API exception instance
            request: Optional FastAPI request object

        Returns:
            JSON response with formatted error
        """
        request_id = ErrorHandlerService._generate_request_id()
        log = logger.error if exception.status_code >= 500 else logger.warning
        log(
            f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}",
            extra={
                "error_code": exception.error_code,
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=ErrorHandlerService.format_error_response(str(exception.detail)),
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(
        exception: PydanticValidationError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle request validation errors with field information.

        Args:
            exception: Pydantic or FastAPI validation error
            request: Optional FastAPI request object

        Returns:
            JSON response with validation error details
        """
        request_id = ErrorHandlerService._generate_request_id()

        validation_details = []
        for error in exception.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            validation_details.append({
                "field": field_path,
                "message": error["msg"],
                "type": error["type"],
            })

        logger.warning(
            f"Validation Error [{request_id}]: {len(validation_details)} field errors",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
            }
        )

        return JSONResponse(
            status_code=422,
            content=ErrorHandlerService.format_error_response(
                "Request validation failed",
                details=validation_details
            )
        )

    @staticmethod
    def handle_database_error(
        exception: SQLAlchemyError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle database errors that escaped the service layer.

        Args:
            exception: SQLAlchemy error
            request: Optional FastAPI request object

        Returns:
            JSON response carrying the database error message
        """
        request_id = ErrorHandlerService._generate_request_id()
        logger.error(
            f"Database Error [{request_id}]: {type(exception).__name__} - {str(exception)}",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content=ErrorHandlerService.format_error_response(str(exception))
        )

    @staticmethod
    def handle_http_exception(
        exception: HTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle FastAPI HTTP exceptions.

        Args:
            exception: HTTP exception
            request: Optional FastAPI request object

        Returns:
            JSON response with HTTP error information
        """
        request_id = ErrorHandlerService._generate_request_id()
        logger.warning(
            f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}",
            extra={
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=ErrorHandlerService.format_error_response(str(exception.detail)),
            headers=exception.headers
        )

    @staticmethod
    def handle_unexpected_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle unexpected errors.

        Args:
            exception: Unexpected exception
            request: Optional FastAPI request object

        Returns:
            JSON response with the error message
        """
        request_id = ErrorHandlerService._generate_request_id()
        logger.error(
            f"Unexpected Error [{request_id}]: {type(exception).__name__} - {str(exception)}",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
                "exception_type": type(exception).__name__,
            },
            exc_info=True
        )

        message = str(exception) or "An unexpected error occurred. Please try again later."
        return JSONResponse(
            status_code=500,
            content=ErrorHandlerService.format_error_response(message)
        )

    @staticmethod
    def _generate_request_id() -> str:
        """Generate a unique request ID for error tracking."""
        return str(uuid.uuid4())[:8]
