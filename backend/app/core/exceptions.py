from fastapi import Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import logging

logger = logging.getLogger(__name__)

class TrendPulseException(Exception):
    """Base exception for TrendPulse application"""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

class TrendAnalysisError(TrendPulseException):
    """Raised when an AI trend analysis cannot be completed"""
    def __init__(self, message: str = "Failed to analyze trends. Please try again."):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)

class InsightsUnavailableError(TrendPulseException):
    """Raised when quick insights cannot be loaded"""
    def __init__(self, message: str = "Unable to generate insights"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)

class ValidationError(TrendPulseException):
    """Raised when validation fails"""
    def __init__(self, message: str = "Validation error"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)

class PermissionDeniedError(TrendPulseException):
    """Raised when the current user lacks the required role"""
    def __init__(self, message: str = "Access denied"):
        super().__init__(message, status.HTTP_403_FORBIDDEN)

async def trendpulse_exception_handler(request: Request, exc: TrendPulseException):
    """Handle custom TrendPulse exceptions"""
    logger.error(f"TrendPulse exception: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "detail": exc.message}
    )

async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle SQLAlchemy database exceptions"""
    logger.error(f"Database error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "detail": "Database error occurred"}
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(f"Unexpected error: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "detail": "Internal server error"}
    )
