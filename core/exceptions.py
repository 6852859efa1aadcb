# server/core/exceptions.py
"""
Custom exceptions for the backend
"""

class VinewaterError(Exception):
    """Base exception for the Vinewater backend"""
    pass

class AgentError(VinewaterError):
    """Agent-related errors"""
    pass

class AgentConfigError(VinewaterError):
    """Agent configuration errors"""
    pass

class InsufficientWeatherDataError(VinewaterError):
    """Upstream weather snapshot is missing the data a calculation needs"""
    pass
