"""
Irrigation agent package
"""

from .agent import IrrigationAgent
from .models import IrrigationRequest, IrrigationResponse

__all__ = ["IrrigationAgent", "IrrigationRequest", "IrrigationResponse"]
