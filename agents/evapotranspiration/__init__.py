"""
Evapotranspiration agent package
"""

from .agent import EvapotranspirationAgent
from .models import ETcRequest, ETcResponse, WeatherSnapshot

__all__ = ["EvapotranspirationAgent", "ETcRequest", "ETcResponse", "WeatherSnapshot"]
