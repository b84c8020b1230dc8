"""IAST telemetry facade"""
from .service import IastTelemetry, telemetry

__all__ = [
    'IastTelemetry',
    'telemetry'
]
