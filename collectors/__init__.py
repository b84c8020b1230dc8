"""Combiners, handlers and collectors aggregating IAST telemetry"""
from .base import TelemetryCollector, create_global_collector, create_operation_collector
from .combiners import AggregatedCombiner, ConflatedCombiner
from .handlers import DefaultHandler, DelegatingHandler, TaggedHandler

__all__ = [
    'TelemetryCollector',
    'create_global_collector',
    'create_operation_collector',
    'AggregatedCombiner',
    'ConflatedCombiner',
    'DefaultHandler',
    'TaggedHandler',
    'DelegatingHandler'
]
