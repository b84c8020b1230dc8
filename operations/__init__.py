"""Operation context and ambient store"""
from .context import OperationContext, Vulnerability, get_operation_context, get_store, operation_scope

__all__ = [
    'OperationContext',
    'Vulnerability',
    'get_operation_context',
    'get_store',
    'operation_scope'
]
