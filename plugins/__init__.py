"""Analyzer plugins and their channel subscriptions"""
from .iast import IastPlugin, IastPluginContext, IastPluginSubscription, SinkIastPlugin, SourceIastPlugin

__all__ = [
    'IastPlugin',
    'IastPluginContext',
    'IastPluginSubscription',
    'SinkIastPlugin',
    'SourceIastPlugin'
]
