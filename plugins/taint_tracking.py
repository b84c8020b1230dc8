"""Taint tracking source plugin"""
from typing import Any, Callable, Optional
from operations.context import OperationContext
from .iast import IastPluginContext, SourceIastPlugin


HTTP_REQUEST_BODY = "http.request.body"
HTTP_REQUEST_PARAMETER = "http.request.parameter"

BODY_PARSED_CHANNEL = "datadog:body-parser:read:finish"
QUERY_PARSED_CHANNEL = "datadog:qs:parse:finish"

# (operation context, value, source type) -> tainted value
TaintObject = Callable[[Optional[OperationContext], Any, str], Any]


class TaintTrackingPlugin(SourceIastPlugin):
    """Marks parsed request bodies and query strings as tainted sources"""

    def __init__(self, taint_object: TaintObject, **kwargs):
        super().__init__(**kwargs)
        self.taint_object = taint_object

    def on_configure(self) -> None:
        self.add_sub(
            {"channel_name": BODY_PARSED_CHANNEL, "tag": HTTP_REQUEST_BODY},
            lambda message, ctx, name: self._taint_tracking_handler(
                HTTP_REQUEST_BODY, message["request"], "body", ctx)
        )
        self.add_sub(
            {"channel_name": QUERY_PARSED_CHANNEL, "tag": HTTP_REQUEST_PARAMETER},
            lambda message, ctx, name: self._taint_tracking_handler(
                HTTP_REQUEST_PARAMETER, message["qs"], None, ctx)
        )

    def _taint_tracking_handler(self, source_type: str, target: Any, prop: Optional[str],
                                ctx: IastPluginContext) -> Any:
        if not prop:
            return self.taint_object(ctx.iast_context, target, source_type)
        target[prop] = self.taint_object(ctx.iast_context, target[prop], source_type)
        return target

    def enable(self) -> None:
        self.configure(True)

    def disable(self) -> None:
        self.configure(False)
