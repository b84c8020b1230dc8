"""Injection sink analyzers

Detection itself is delegated to a host-supplied detector; these plugins
only bind sink channels, extract the sensitive argument and record findings.
"""
from typing import Any, Callable, Dict, Optional
from logging_config import get_logger
from operations.context import OperationContext, Vulnerability
from .iast import IastPluginContext, SinkIastPlugin


logger = get_logger(__name__)

# (value, operation context) -> True when the value reaches the sink unsanitized
Detector = Callable[[Any, OperationContext], bool]


class InjectionAnalyzer(SinkIastPlugin):
    """Sink plugin for one vulnerability type

    ``sinks`` maps a channel name to the message key holding the value to
    analyze.
    """

    sinks: Dict[str, str] = {}

    def __init__(self, vulnerability_type: str, detector: Detector, **kwargs):
        super().__init__(**kwargs)
        self.vulnerability_type = vulnerability_type
        self.detector = detector

    def on_configure(self) -> None:
        for channel_name, key in self.sinks.items():
            self.add_sub(
                {"channel_name": channel_name, "tag": self.vulnerability_type},
                self._make_handler(key)
            )

    def _make_handler(self, key: str):
        def handler(message: Dict[str, Any], ctx: IastPluginContext, name: Optional[str]) -> None:
            self.analyze(message.get(key), ctx.iast_context, name)
        return handler

    def analyze(self, value: Any, iast_context: Optional[OperationContext], channel: Optional[str] = None) -> bool:
        if iast_context is None or value is None:
            return False
        if not self.detector(value, iast_context):
            return False

        iast_context.vulnerabilities.append(Vulnerability(self.vulnerability_type, value, channel))
        logger.debug("Vulnerability detected", type=self.vulnerability_type, channel=channel,
                     operation_id=iast_context.operation_id)
        return True


class SqlInjectionAnalyzer(InjectionAnalyzer):
    sinks = {
        "apm:psycopg:query:start": "query",
        "apm:mysqldb:query:start": "query",
        "apm:sqlite3:query:start": "sql",
    }

    def __init__(self, detector: Detector, **kwargs):
        super().__init__("SQL_INJECTION", detector, **kwargs)


class CommandInjectionAnalyzer(InjectionAnalyzer):
    sinks = {
        "datadog:subprocess:command:start": "command",
        "datadog:os:system:start": "command",
    }

    def __init__(self, detector: Detector, **kwargs):
        super().__init__("COMMAND_INJECTION", detector, **kwargs)


class PathTraversalAnalyzer(InjectionAnalyzer):
    sinks = {
        "datadog:io:open:start": "path",
        "datadog:os:path:start": "path",
    }

    def __init__(self, detector: Detector, **kwargs):
        super().__init__("PATH_TRAVERSAL", detector, **kwargs)


class LdapInjectionAnalyzer(InjectionAnalyzer):
    sinks = {
        "datadog:ldap3:search:start": "filter",
    }

    def __init__(self, detector: Detector, **kwargs):
        super().__init__("LDAP_INJECTION", detector, **kwargs)
