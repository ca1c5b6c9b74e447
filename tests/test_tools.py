import logging

from keytab.keyboard_translator_reader import tokenize
from keytab.tools import keytabLogger, logDiagnostic, resolveDiagnosticSink


def test_default_sink_logs_at_debug(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="keytab")

    tokenize("not a translator line")

    assert any("could not be parsed" in record.getMessage() for record in caplog.records)
    assert all(record.levelno == logging.DEBUG for record in caplog.records)


def test_injected_sink_replaces_logging(caplog, diagnostics) -> None:
    caplog.set_level(logging.DEBUG, logger="keytab")

    tokenize("not a translator line", diagnostics)

    assert len(diagnostics) == 1
    assert caplog.records == []


def test_resolve_diagnostic_sink(diagnostics) -> None:
    assert resolveDiagnosticSink(None) is logDiagnostic
    assert resolveDiagnosticSink(diagnostics) is diagnostics


def test_logger_name() -> None:
    assert keytabLogger.name == "keytab"
