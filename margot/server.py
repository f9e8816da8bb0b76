"""pygls LSP server for margot."""

from lsprotocol import types
from pygls.lsp import server as pygls_server

from margot import analyzer as margot_analyzer
from margot import config as margot_config
from margot import rules
from margot.rules import base

server = pygls_server.LanguageServer("margot", "v0.1.0")
analyzer = margot_analyzer.Analyzer(
    rules=margot_config.active_rules(rules.ALL_RULES, margot_config.load_config())
)

_SEVERITY_MAP = {
    base.Severity.ERROR: types.DiagnosticSeverity.Error,
    base.Severity.WARNING: types.DiagnosticSeverity.Warning,
    base.Severity.INFORMATION: types.DiagnosticSeverity.Information,
    base.Severity.HINT: types.DiagnosticSeverity.Hint,
}


def _to_lsp(diag: base.Diagnostic) -> types.Diagnostic:
    """Convert a margot Diagnostic to an LSP Diagnostic.

    margot points are 1-indexed; LSP positions are 0-indexed. Diagnostics
    without a place (fatal configuration errors) are anchored at the start
    of the document, and single-point diagnostics get an empty range.
    """
    start = types.Position(line=diag.line - 1, character=diag.column - 1)
    if diag.end is None:
        end = start
    else:
        end = types.Position(line=diag.end.line - 1, character=diag.end.column - 1)
    return types.Diagnostic(
        range=types.Range(start=start, end=end),
        message=f"{diag.rule_id} {diag.message}",
        severity=_SEVERITY_MAP[diag.severity],
        source="margot",
    )


def _publish(ls: pygls_server.LanguageServer, uri: str) -> None:
    """Analyze a document and publish diagnostics to the client."""
    source = ls.workspace.get_text_document(uri).source
    diagnostics = analyzer.analyze(source)
    ls.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(
            uri=uri,
            diagnostics=[_to_lsp(diag) for diag in diagnostics],
        )
    )


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(
    ls: pygls_server.LanguageServer,
    params: types.DidOpenTextDocumentParams,
) -> None:
    """Analyze a newly opened document."""
    _publish(ls, params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(
    ls: pygls_server.LanguageServer,
    params: types.DidChangeTextDocumentParams,
) -> None:
    """Re-analyze a document after every change."""
    _publish(ls, params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
def did_close(
    ls: pygls_server.LanguageServer,
    params: types.DidCloseTextDocumentParams,
) -> None:
    """Clear diagnostics when a document is closed."""
    ls.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=params.text_document.uri, diagnostics=[])
    )


def start() -> None:
    """Start the LSP server over stdio."""
    server.start_io()
