from ..metrics.registry import SQL_STATEMENT_LATENCY_SECONDS, SQL_STATEMENTS_TOTAL


def observe_statement(kind: str, status: str, latency_s: float) -> None:
    """
    Record one statement execution.

    kind is the lower-case verb ("select", "insert", ...) or "unknown";
    status is "success", "error" or "unsupported".
    """
    SQL_STATEMENTS_TOTAL.labels(kind=kind, status=status).inc()
    SQL_STATEMENT_LATENCY_SECONDS.labels(kind=kind).observe(latency_s)
