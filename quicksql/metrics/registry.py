from prometheus_client import Counter, Histogram

SQL_STATEMENTS_TOTAL = Counter(
    "quicksql_statements_total",
    "Total statements executed by kind and outcome",
    ["kind", "status"],
)

SQL_STATEMENT_LATENCY_SECONDS = Histogram(
    "quicksql_statement_latency_seconds",
    "Statement round-trip latency in seconds",
    ["kind"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
