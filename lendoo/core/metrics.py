"""
Prometheus counters for the loan lifecycle. Exposed at /metrics by the app.
"""

from prometheus_client import Counter

loan_transitions = Counter(
    "lendoo_loan_transitions_total",
    "Loan lifecycle events applied",
    ["event"],
)

checkout_failures = Counter(
    "lendoo_checkout_failures_total",
    "Cart entries that failed to become loans",
    ["reason"],
)
