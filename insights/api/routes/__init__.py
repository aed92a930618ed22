from . import analytics, metrics, ping, reports

__all__ = ["analytics", "metrics", "ping", "reports"]
