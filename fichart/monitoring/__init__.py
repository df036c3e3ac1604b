"""Metric collection, alerting, health checks, metric export and a metrics server."""