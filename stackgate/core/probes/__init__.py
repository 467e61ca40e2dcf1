"""Readiness probes"""
from stackgate.core.probes.probe_protocol import ReadinessProbe
from stackgate.core.probes.postgres_probe import PostgresProbe
from stackgate.core.probes.tcp_probe import TcpProbe

__all__ = [
    "ReadinessProbe",
    "PostgresProbe",
    "TcpProbe",
]
