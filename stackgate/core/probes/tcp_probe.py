"""TCP connect readiness probe"""
import socket

from stackgate.core.domain.gate_report import ProbeOutcome


class TcpProbe:
    """Readiness check that succeeds once host:port accepts a TCP connection"""

    def __init__(self, host: str, port: int, name: str = "broker", timeout: float = 5.0):
        self.host = host
        self.port = port
        self.name = name
        self.timeout = timeout

    def check(self) -> ProbeOutcome:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                pass
        except OSError as e:
            return ProbeOutcome(
                dependency=self.name,
                ready=False,
                detail=f"{self.host}:{self.port} unreachable: {e}"
            )

        return ProbeOutcome(
            dependency=self.name,
            ready=True,
            detail=f"{self.host}:{self.port} accepting connections"
        )
