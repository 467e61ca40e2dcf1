"""Startup gate service: builds the gate from configuration and runs it"""
import logging
import time
from typing import Callable, List, Optional

from stackgate.config.settings import AppConfig
from stackgate.core.domain.gate_report import GateReport
from stackgate.core.gate.retry_policy import RetryPolicy
from stackgate.core.gate.startup_gate import StartupGate
from stackgate.core.probes.postgres_probe import PostgresProbe
from stackgate.core.probes.probe_protocol import ReadinessProbe
from stackgate.core.probes.tcp_probe import TcpProbe
from stackgate.core.steps.command_step import CommandStep

logger = logging.getLogger(__name__)


def build_probes(config: AppConfig, include_broker: Optional[bool] = None) -> List[ReadinessProbe]:
    """
    Build readiness probes for the configured dependencies.

    The database is always probed; the broker only when enabled.
    """
    if include_broker is None:
        include_broker = config.gate.wait_for_broker

    probes: List[ReadinessProbe] = [
        PostgresProbe(
            config.database.url,
            name="postgres",
            connect_timeout=config.gate.probe_timeout_seconds
        )
    ]
    if include_broker:
        probes.append(
            TcpProbe(
                config.broker.host,
                config.broker.port,
                name="broker",
                timeout=config.gate.probe_timeout_seconds
            )
        )
    return probes


def build_gate(
    config: AppConfig,
    sleep: Callable[[float], None] = time.sleep,
    runner=None,
) -> StartupGate:
    """Assemble a StartupGate from configuration"""
    step_kwargs = {} if runner is None else {'runner': runner}

    verifier = None
    if config.gate.verification_enabled:
        verifier = CommandStep("verification", config.gate.verify_command, **step_kwargs)

    workload = CommandStep("workload", config.gate.workload_command, **step_kwargs)

    return StartupGate(
        probes=build_probes(config),
        workload=workload,
        verifier=verifier,
        policy=RetryPolicy.from_config(config.gate),
        sleep=sleep,
    )


def run_startup(config: AppConfig) -> GateReport:
    """Wait for dependencies, verify, then run the workload"""
    logger.info("=" * 60)
    logger.info("Startup gate starting")
    logger.info(f"  - Database: {config.database.safe_url}")
    if config.gate.wait_for_broker:
        logger.info(f"  - Broker: {config.broker.address}")
    logger.info(f"  - Poll interval: {config.gate.poll_interval_seconds}s")
    logger.info("=" * 60)

    gate = build_gate(config)
    try:
        return gate.run()
    finally:
        for probe in gate.probes:
            close = getattr(probe, "close", None)
            if close:
                close()


def check_dependencies(config: AppConfig, include_broker: Optional[bool] = None) -> bool:
    """Probe every dependency once; True if all are ready"""
    all_ready = True
    for probe in build_probes(config, include_broker=include_broker):
        outcome = probe.check()
        status = "ready" if outcome.ready else "not ready"
        logger.info(
            f"{probe.name}: {status} ({outcome.detail})",
            extra={'dependency': probe.name}
        )
        all_ready = all_ready and outcome.ready
        close = getattr(probe, "close", None)
        if close:
            close()
    return all_ready
