"""Explicit wiring of the decision engine from configuration."""

from __future__ import annotations

from adapters.safe_executor import SafeExecutor
from adapters.safe_service import SafeTransactionServiceClient
from agents.decision_engine import DecisionEngine
from ai.adjudicator import ReasoningAdjudicator
from ai.oracle import OpenAIOracle
from core.config import CosignerConfig
from core.logger import StructuredLogger
from core.tx_engine.pending_tracker import PendingTransactionTracker
from core.tx_engine.signer import SignatureProvider
from core.tx_engine.threshold_executor import ThresholdExecutor

LOGGER = StructuredLogger("bootstrap")


def build_engine(
    config: CosignerConfig | None = None,
    *,
    signer: SignatureProvider | None = None,
) -> DecisionEngine:
    """Construct every collaborator once; the engine owns them for its lifetime."""

    config = config or CosignerConfig.load()
    signer = signer or SignatureProvider.from_secret("AGENT_PRIVATE_KEY")
    service = SafeTransactionServiceClient(
        config.safe_service_url, timeout=config.http_timeout_sec
    )
    chain = SafeExecutor(
        config.rpc_url, signer, receipt_timeout=config.receipt_timeout_sec
    )
    engine = DecisionEngine(
        ReasoningAdjudicator(
            OpenAIOracle(config.oracle_model), timeout=config.oracle_timeout_sec
        ),
        signer,
        PendingTransactionTracker(service),
        ThresholdExecutor(service, chain),
        require_pending_transaction=config.require_pending_transaction,
    )
    LOGGER.log(
        "engine_ready",
        signer=signer.address,
        safe_service=config.safe_service_url,
        model=config.oracle_model,
        require_pending=config.require_pending_transaction,
    )
    return engine
