from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from cryptoguard.core.config import Settings, settings
from cryptoguard.core.llm_client import CompletionClient, create_completion_client
from cryptoguard.services.ai_pipeline import AIResponsePipeline
from cryptoguard.services.bscscan import BscScanClient
from cryptoguard.services.crypto_query import CryptoQueryService
from cryptoguard.services.defi_analysis import DefiAnalysisService
from cryptoguard.services.network_status import NetworkStatusService
from cryptoguard.services.quota import (
    CRYPTO_QUERY,
    DEFI_ANALYSIS,
    SECURITY_ANALYSIS,
    SMART_TRANSLATOR,
    TRANSACTION_ANALYSIS,
    Clock,
    QuotaRegistry,
)
from cryptoguard.services.result_cache import ResultCache
from cryptoguard.services.security_analysis import SecurityAnalysisService
from cryptoguard.services.security_scanner import RiskHeuristicScorer, SecurityScanService
from cryptoguard.services.smart_translator import SmartTranslator
from cryptoguard.services.transaction_analysis import TransactionAnalysisService


@dataclass
class ServiceContainer:
    config: Settings
    quotas: QuotaRegistry
    completion_client: Optional[CompletionClient]
    explorer: BscScanClient
    smart_translator: SmartTranslator
    crypto_query: CryptoQueryService
    defi_analysis: DefiAnalysisService
    transaction_analysis: TransactionAnalysisService
    security_analysis: SecurityAnalysisService
    scanner: SecurityScanService
    network: NetworkStatusService

    async def close(self) -> None:
        await self.explorer.close()
        if self.completion_client is not None:
            self.completion_client.close()


def build_services(
    config: Settings = settings,
    completion_client: Optional[CompletionClient] = None,
    explorer: Optional[BscScanClient] = None,
    quotas: Optional[QuotaRegistry] = None,
    clock: Optional[Clock] = None,
    use_provider: bool = True,
) -> ServiceContainer:
    """Wire every service once per process.

    ``completion_client`` defaults to the configured provider; pass
    ``use_provider=False`` to build without any AI client.
    """
    if completion_client is None and use_provider:
        completion_client = create_completion_client(config)
    quotas = quotas or QuotaRegistry.from_settings(config, clock=clock)
    explorer = explorer or BscScanClient.from_settings(config)

    def pipeline(name: str) -> AIResponsePipeline:
        return AIResponsePipeline(name, completion_client, quotas.get(name))

    return ServiceContainer(
        config=config,
        quotas=quotas,
        completion_client=completion_client,
        explorer=explorer,
        smart_translator=SmartTranslator(pipeline(SMART_TRANSLATOR)),
        crypto_query=CryptoQueryService(pipeline(CRYPTO_QUERY)),
        defi_analysis=DefiAnalysisService(pipeline(DEFI_ANALYSIS)),
        transaction_analysis=TransactionAnalysisService(pipeline(TRANSACTION_ANALYSIS)),
        security_analysis=SecurityAnalysisService(pipeline(SECURITY_ANALYSIS)),
        scanner=SecurityScanService(
            RiskHeuristicScorer(explorer),
            ResultCache(config.scan_cache_max_entries, config.scan_cache_ttl_seconds),
        ),
        network=NetworkStatusService(explorer),
    )


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services
