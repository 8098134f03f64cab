"""
Pytest Fixtures
===============

Shared fixtures for query pipeline tests.
"""

import json
import sys
from pathlib import Path

import pytest

# Add src and the repo root (observability) to path for imports
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))

from nlq_pipeline.config import PipelineConfig
from nlq_pipeline.execution.engine import SQLiteDataEngine
from nlq_pipeline.llm.mock import MockLLM
from nlq_pipeline.schema import SchemaCatalog, default_catalog
from nlq_pipeline.translation.prompts import AGGREGATION_TASK, CORRECTION_TASK, FILTER_TASK
from nlq_pipeline.translation.service import TranslationService

SCENARIO_A_QUERY = "total gain loss for ETH and BTC in March 2025 excluding Treasury wallet"
SCENARIO_A_FILTER = (
    "asset IN ('ETH','BTC') AND timestamp BETWEEN '2025-03-01' AND '2025-03-31' "
    "AND wallet <> 'Treasury'"
)

SAMPLE_TRANSACTIONS = [
    {
        "id": "tx1",
        "timestamp": "2025-03-05T10:00:00",
        "asset": "ETH",
        "assetName": "Ethereum",
        "action": "sell",
        "transactionType": "trade",
        "wallet": "Coinbase",
        "amount": 2.0,
        "price": 3000.0,
        "value": 6000.0,
        "fee": 10.0,
        "shortTermGainLoss": 500.0,
        "longTermGainLoss": 0.0,
        "totalGainLoss": 500.0,
    },
    {
        "id": "tx2",
        "timestamp": "2025-03-12T08:30:00",
        "asset": "BTC",
        "assetName": "Bitcoin",
        "action": "sell",
        "transactionType": "trade",
        "wallet": "Ledger",
        "amount": 0.5,
        "price": 80000.0,
        "value": 40000.0,
        "fee": 25.0,
        "shortTermGainLoss": 1000.0,
        "longTermGainLoss": 250.0,
        "totalGainLoss": 1250.0,
    },
    {
        "id": "tx3",
        "timestamp": "2025-03-20T14:00:00",
        "asset": "ETH",
        "assetName": "Ethereum",
        "action": "sell",
        "transactionType": "trade",
        "wallet": "Treasury",
        "amount": 1.0,
        "price": 3100.0,
        "value": 3100.0,
        "fee": 5.0,
        "shortTermGainLoss": 300.0,
        "longTermGainLoss": 100.0,
        "totalGainLoss": 400.0,
    },
    {
        "id": "tx4",
        "timestamp": "2025-04-02T09:00:00",
        "asset": "BTC",
        "assetName": "Bitcoin",
        "action": "sell",
        "transactionType": "trade",
        "wallet": "Ledger",
        "amount": 0.1,
        "price": 82000.0,
        "value": 8200.0,
        "fee": 3.0,
        "shortTermGainLoss": 50.0,
        "longTermGainLoss": 0.0,
        "totalGainLoss": 50.0,
    },
    {
        "id": "tx5",
        "timestamp": "2025-03-15T16:45:00",
        "asset": "SOL",
        "assetName": "Solana",
        "action": "buy",
        "transactionType": "trade",
        "wallet": "Coinbase",
        "amount": 10.0,
        "price": 150.0,
        "value": 1500.0,
        "fee": 1.0,
        "shortTermGainLoss": 20.0,
        "longTermGainLoss": 5.0,
        "totalGainLoss": 25.0,
    },
]


def filter_reply(description: str, sql_clause: str, confidence: float, **extra) -> str:
    """Population definition reply as an LLM would phrase it."""
    payload = {"description": description, "sqlClause": sql_clause, "confidence": confidence}
    payload.update(extra)
    return f"Here is the analysis:\n{json.dumps(payload)}"


def aggregation_reply(
    description: str,
    clause: str,
    confidence: float,
    group_by: str = "",
    order_by: str = "",
    limit: str = "",
    **extra,
) -> str:
    """Result shape reply as an LLM would phrase it."""
    payload = {
        "aggregationDescription": description,
        "aggregationClause": clause,
        "groupByDescription": group_by,
        "groupByClause": group_by,
        "orderByDescription": order_by,
        "orderByClause": order_by,
        "limitDescription": f"Limit to {limit} results" if limit else "",
        "limitClause": limit,
        "confidence": confidence,
    }
    payload.update(extra)
    return json.dumps(payload)


def phase_llm(
    filter_replies: list[str],
    aggregation_replies: list[str],
    correction_replies: list[str] | None = None,
    fail_on: list[str] | None = None,
) -> MockLLM:
    """MockLLM routed on the task marker each prompt opens with."""
    responses = {FILTER_TASK: filter_replies, AGGREGATION_TASK: aggregation_replies}
    if correction_replies is not None:
        responses[CORRECTION_TASK] = correction_replies
    return MockLLM(responses=responses, fail_on=fail_on)


@pytest.fixture
def catalog() -> SchemaCatalog:
    """Return the default transactions catalog."""
    return default_catalog()


@pytest.fixture
def config() -> PipelineConfig:
    """Return the default pipeline configuration."""
    return PipelineConfig()


@pytest.fixture
def engine(catalog: SchemaCatalog):
    """In-memory SQLite engine seeded with sample transactions."""
    engine = SQLiteDataEngine()
    engine.load_rows(catalog, SAMPLE_TRANSACTIONS)
    yield engine
    engine.close()


@pytest.fixture
def scenario_a_llm() -> MockLLM:
    """Mock LLM answering the gain/loss example query."""
    return phase_llm(
        [
            filter_reply(
                "Transactions for ETH and BTC during March 2025, excluding the Treasury wallet",
                SCENARIO_A_FILTER,
                0.9,
            )
        ],
        [
            aggregation_reply(
                "Sum short and long term gain/loss",
                "asset, SUM(shortTermGainLoss), SUM(longTermGainLoss)",
                0.8,
                group_by="asset",
            )
        ],
    )


@pytest.fixture
def confident_llm() -> MockLLM:
    """Mock LLM whose translations clear the confirmation threshold."""
    return phase_llm(
        [filter_reply("Transactions for ETH", "asset = 'ETH'", 1.0)],
        [
            aggregation_reply(
                "Total gain/loss per asset",
                "asset, SUM(totalGainLoss) AS totalGainLoss",
                1.0,
                group_by="asset",
            )
        ],
    )


@pytest.fixture
def translator(scenario_a_llm: MockLLM, catalog: SchemaCatalog) -> TranslationService:
    """Translation service over the scenario LLM."""
    return TranslationService(scenario_a_llm, catalog)
