"""
Schema Catalog
==============

Read-only column metadata that grounds both translation phases.
"""

from dataclasses import dataclass


# Default table for the reporting backend
TRANSACTIONS_SCHEMA = {
    "columns": [
        "id",
        "timestamp",
        "asset",
        "assetName",
        "action",
        "transactionType",
        "wallet",
        "amount",
        "price",
        "value",
        "fee",
        "shortTermGainLoss",
        "longTermGainLoss",
        "undatedGainLoss",
        "totalGainLoss",
        "costBasisAcquired",
        "costBasisRelieved",
    ],
    "types": {
        "id": "TEXT",
        "timestamp": "TIMESTAMP",
        "asset": "TEXT",
        "assetName": "TEXT",
        "action": "TEXT",
        "transactionType": "TEXT",
        "wallet": "TEXT",
        "amount": "DECIMAL",
        "price": "DECIMAL",
        "value": "DECIMAL",
        "fee": "DECIMAL",
        "shortTermGainLoss": "DECIMAL",
        "longTermGainLoss": "DECIMAL",
        "undatedGainLoss": "DECIMAL",
        "totalGainLoss": "DECIMAL",
        "costBasisAcquired": "DECIMAL",
        "costBasisRelieved": "DECIMAL",
    },
    "aggregatable": [
        "amount",
        "price",
        "value",
        "fee",
        "shortTermGainLoss",
        "longTermGainLoss",
        "undatedGainLoss",
        "totalGainLoss",
        "costBasisAcquired",
        "costBasisRelieved",
    ],
    "descriptions": {
        "id": "Unique transaction identifier",
        "timestamp": "Date and time when the transaction occurred",
        "asset": "Cryptocurrency symbol/ticker (e.g., BTC, ETH, SOL)",
        "assetName": "Full name of the cryptocurrency (e.g., Bitcoin, Ethereum)",
        "action": "Type of transaction (buy, sell, transfer, stake, etc.)",
        "transactionType": "Category of transaction (trade, transfer, income, etc.)",
        "wallet": "Name of the wallet holding the asset",
        "amount": "Quantity of cryptocurrency in the transaction",
        "price": "Price per unit of the cryptocurrency at transaction time",
        "value": "Total value of the transaction in fiat currency",
        "fee": "Transaction fee paid",
        "shortTermGainLoss": "Realized gain or loss for assets held less than a year",
        "longTermGainLoss": "Realized gain or loss for assets held more than a year",
        "undatedGainLoss": "Gain or loss where the holding period is unknown",
        "totalGainLoss": "Total realized gain or loss across all holding periods",
        "costBasisAcquired": "Cost basis of assets acquired in the transaction",
        "costBasisRelieved": "Cost basis of assets disposed in the transaction",
    },
}


@dataclass(frozen=True)
class ColumnMetadata:
    """Metadata for a single column."""

    name: str
    type: str
    description: str = ""
    aggregatable: bool = False


class SchemaCatalog:
    """Read-only view over a single table's columns."""

    def __init__(self, table_name: str, columns: list[ColumnMetadata]) -> None:
        self.table_name = table_name
        self._columns = list(columns)
        self._by_name = {col.name.lower(): col for col in self._columns}

    @classmethod
    def from_dict(cls, table_name: str, schema: dict) -> "SchemaCatalog":
        """
        Build a catalog from a schema dict.

        Args:
            table_name: Name of the table queries are issued against
            schema: Dict with ``columns`` and ``types`` keys and optional
                    ``aggregatable`` and ``descriptions`` keys

        Returns:
            SchemaCatalog instance
        """
        types = schema.get("types", {})
        descriptions = schema.get("descriptions", {})
        aggregatable = set(schema.get("aggregatable", []))
        columns = [
            ColumnMetadata(
                name=name,
                type=types.get(name, "TEXT"),
                description=descriptions.get(name, ""),
                aggregatable=name in aggregatable,
            )
            for name in schema["columns"]
        ]
        return cls(table_name, columns)

    @property
    def columns(self) -> list[ColumnMetadata]:
        return list(self._columns)

    def column_names(self) -> list[str]:
        return [col.name for col in self._columns]

    def aggregatable_columns(self) -> list[str]:
        return [col.name for col in self._columns if col.aggregatable]

    def filterable_columns(self) -> list[str]:
        """Dimension columns, i.e. everything not aggregatable."""
        return [col.name for col in self._columns if not col.aggregatable]

    def column(self, name: str) -> ColumnMetadata | None:
        """Case-insensitive column lookup."""
        return self._by_name.get(name.lower())

    def describe(self) -> str:
        """Format the schema for inclusion in an LLM prompt."""
        if not self._columns:
            return "No schema information available."

        lines = [f"Table Schema ({self.table_name}):", ""]
        for col in self._columns:
            line = f"- {col.name} ({col.type})"
            if col.description:
                line += f": {col.description}"
            if col.aggregatable:
                line += " [aggregatable]"
            lines.append(line)
        return "\n".join(lines)


def default_catalog(table_name: str = "transactions") -> SchemaCatalog:
    """Catalog over the default transactions table."""
    return SchemaCatalog.from_dict(table_name, TRANSACTIONS_SCHEMA)
