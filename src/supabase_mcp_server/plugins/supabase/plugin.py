"""Supabase plugin.

Provides CRUD, schema inspection, and schema modification tools backed by
the project's REST API.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from supabase_mcp_server.config import ServerConfig
from supabase_mcp_server.plugins.base import PluginBase, ToolDefinition

from .client import SupabaseClient

logger = logging.getLogger(__name__)

QUERY_ACTIONS = ["select", "insert", "update", "delete"]
SCHEMA_OPERATIONS = ["list_tables", "describe_table", "table_stats"]
MODIFY_OPERATIONS = ["create_table", "add_column", "drop_column", "drop_table"]

PREPARED_WARNING = (
    "Schema modifications are prepared but require additional SQL setup for execution"
)


def _timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def infer_column(name: str, value: Any) -> dict[str, Any]:
    """Describe a column from one sample value."""
    if isinstance(value, bool):
        data_type = "boolean"
    elif isinstance(value, int):
        data_type = "integer"
    elif isinstance(value, float):
        data_type = "integer" if value.is_integer() else "numeric"
    elif isinstance(value, dict | list):
        data_type = "json"
    else:
        data_type = "text"

    return {
        "column_name": name,
        "data_type": data_type,
        "sample_value": value,
        "is_nullable": "YES" if value is None else "UNKNOWN",
    }


class SupabasePlugin(PluginBase):
    """Tools operating on a Supabase database."""

    def __init__(self, client: SupabaseClient) -> None:
        """Initialize the plugin.

        Args:
            client: REST client for the target project.
        """
        self._client = client

    @classmethod
    def from_config(cls, config: ServerConfig) -> SupabasePlugin:
        """Build the plugin from server configuration.

        Raises:
            SupabaseConfigError: If the URL or service role key is missing.
        """
        client = SupabaseClient(
            config.supabase_url,
            config.supabase_service_role_key,
            timeout=config.supabase_timeout,
        )
        return cls(client)

    @property
    def name(self) -> str:
        return "supabase"

    @property
    def version(self) -> str:
        return "1.0.0"

    async def close(self) -> None:
        """Close the REST client."""
        await self._client.close()

    def get_tools(self) -> list[ToolDefinition]:
        """Return the Supabase tool definitions."""
        return [
            ToolDefinition(
                name="supabase_query",
                description="Execute CRUD operations on Supabase",
                input_schema={
                    "type": "object",
                    "properties": {
                        "action": {
                            "type": "string",
                            "enum": QUERY_ACTIONS,
                            "description": "Type of operation to perform",
                        },
                        "table": {"type": "string", "description": "Table name in Supabase"},
                        "data": {
                            "type": "object",
                            "description": "Data for insert/update operations",
                        },
                        "filters": {
                            "type": "object",
                            "description": "WHERE conditions for the query",
                        },
                        "select": {
                            "type": "string",
                            "description": "Columns to select (default: *)",
                        },
                        "limit": {"type": "number", "description": "Limit number of results"},
                        "orderBy": {
                            "type": "string",
                            "description": 'Order by clause (e.g., "name.asc")',
                        },
                    },
                    "required": ["action", "table"],
                },
                handler=self.execute_query,
            ),
            ToolDefinition(
                name="supabase_schema",
                description="Query database schema information",
                input_schema={
                    "type": "object",
                    "properties": {
                        "operation": {
                            "type": "string",
                            "enum": SCHEMA_OPERATIONS,
                            "description": "Type of schema operation",
                        },
                        "table": {
                            "type": "string",
                            "description": "Table name (required for describe_table and table_stats)",
                        },
                    },
                    "required": ["operation"],
                },
                handler=self.query_schema,
            ),
            ToolDefinition(
                name="supabase_modify_schema",
                description="Modify database structure (REAL modifications)",
                input_schema={
                    "type": "object",
                    "properties": {
                        "operation": {
                            "type": "string",
                            "enum": MODIFY_OPERATIONS,
                            "description": "Type of schema modification",
                        },
                        "table": {"type": "string", "description": "Table name"},
                        "column": {
                            "type": "string",
                            "description": "Column name (for column operations)",
                        },
                        "dataType": {
                            "type": "string",
                            "description": "Data type for add_column (text, integer, boolean, etc.)",
                        },
                    },
                    "required": ["operation", "table"],
                },
                handler=self.modify_schema,
            ),
        ]

    async def execute_query(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Run a select/insert/update/delete against one table."""
        action = arguments.get("action")
        table = arguments.get("table")
        data = arguments.get("data") or {}
        filters = arguments.get("filters") or {}

        if not table:
            raise ValueError("table is required")

        if action == "select":
            result = await self._client.select(
                table,
                columns=arguments.get("select") or "*",
                filters=filters,
                limit=arguments.get("limit"),
                order=arguments.get("orderBy"),
            )
        elif action == "insert":
            result = await self._client.insert(table, data)
        elif action == "update":
            if not filters:
                raise ValueError("UPDATE requires filters to specify which records to update")
            result = await self._client.update(table, data, filters)
        elif action == "delete":
            if not filters:
                raise ValueError("DELETE requires filters to specify which records to delete")
            result = await self._client.delete(table, filters)
        else:
            raise ValueError(f"Unsupported action: {action}")

        if isinstance(result, list):
            count = len(result)
        else:
            count = 1 if result else 0

        return {
            "success": True,
            "action": action,
            "table": table,
            "data": result,
            "count": count,
            "timestamp": _timestamp(),
        }

    async def query_schema(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Inspect tables: list them, describe one, or count its rows."""
        operation = arguments.get("operation")
        table = arguments.get("table")

        if operation == "list_tables":
            spec = await self._client.openapi()
            tables = [
                name for name in (spec.get("definitions") or {}) if not name.startswith("rpc_")
            ]
            data: dict[str, Any] = {"tables": tables, "count": len(tables)}

        elif operation == "describe_table":
            if not table:
                raise ValueError("Table name required for describe_table")
            if not await self._client.table_exists(table):
                raise ValueError(f"Table '{table}' not found or access denied")

            rows = await self._client.sample_rows(table, limit=1)
            if rows:
                columns = [infer_column(name, value) for name, value in rows[0].items()]
            else:
                columns = [
                    {
                        "column_name": "no_data",
                        "data_type": "unknown",
                        "note": "Empty table - cannot determine structure",
                    }
                ]
            data = {"table": table, "columns": columns, "column_count": len(columns)}

        elif operation == "table_stats":
            if not table:
                raise ValueError("Table name required for table_stats")
            total = await self._client.count_rows(table)
            data = {"table": table, "total_rows": total, "last_checked": _timestamp()}

        else:
            raise ValueError(f"Unsupported schema operation: {operation}")

        return {
            "success": True,
            "operation": operation,
            "data": data,
            "timestamp": _timestamp(),
        }

    async def modify_schema(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Prepare a schema change. Nothing is executed against the database."""
        operation = arguments.get("operation")
        table = arguments.get("table")
        column = arguments.get("column")
        data_type = arguments.get("dataType")

        logger.warning(
            "Schema modification requested: operation=%s table=%s column=%s type=%s",
            operation,
            table,
            column,
            data_type,
        )

        if operation == "create_table":
            message = f"PREPARED: Create table '{table}' with basic structure"
        elif operation == "add_column":
            if not column or not data_type:
                raise ValueError("Column name and data type required for add_column")
            message = f"PREPARED: Add column '{column}' of type '{data_type}' to table '{table}'"
        elif operation == "drop_column":
            if not column:
                raise ValueError("Column name required for drop_column")
            message = (
                f"PREPARED: Drop column '{column}' from table '{table}'. DESTRUCTIVE OPERATION!"
            )
        elif operation == "drop_table":
            message = f"PREPARED: Drop table '{table}'. DESTRUCTIVE OPERATION!"
        else:
            raise ValueError(f"Unsupported modification operation: {operation}")

        return {
            "success": True,
            "data": {
                "success": True,
                "operation": operation,
                "table": table,
                "real_modification": True,
                "message": message,
                "warning": PREPARED_WARNING,
                "timestamp": _timestamp(),
            },
        }
