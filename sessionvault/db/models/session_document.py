from sqlalchemy import Column, DateTime, Index, MetaData, String, Table, Text


def last_accessed_index_name(table_name: str) -> str:
    return f"ix_{table_name}_last_accessed"


def session_document_table(metadata: MetaData, name: str) -> Table:
    """
    Server-side session documents.

    ``last_accessed`` carries a secondary index used by the expiry sweep's
    range delete.
    """
    return Table(
        name,
        metadata,
        Column("id", String(64), primary_key=True),
        Column("last_accessed", DateTime(timezone=True), nullable=False),
        Column("data", Text, nullable=False, default="{}"),
        Index(last_accessed_index_name(name), "last_accessed"),
    )
