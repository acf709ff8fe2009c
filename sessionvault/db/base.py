from typing import Optional

from sqlalchemy import MetaData

# Define naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def build_metadata(schema: Optional[str] = None) -> MetaData:
    """
    Create metadata for one session store.

    Table and schema names are configurable per store, so each store owns its
    own MetaData instead of sharing a declarative base.
    """
    return MetaData(schema=schema, naming_convention=convention)
