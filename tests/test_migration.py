import importlib.util
from pathlib import Path

from alembic.autogenerate import compare_metadata
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine

from wabridge.db.base import Base

REVISION = Path(__file__).resolve().parent.parent / "alembic" / "versions" / "add_whatsapp_groups_001.py"


def load_revision():
    spec = importlib.util.spec_from_file_location("add_whatsapp_groups_001", REVISION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_revision_indexes_match_models():
    revision = load_revision()
    engine = create_engine("sqlite://")

    with engine.begin() as connection:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            revision.upgrade()

        diff = compare_metadata(context, Base.metadata)

    index_changes = [change for change in diff if change[0] in ("add_index", "remove_index")]
    tables_added = [change for change in diff if change[0] in ("add_table", "remove_table")]
    assert index_changes == []
    assert tables_added == []
