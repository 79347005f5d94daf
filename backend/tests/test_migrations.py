from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

BACKEND_DIR = Path(__file__).resolve().parents[1]


def _alembic_config(connection) -> Config:
    cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "migrations"))
    cfg.attributes["configure_logger"] = False
    cfg.attributes["connection"] = connection
    return cfg


def test_upgrade_and_downgrade(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrated.db'}")

    with engine.begin() as connection:
        command.upgrade(_alembic_config(connection), "head")

    inspector = inspect(engine)
    assert {"students", "subjects", "student_marks", "score_entries"} <= set(inspector.get_table_names())
    unique_columns = [set(uc["column_names"]) for uc in inspector.get_unique_constraints("score_entries")]
    assert {"student_id", "subject_id", "exam_type"} in unique_columns

    with engine.begin() as connection:
        command.downgrade(_alembic_config(connection), "base")

    assert "students" not in inspect(engine).get_table_names()
    engine.dispose()
