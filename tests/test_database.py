from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from comms.config import Settings
from comms.database import _mask_url, backend_name, build_engine, check_connection


def test_backend_name_strips_driver():
    assert backend_name("postgresql+psycopg2://u:p@db:5432/comms") == "postgresql"
    assert backend_name("sqlite:///./comms.db") == "sqlite"


def test_mask_url_hides_password():
    assert _mask_url("postgresql://user:secret@db:5432/comms") == (
        "postgresql://user:****@db:5432/comms"
    )
    assert _mask_url("sqlite:///./comms.db") == "sqlite:///./comms.db"


def test_empty_database_url_falls_back_to_sqlite():
    assert Settings(database_url="").effective_database_url == "sqlite:///./comms.db"
    url = "postgresql://u:p@db/comms"
    assert Settings(database_url=url).effective_database_url == url


def test_in_memory_engine_shares_one_connection(engine):
    assert isinstance(engine.pool, StaticPool)
    assert check_connection(engine)
    assert "social_metrics" in inspect(engine).get_table_names()


def test_file_engine_uses_default_pool(tmp_path):
    file_engine = build_engine(f"sqlite:///{tmp_path / 'comms.db'}")
    assert not isinstance(file_engine.pool, StaticPool)
    file_engine.dispose()


def test_unreachable_database_is_reported():
    broken = create_engine("sqlite:////nonexistent-dir/comms.db")
    assert check_connection(broken) is False
