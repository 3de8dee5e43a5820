from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """레코드 저장소용 SQLAlchemy 엔진을 만든다.

    SQLite는 FastAPI 스레드풀에서 접근하므로 check_same_thread를 끈다.
    in-memory DB는 StaticPool을 써야 모든 커넥션이 같은 DB를 공유한다.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    kwargs = {}
    if database_url in _IN_MEMORY_URLS:
        kwargs["poolclass"] = StaticPool
    return create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False},
        **kwargs,
    )


def create_db_and_tables(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
