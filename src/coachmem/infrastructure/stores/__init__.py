from .memory_store import InsightStore, SqlAlchemyInsightStore
from .sqlalchemy_db import SessionProvider, get_db_url

__all__ = ["InsightStore", "SqlAlchemyInsightStore", "SessionProvider", "get_db_url"]
