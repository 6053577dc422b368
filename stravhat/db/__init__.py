from stravhat.db.session import AsyncSessionLocal, init_db

__all__ = ["AsyncSessionLocal", "init_db"]
