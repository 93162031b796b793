from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.config import settings

# SQLite預設只允許建立連線的執行緒使用該連線，
# 但FastAPI的同步端點會在threadpool中執行，因此需要關閉這個檢查
connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

# 建立與資料庫的底層連線池
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
# autocommit=False：不自動提交，需手動呼叫db.commit()
# autoflush=False：不自動將暫存的變更送出到資料庫
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


# 所有模型繼承同一個Base，Base.metadata會追蹤所有資料表
class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        # 請求開始時取得連線，端點執行完畢後回到這裡執行finally
        yield db
    finally:
        # 將連線釋放回連線池
        db.close()
