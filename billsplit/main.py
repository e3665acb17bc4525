import os
import logging
from fastapi import FastAPI
from billsplit.db.database import Base, engine, check_db_connection
from billsplit.models import bills, bank_accounts  # noqa: F401  (register tables)
from billsplit.api.v1.routes.bills import router as bills_router
from billsplit.api.v1.routes.members import router as members_router
from billsplit.api.v1.routes.items import router as items_router
from billsplit.api.v1.routes.splits import router as splits_router
from billsplit.api.v1.routes.bank_accounts import router as bank_accounts_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Bill Split Service",
    description="Shared restaurant bills: items, weighted splits and per-member settlement",
    version="1.0.0"
)

app.include_router(bills_router)
app.include_router(members_router)
app.include_router(items_router)
app.include_router(splits_router)
app.include_router(bank_accounts_router)


@app.get("/")
def read_root():
    return {"message": "Bill Split Service API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy" if check_db_connection() else "degraded"}
