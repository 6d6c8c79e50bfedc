from fastapi import FastAPI
from settings.config import settings
from db.db_operation import create_indexes, mongo_conn
from utils.logger import get_logger
from core.exceptions import global_exception_handler
from core.middleware import RequestLoggingMiddleware
from routes import moderation_routes, listing_routes

logger = get_logger("main")

app = FastAPI(title="Marketplace Admin API", version="1.0.0")
@app.get("/")
async def health_check():
    logger.info("Health check is successful")
    return {
        "status": "ok",
        "app": settings.PROJECT_NAME,
        "message": "FastAPI is running"
    }
@app.on_event("startup")
async def startup_event():
    await mongo_conn.connect()
    await create_indexes()
app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(Exception, global_exception_handler)
app.include_router(moderation_routes.router)
app.include_router(listing_routes.router)
