from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.error_handler import custom_exception_handler
from app.core.exceptions import BaseAPIException
from app.core.log_config import setup_logging

from app.api.rooms import router as room_router
from app.api.messages import router as message_router
from app.globals import event_bus
from app.database.postgres import initialize_db
from app.utils.timing_middleware import TimingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await initialize_db()
    await event_bus.init_redis()
    yield
    await event_bus.close()

app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  
    allow_credentials=True,
    allow_methods=["*"],  
    allow_headers=["*"],  
)

app.add_exception_handler(BaseAPIException, custom_exception_handler)
app.add_middleware(TimingMiddleware)

app.include_router(room_router)
app.include_router(message_router)
