# crm_segments/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crm_segments.api.errors import register_exception_handlers
from crm_segments.api.v1.api import api_router
from crm_segments.core.config import settings
from crm_segments.core.limiter import limiter

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"CRM segments service starting up (env={settings.ENV})")
    yield
    logger.info("CRM segments service shutting down")


app = FastAPI(
    title="CRM Segments Service",
    version="1.0.0",
    description="""
        **CRM audience segmentation and campaign targeting**

        * **Segments**: save rule-based customer segments with a cached audience preview
        * **Preview**: count or sample the customers matching ad-hoc rules
        * **Campaigns**: launch a campaign against a segment and queue one
          personalized message per matching customer

        Endpoints accept an optional `Authorization: Bearer <token>` header;
        the token's email is recorded as the creator.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter
register_exception_handlers(app)

origins = [
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "CRM Segments Service is running"}
