import logging

from fastapi import FastAPI

from landed_cost_sync.core.middleware import apply_cors
from landed_cost_sync.routes import health_router, v1_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Landed Cost Sync")
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")

apply_cors(app)

app.include_router(health_router)
app.include_router(v1_router)
