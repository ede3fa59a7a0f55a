"""
Customer Insights Backend API

Architecture:
1. Load tool definitions from tools directory
2. Initialize FastAPI app with CORS support
3. Import routes from api module
4. Routes hand uploads to tool transformers, which run the agents
"""

import logging
import os
import sys
from dotenv import load_dotenv

# Add project root to the Python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

# Load environment variables early
load_dotenv()
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import router
from tool_registry import get_tool_definitions
from tool_transformers.exceptions import InsightsException

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# ============================================================================
# INITIALIZE APP
# ============================================================================

app = FastAPI(
    title="Customer Insights Backend",
    description="Customer metrics, segmentation and trend analytics for uploaded CSV files",
    version="1.0.0"
)

# Configure CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Load tools on startup
TOOL_DEFINITIONS = get_tool_definitions()

# Include API routes
app.include_router(router)


# Global handler for InsightsException so responses include the configured error_code
@app.exception_handler(InsightsException)
async def handle_insights_exception(request, exc: InsightsException):
    logger.warning("%s: %s", exc.error_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ============================================================================
# RUN
# ============================================================================


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=port)
