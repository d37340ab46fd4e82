from fastapi import APIRouter
from app.routers import leave, backfill

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(backfill.router, tags=["Leave Backfill"])
