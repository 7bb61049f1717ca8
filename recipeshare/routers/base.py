from fastapi import APIRouter

# Shared router; every API module registers its endpoints here
api_router = APIRouter(prefix="/api")

# HTML pages outside the /api prefix
views_router = APIRouter()
