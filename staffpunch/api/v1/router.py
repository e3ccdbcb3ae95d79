# staffpunch/api/v1/router.py
from fastapi import APIRouter
from staffpunch.api.v1 import attendance, assignments

api_router = APIRouter()

api_router.include_router(attendance.router,  prefix="/attendance",  tags=["attendance"])
api_router.include_router(assignments.router, prefix="/assignments", tags=["assignments"])
