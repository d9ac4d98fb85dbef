from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.db import check_db_connection

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    """Report service and database health."""
    database_ok = check_db_connection()
    status = "healthy" if database_ok else "degraded"
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={"service": "task-assignment", "status": status, "services": {"database": database_ok}},
    )
