# checkout/api/routers/health.py
from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/")
def health(request: Request):
    return {"status": "ok", "provider": request.app.state.gateway.name}
