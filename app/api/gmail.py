from fastapi import APIRouter, Depends
from app.models.user import User
from app.api.deps import require_internal
from app.services.gmail import get_connection_status

router = APIRouter()


@router.get("/status")
def gmail_status(current_user: User = Depends(require_internal)):
    """Whether invitation emails can currently be sent through Gmail."""
    return get_connection_status()
