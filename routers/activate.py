# routers/activate.py

from fastapi import APIRouter, Depends

from dependencies.auth import get_current_identity
from core.account_lifecycle import activate
from core.supabase_helpers import require_supabase_client
from models.identity import Identity


router = APIRouter(
    prefix="/activate",
    tags=["Activation"],
)


# -----------------------------------------------------
# POST /activate
# Managed account takes ownership after setting a password
# -----------------------------------------------------
@router.post("", summary="Complete the managed-account handoff")
def activate_account(identity: Identity = Depends(get_current_identity)):
    """
    200 on the first call; 400 "Already activated" on every later or
    concurrent one; 400 "Account is not managed" for self-registered
    accounts.
    """
    admin = require_supabase_client()
    activate(admin, identity)
    return {"success": True}
