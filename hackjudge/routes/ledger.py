"""
Ledger audit routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status

from hackjudge.client import JudgingClient
from hackjudge.routes.hackathons import get_client
from hackjudge.schemas.hackathon import LedgerChainView

router = APIRouter(prefix="/ledger", tags=["ledger"])


def check_chain_verify_enabled(request: Request):
    """Check if ledger chain verification is enabled."""
    if not request.app.state.settings.feature_ledger_chain_verify:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Ledger chain verification is disabled"
        )


@router.get("/verify", response_model=LedgerChainView, dependencies=[Depends(check_chain_verify_enabled)])
async def verify_ledger_chain(client: JudgingClient = Depends(get_client)):
    """
    Verify the ledger hash chain.

    Recomputes every entry hash and checks each link to its predecessor.
    """
    return await client.verify_ledger_chain()
