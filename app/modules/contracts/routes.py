from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.contracts.schemas import ContractResponse, ContractStatsResponse, ContractStatus
from app.modules.contracts.service import ContractService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/contracts", tags=["contracts"])


def get_contract_service(supabase: Client = Depends(get_supabase)) -> ContractService:
    return ContractService(supabase)


@router.get("", response_model=List[ContractResponse])
def list_contracts(
    status: Optional[ContractStatus] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: ContractService = Depends(get_contract_service)
):
    """Contracts where the current user is investor or freelancer"""
    return service.get_user_contracts(user_data["id"], status)


@router.get("/stats", response_model=ContractStatsResponse)
def contract_stats(
    user_data: Dict = Depends(get_current_user_id),
    service: ContractService = Depends(get_contract_service)
):
    return service.get_contract_stats(user_data["id"])
