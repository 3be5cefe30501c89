from fastapi import APIRouter
from app.api.v1.endpoints import contributions, balances, settlements, leave, transactions

api_router = APIRouter()

api_router.include_router(contributions.router, prefix="/plans", tags=["contributions"])
api_router.include_router(balances.router, prefix="/plans", tags=["balances"])
api_router.include_router(settlements.router, prefix="/plans", tags=["settlements"])
api_router.include_router(leave.router, prefix="/plans", tags=["leave"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
