"""API v1 - agregação das rotas"""
from fastapi import APIRouter

from ibrac.api.api_v1.endpoints import (
    owners, catalog, entries, sublots, batches, exits,
    settlements, lme, reports, audit_logs
)

api_router = APIRouter()

# Cadastros
api_router.include_router(owners.router, prefix="/owners", tags=["Donos de material"])
api_router.include_router(catalog.router, prefix="/catalog", tags=["Cadastros"])

# Operação
api_router.include_router(entries.router, prefix="/entries", tags=["Entradas"])
api_router.include_router(sublots.router, prefix="/sublots", tags=["Sublotes"])
api_router.include_router(batches.router, prefix="/batches", tags=["Beneficiamentos"])
api_router.include_router(exits.router, prefix="/exits", tags=["Saídas"])

# Financeiro
api_router.include_router(settlements.router, prefix="/settlements", tags=["Acertos financeiros"])
api_router.include_router(lme.router, prefix="/lme", tags=["Cotações LME"])
api_router.include_router(reports.router, prefix="/reports", tags=["Relatórios"])

# Sistema
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Auditoria"])
