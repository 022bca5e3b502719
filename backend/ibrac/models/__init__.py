# Modelos do sistema de operações

from ibrac.models.owner import MaterialOwner
from ibrac.models.catalog import EntryType, ProductType
from ibrac.models.entry import Entry
from ibrac.models.sublot import Sublot, OwnerTransfer
from ibrac.models.batch import ProcessingBatch, BatchDocument, BatchInputItem, BatchOutputItem
from ibrac.models.exit import Exit, ExitItem
from ibrac.models.lme import LMEPrice, LMEWeekConfig
from ibrac.models.settlement import FinancialSettlement
from ibrac.models.audit_log import AuditLog

__all__ = [
    "MaterialOwner",
    "EntryType",
    "ProductType",
    "Entry",
    "Sublot",
    "OwnerTransfer",
    "ProcessingBatch",
    "BatchDocument",
    "BatchInputItem",
    "BatchOutputItem",
    "Exit",
    "ExitItem",
    "LMEPrice",
    "LMEWeekConfig",
    "FinancialSettlement",
    "AuditLog",
]
