"""
Log de operações - trilha de auditoria das alterações relevantes
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from ibrac.db.base import Base


class AuditLog(Base):
    """Registro de auditoria

    Ações: create, update, delete, finalize, transfer, reconcile, fetch
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(20), nullable=False, index=True, comment="Ação")
    table_name = Column(String(50), nullable=False, index=True, comment="Tabela")
    record_id = Column(Integer, index=True, comment="ID do registro")
    record_data = Column(JSON, comment="Dados do registro")
    user_id = Column(String(100), comment="Usuário")
    ip_address = Column(String(50), comment="IP")
    user_agent = Column(String(300), comment="User agent")
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.table_name}:{self.record_id}>"

    @property
    def action_display(self) -> str:
        action_map = {
            "create": "Criação",
            "update": "Alteração",
            "delete": "Exclusão",
            "finalize": "Finalização",
            "transfer": "Transferência",
            "reconcile": "Conciliação",
            "fetch": "Importação",
        }
        return action_map.get(self.action, self.action)
