from typing import List, Optional, Union
import logging

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    PROJECT_NAME: str = "IBRAC Operações"
    API_V1_STR: str = "/api/v1"
    # Nome exibido para o dono "empresa" quando o sublote não tem dono
    COMPANY_NAME: str = "IBRAC"

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Logs
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Banco de dados
    SQLITE_DATABASE_URI: str = "sqlite:///./ibrac_operacoes.db"

    # Cotações LME (metals.dev)
    METALS_API_KEY: Optional[str] = Field(
        default=None,
        description="Chave da API metals.dev; sem ela a busca automática fica desativada"
    )
    METALS_API_URL: str = "https://api.metals.dev/v1/latest"
    DEFAULT_USD_BRL: float = 5.40  # câmbio usado quando a API não devolve BRL
    HTTP_TIMEOUT_SECONDS: float = 20.0

    # Busca diária automática
    LME_FETCH_ENABLED: bool = True
    LME_FETCH_HOUR: int = 18  # hora local (0-23)
    LME_FETCH_MINUTE: int = 30

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
logger.info(f"Configuração carregada: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
