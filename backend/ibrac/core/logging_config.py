"""
Configuração de logs

Console colorido, arquivo diário da aplicação, arquivo só de erros e um
arquivo próprio para as cotações LME (busca manual e agendada).
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ibrac.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers cujas mensagens também vão para lme_<data>.log
LME_LOGGERS = ("ibrac.services.lme_fetcher", "ibrac.services.scheduler")

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "apscheduler")


class ColoredFormatter(logging.Formatter):
    """Nível colorido no console"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        # cópia: os handlers de arquivo recebem o mesmo record
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _file_handler(path: Path, level: int) -> logging.FileHandler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: Optional[Union[str, Path]] = None):
    """
    Configura o sistema de logs

    Args:
        log_level: nível (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: diretório dos arquivos; padrão settings.LOG_DIR
    """
    if log_dir is None:
        log_dir = settings.LOG_DIR
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y-%m-%d")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)

    root_logger.addHandler(_file_handler(log_dir / f"app_{today}.log", logging.INFO))
    root_logger.addHandler(_file_handler(log_dir / f"error_{today}.log", logging.ERROR))

    lme_handler = _file_handler(log_dir / f"lme_{today}.log", logging.INFO)
    for name in LME_LOGGERS:
        lme_logger = logging.getLogger(name)
        lme_logger.handlers.clear()
        lme_logger.addHandler(lme_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"📋 Logs configurados em {log_dir} (nível {log_level.upper()})")


def get_logger(name: str) -> logging.Logger:
    """Logger nomeado, ex. get_logger(__name__)"""
    return logging.getLogger(name)
