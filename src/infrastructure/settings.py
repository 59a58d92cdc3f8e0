import logging
import os
from dotenv import load_dotenv

# Carrega variáveis de ambiente do arquivo .env
load_dotenv()


class Settings:
    def __init__(self):
        # Banco
        self.database_url = os.getenv("DATABASE_URL")

        # Logs
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Resumo (cache materializado)
        self.resumo_intervalo_segundos = int(os.getenv("RESUMO_INTERVALO_SEGUNDOS", "300"))
        self.ranking_destaques = int(os.getenv("RANKING_DESTAQUES", "3"))

        # CORS extra além dos origins fixos do main.py
        self.cors_origins = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()
        ]


settings = Settings()


def configurar_logging(level: str = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
