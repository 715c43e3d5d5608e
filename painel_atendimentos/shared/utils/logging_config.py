import logging
import sys


def configurar_logging(level: str = "INFO") -> None:
    """Configura o logging da aplicação (stdout, um formato só)."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    # Acesso HTTP do uvicorn polui demais o log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
