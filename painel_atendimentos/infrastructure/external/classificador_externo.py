"""
Cliente do serviço externo de classificação de temas.

Contrato: POST {CLASSIFIER_URL} com {"text": ..., "themes": [...]}
          → {"theme": "...", "confidence": 0.9}

Qualquer falha (serviço não configurado, timeout, conexão, HTTP != 2xx,
resposta fora do contrato) vira ServicoExternoIndisponivelError. Não há retry
aqui: a política de nova tentativa é de quem chama.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
import requests
from painel_atendimentos.domain.exceptions import ServicoExternoIndisponivelError
from painel_atendimentos.shared.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResultadoClassificacao:
    theme: str
    confidence: Optional[float] = None


class ClassificadorExterno:

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_s: Optional[int] = None,
        http: Optional[requests.Session] = None,
    ):
        self.url = url if url is not None else settings.classifier_url
        self.api_key = api_key if api_key is not None else settings.classifier_api_key
        self.timeout_s = timeout_s if timeout_s is not None else settings.classifier_timeout_s
        self.http = http or requests.Session()

    def classificar(self, texto: str, temas: Optional[List[str]] = None) -> ResultadoClassificacao:
        if not self.url:
            raise ServicoExternoIndisponivelError("Serviço de classificação não configurado (CLASSIFIER_URL).")

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            resp = self.http.post(
                self.url,
                json={"text": texto, "themes": temas or []},
                headers=headers,
                timeout=self.timeout_s,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.warning("Classificador externo inacessível: %s", e)
            raise ServicoExternoIndisponivelError("Serviço de classificação indisponível.") from e
        except requests.HTTPError as e:
            logger.warning("Classificador externo respondeu com erro: %s", e)
            raise ServicoExternoIndisponivelError("Serviço de classificação retornou erro.") from e
        except ValueError as e:
            raise ServicoExternoIndisponivelError("Resposta inválida do serviço de classificação.") from e

        if not isinstance(payload, dict) or not isinstance(payload.get("theme"), str):
            raise ServicoExternoIndisponivelError("Resposta inválida do serviço de classificação.")

        confidence = payload.get("confidence")
        return ResultadoClassificacao(
            theme=payload["theme"].strip(),
            confidence=float(confidence) if isinstance(confidence, (int, float)) else None,
        )


def get_classificador() -> ClassificadorExterno:
    """Dependency para FastAPI."""
    return ClassificadorExterno()
