from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional
from painel_atendimentos.domain.entities.regra_tema import RegraTema


def _validar_nome(valor: str) -> str:
    valor = (valor or "").strip()
    if not valor:
        raise ValueError("O nome da regra não pode ser vazio.")
    return valor


def _validar_keywords(valor: List[str]) -> List[str]:
    # "boleto, , fatura" → ["boleto", "fatura"]
    limpas = [k.strip() for k in valor if k and k.strip()]
    if not limpas:
        raise ValueError("Informe ao menos uma palavra-chave.")
    return limpas


class ThemeRuleCreateSchema(BaseModel):
    name: str
    keywords: List[str]

    @field_validator("name")
    @classmethod
    def nome_obrigatorio(cls, v: str) -> str:
        return _validar_nome(v)

    @field_validator("keywords")
    @classmethod
    def keywords_obrigatorias(cls, v: List[str]) -> List[str]:
        return _validar_keywords(v)


class ThemeRuleUpdateSchema(BaseModel):
    """Atualização parcial: só os campos enviados são alterados."""
    name: Optional[str] = None
    keywords: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def nome_obrigatorio(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _validar_nome(v)

    @field_validator("keywords")
    @classmethod
    def keywords_obrigatorias(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else _validar_keywords(v)


class ThemeRuleSchema(BaseModel):
    id: int
    name: str
    keywords: List[str] = Field(default_factory=list)
    createdAt: Optional[datetime] = None

    @classmethod
    def from_entity(cls, regra: RegraTema) -> "ThemeRuleSchema":
        return cls(
            id=regra.id,
            name=regra.name,
            keywords=list(regra.keywords),
            createdAt=regra.created_at,
        )
