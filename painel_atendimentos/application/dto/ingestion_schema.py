from dataclasses import asdict
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional
from painel_atendimentos.domain.entities.atendimento import Atendimento

class AtendimentoSchema(BaseModel):
    """
    Representação JSON de um atendimento normalizado.
    As chaves saem em camelCase (dataHoraInicio, canalNormalizado...), o
    mesmo contrato consumido pelo frontend.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    contato: str
    identificador: str
    protocolo: str
    canal: str
    tipo_canal: str
    resumo_conversa: str
    casa: str

    data_hora_inicio: datetime
    data_hora_fim: datetime

    duracao_minutos: float = Field(ge=0)
    data: str
    hora: int = Field(ge=0, le=23)
    dia_da_semana: str
    mes: str
    semana: int
    canal_normalizado: str
    flag_falta_interacao: bool
    tema: Optional[str] = None

    @classmethod
    def from_entity(cls, registro: Atendimento) -> "AtendimentoSchema":
        return cls(**asdict(registro))


def serializar_registros(registros: List[Atendimento]) -> List[dict]:
    return [
        AtendimentoSchema.from_entity(r).model_dump(by_alias=True, mode="json")
        for r in registros
    ]


class DetalhesImportacaoSchema(BaseModel):
    formato_detectado: str
    total_linhas_arquivo: int = Field(default=0, ge=0)
    success_count: int = Field(default=0, ge=0)
    rejected_count: int = Field(default=0, ge=0)
    errors: List[str] = Field(default_factory=list)


class ResultadoImportacaoSchema(BaseModel):
    status: str  # success | warning | error
    message: str
    session_id: str
    detalhes: DetalhesImportacaoSchema


class TemaManualSchema(BaseModel):
    """Troca manual do tema de um atendimento."""
    tema: str = Field(min_length=1)
