from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union
from painel_atendimentos.domain.entities.filtros import EstadoFiltros


def _limite_de_data(valor: Any) -> Any:
    # "YYYY-MM-DD" é um dia inteiro (date); qualquer outro texto é um instante (datetime)
    if isinstance(valor, str):
        texto = valor.strip()
        if not texto:
            return None
        if len(texto) == 10:
            return date.fromisoformat(texto)
        if texto.endswith(("Z", "z")):
            texto = texto[:-1] + "+00:00"
        return datetime.fromisoformat(texto)
    return valor


class FiltrosSchema(BaseModel):
    startDate: Optional[Union[datetime, date]] = None
    endDate: Optional[Union[datetime, date]] = None
    channels: List[str] = Field(default_factory=list)
    houses: List[str] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    onlyNoInteraction: bool = False

    @field_validator("startDate", "endDate", mode="before")
    @classmethod
    def limite_de_data(cls, v: Any) -> Any:
        return _limite_de_data(v)

    @classmethod
    def from_entity(cls, filtros: EstadoFiltros) -> "FiltrosSchema":
        return cls(
            startDate=filtros.start_date,
            endDate=filtros.end_date,
            channels=sorted(filtros.channels),
            houses=sorted(filtros.houses),
            themes=sorted(filtros.themes),
            onlyNoInteraction=filtros.only_no_interaction,
        )


class FiltrosPatchSchema(BaseModel):
    """
    Mescla parcial vinda da UI. Campo ausente = mantém o valor atual;
    startDate/endDate enviados como null limpam o limite.
    Uma data pura ("2024-01-01") vale pelo dia inteiro; com horário, pelo instante.
    """
    startDate: Optional[Union[datetime, date]] = None
    endDate: Optional[Union[datetime, date]] = None
    channels: Optional[List[str]] = None
    houses: Optional[List[str]] = None
    themes: Optional[List[str]] = None
    onlyNoInteraction: Optional[bool] = None

    @field_validator("startDate", "endDate", mode="before")
    @classmethod
    def limite_de_data(cls, v: Any) -> Any:
        return _limite_de_data(v)

    def para_parciais(self) -> Dict[str, Any]:
        enviados = self.model_dump(exclude_unset=True)
        parciais: Dict[str, Any] = {}

        if "startDate" in enviados:
            parciais["start_date"] = self.startDate
        if "endDate" in enviados:
            parciais["end_date"] = self.endDate
        for campo in ("channels", "houses", "themes"):
            if campo in enviados:
                parciais[campo] = frozenset(enviados[campo] or [])
        if enviados.get("onlyNoInteraction") is not None:
            parciais["only_no_interaction"] = bool(self.onlyNoInteraction)

        return parciais
