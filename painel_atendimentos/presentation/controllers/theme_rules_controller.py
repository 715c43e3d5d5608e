from typing import List
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from painel_atendimentos.infrastructure.database.config import get_db
from painel_atendimentos.infrastructure.repositories.theme_rule_repository import ThemeRuleRepository
from painel_atendimentos.application.dto.theme_rule_schema import (
    ThemeRuleCreateSchema,
    ThemeRuleSchema,
    ThemeRuleUpdateSchema,
)

router = APIRouter(prefix="/api/theme-rules", tags=["Regras de Tema"])

# Erros de validação (400) e regra inexistente (404) são convertidos
# pelos handlers registrados em presentation/error_handlers.py


@router.get("", response_model=List[ThemeRuleSchema])
def listar_regras(db: Session = Depends(get_db)):
    """Regras em ordem de prioridade (a primeira que casar define o tema)."""
    return [ThemeRuleSchema.from_entity(r) for r in ThemeRuleRepository(db).listar()]


@router.post("", response_model=ThemeRuleSchema, status_code=201)
def criar_regra(dados: ThemeRuleCreateSchema, db: Session = Depends(get_db)):
    return ThemeRuleSchema.from_entity(ThemeRuleRepository(db).criar(dados))


@router.put("/{regra_id}", response_model=ThemeRuleSchema)
def atualizar_regra(regra_id: int, dados: ThemeRuleUpdateSchema, db: Session = Depends(get_db)):
    return ThemeRuleSchema.from_entity(ThemeRuleRepository(db).atualizar(regra_id, dados))


@router.delete("/{regra_id}", status_code=204)
def remover_regra(regra_id: int, db: Session = Depends(get_db)):
    ThemeRuleRepository(db).remover(regra_id)
    return Response(status_code=204)
