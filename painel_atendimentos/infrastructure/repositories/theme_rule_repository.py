"""
CRUD das regras de tema.

A listagem devolve as regras em ordem de prioridade (ordem de criação), que é
a ordem consumida pelo classificador. Entradas inválidas são barradas antes de
qualquer escrita.
"""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from painel_atendimentos.application.dto.theme_rule_schema import (
    ThemeRuleCreateSchema,
    ThemeRuleUpdateSchema,
)
from painel_atendimentos.domain.entities.regra_tema import RegraTema
from painel_atendimentos.domain.exceptions import RegraInvalidaError, RegraNaoEncontradaError
from painel_atendimentos.infrastructure.database import models

logger = logging.getLogger(__name__)


def _para_entidade(modelo: models.ThemeRuleModel) -> RegraTema:
    return RegraTema(
        id=modelo.id,
        name=modelo.name,
        keywords=tuple(modelo.keywords or []),
        created_at=modelo.created_at,
    )


class ThemeRuleRepository:
    def __init__(self, db: Session):
        self.db = db

    def _obter_modelo(self, regra_id: int) -> models.ThemeRuleModel:
        modelo = self.db.get(models.ThemeRuleModel, regra_id)
        if modelo is None:
            raise RegraNaoEncontradaError(regra_id)
        return modelo

    def _validar_nome_unico(self, nome: str, ignorar_id: Optional[int] = None):
        query = self.db.query(models.ThemeRuleModel.id).filter(models.ThemeRuleModel.name == nome)
        if ignorar_id is not None:
            query = query.filter(models.ThemeRuleModel.id != ignorar_id)
        if query.first() is not None:
            raise RegraInvalidaError(f"Já existe uma regra com o nome '{nome}'.", field="name")

    def _commit(self):
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise RegraInvalidaError("Já existe uma regra com este nome.", field="name")

    # =====================================================
    # LEITURA
    # =====================================================

    def listar(self) -> List[RegraTema]:
        modelos = self.db.query(models.ThemeRuleModel).order_by(models.ThemeRuleModel.id).all()
        return [_para_entidade(m) for m in modelos]

    def obter(self, regra_id: int) -> RegraTema:
        return _para_entidade(self._obter_modelo(regra_id))

    # =====================================================
    # ESCRITA
    # =====================================================

    def criar(self, dados: ThemeRuleCreateSchema) -> RegraTema:
        self._validar_nome_unico(dados.name)

        modelo = models.ThemeRuleModel(
            name=dados.name,
            keywords=list(dados.keywords),
            created_at=datetime.utcnow(),
        )
        self.db.add(modelo)
        self._commit()
        self.db.refresh(modelo)

        logger.info("Regra de tema criada: id=%s nome=%s", modelo.id, modelo.name)
        return _para_entidade(modelo)

    def atualizar(self, regra_id: int, dados: ThemeRuleUpdateSchema) -> RegraTema:
        modelo = self._obter_modelo(regra_id)
        alteracoes = dados.model_dump(exclude_unset=True, exclude_none=True)

        if "name" in alteracoes:
            self._validar_nome_unico(alteracoes["name"], ignorar_id=regra_id)
            modelo.name = alteracoes["name"]
        if "keywords" in alteracoes:
            modelo.keywords = list(alteracoes["keywords"])

        self._commit()
        self.db.refresh(modelo)

        logger.info("Regra de tema atualizada: id=%s", regra_id)
        return _para_entidade(modelo)

    def remover(self, regra_id: int) -> None:
        modelo = self._obter_modelo(regra_id)
        self.db.delete(modelo)
        self.db.commit()
        logger.info("Regra de tema removida: id=%s", regra_id)
