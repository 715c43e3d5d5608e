"""
Service Layer para as métricas do dashboard calculadas no banco.
É a alternativa server-side às agregações em memória (aggregation_service).

Regras desta camada:
  - Só entram linhas com "data e hora de fim" preenchida (atendimento finalizado)
  - Contagens usam protocolos distintos (a tabela repete protocolo por interação)
  - Casa vazia/nula é agrupada como "Falta de Interação". O normalizador usa
    "Unknown" para o mesmo caso; as duas políticas são independentes.
  - Filtro de período só é aplicado com início E fim informados, sempre pelo
    dia de fim do atendimento
  - Sem período, a linha do tempo mostra os últimos 30 dias
"""

from sqlalchemy.orm import Session
from sqlalchemy import func, case, distinct, or_, literal_column
from painel_atendimentos.infrastructure.database import models
from painel_atendimentos.domain.exceptions import ProtocoloNaoEncontradoError
from datetime import date, datetime, time, timedelta
from typing import Optional, Dict, List, Sequence

Fato = models.FatoAtendimento


class DashboardService:

    CASA_SEM_INTERACAO = "Falta de Interação"
    CASA_TODAS = "Todas"
    LIMITE_RANKING = 10
    DIAS_TIMELINE = 30

    def __init__(self, db: Session):
        self.db = db

    # =====================================================
    # HELPERS INTERNOS
    # =====================================================

    @staticmethod
    def _inicio_do_dia(dia: date) -> datetime:
        return datetime.combine(dia, time.min)

    def _casa_expr(self):
        return func.coalesce(func.nullif(func.trim(Fato.casa), ""), self.CASA_SEM_INTERACAO)

    def _filtro_finalizados(self, query):
        return query.filter(Fato.data_hora_fim.isnot(None))

    def _filtro_periodo(self, query, data_inicio: Optional[date], data_fim: Optional[date]):
        if data_inicio and data_fim:
            query = query.filter(
                Fato.data_hora_fim >= self._inicio_do_dia(data_inicio),
                Fato.data_hora_fim < self._inicio_do_dia(data_fim + timedelta(days=1)),
            )
        return query

    def _filtro_casa(self, query, casas: Optional[Sequence[str]]):
        selecionadas = [c for c in (casas or []) if c and c != self.CASA_TODAS]
        if not selecionadas:
            return query

        condicoes = []
        reais = [c for c in selecionadas if c != self.CASA_SEM_INTERACAO]
        if reais:
            condicoes.append(func.trim(Fato.casa).in_(reais))
        if self.CASA_SEM_INTERACAO in selecionadas:
            condicoes.append(or_(func.trim(Fato.casa) == "", Fato.casa.is_(None)))
        return query.filter(or_(*condicoes))

    def _filtros(self, query, data_inicio, data_fim, casas):
        query = self._filtro_finalizados(query)
        query = self._filtro_periodo(query, data_inicio, data_fim)
        return self._filtro_casa(query, casas)

    @staticmethod
    def _linha_para_dict(r) -> Dict:
        return {
            "id": r.id,
            "contato": r.contato,
            "identificador": r.identificador,
            "protocolo": r.protocolo,
            "canal": r.canal,
            "dataHoraInicio": r.data_hora_inicio,
            "dataHoraFim": r.data_hora_fim,
            "tipoCanal": r.tipo_canal,
            "resumoConversa": r.resumo_conversa,
            "casa": r.casa,
        }

    # =====================================================
    # KPIs GERAIS
    # =====================================================

    def get_totais(
        self,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[Sequence[str]] = None,
        hoje: Optional[date] = None,
    ) -> Dict[str, int]:
        """Protocolos distintos no total, hoje, na semana ISO e no mês corrente."""
        hoje = hoje or date.today()
        inicio_hoje = self._inicio_do_dia(hoje)
        inicio_semana = self._inicio_do_dia(hoje - timedelta(days=hoje.weekday()))
        inicio_mes = self._inicio_do_dia(hoje.replace(day=1))
        if hoje.month == 12:
            inicio_prox_mes = self._inicio_do_dia(date(hoje.year + 1, 1, 1))
        else:
            inicio_prox_mes = self._inicio_do_dia(date(hoje.year, hoje.month + 1, 1))

        def _contar_entre(inicio: datetime, fim: datetime):
            return func.count(distinct(case(
                ((Fato.data_hora_fim >= inicio) & (Fato.data_hora_fim < fim), Fato.protocolo),
            )))

        query = self.db.query(
            func.count(distinct(Fato.protocolo)).label("total"),
            _contar_entre(inicio_hoje, inicio_hoje + timedelta(days=1)).label("hoje"),
            _contar_entre(inicio_semana, inicio_semana + timedelta(days=7)).label("semana"),
            _contar_entre(inicio_mes, inicio_prox_mes).label("mes"),
        )
        r = self._filtros(query, data_inicio, data_fim, casas).first()

        if not r:
            return {"total": 0, "hoje": 0, "semana": 0, "mes": 0}
        return {
            "total": int(r.total or 0),
            "hoje": int(r.hoje or 0),
            "semana": int(r.semana or 0),
            "mes": int(r.mes or 0),
        }

    def get_duracao_media(
        self,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[Sequence[str]] = None,
    ) -> float:
        """
        Duração média em minutos (1 casa decimal). Cada atendimento conta
        minutos inteiros truncados, como o TIMESTAMPDIFF(MINUTE) da base legada.
        """
        query = self.db.query(Fato.data_hora_inicio, Fato.data_hora_fim).filter(
            Fato.data_hora_inicio.isnot(None)
        )
        linhas = self._filtros(query, data_inicio, data_fim, casas).all()
        if not linhas:
            return 0.0

        minutos = [int((fim - inicio).total_seconds() / 60) for inicio, fim in linhas]
        return round(sum(minutos) / len(minutos), 1)

    # =====================================================
    # DISTRIBUIÇÕES
    # =====================================================

    def get_por_canal(
        self,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[Sequence[str]] = None,
    ) -> List[Dict]:
        total = func.count(distinct(Fato.protocolo)).label("total")
        query = self.db.query(Fato.canal.label("nome"), total)
        query = self._filtros(query, data_inicio, data_fim, casas)
        query = query.group_by(Fato.canal).order_by(total.desc(), Fato.canal)
        return [{"nome": r.nome, "total": int(r.total)} for r in query.all()]

    def get_por_casa(
        self,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[Sequence[str]] = None,
    ) -> List[Dict]:
        total = func.count(distinct(Fato.protocolo)).label("total")
        query = self.db.query(self._casa_expr().label("nome"), total)
        query = self._filtros(query, data_inicio, data_fim, casas)
        query = (
            query.group_by(literal_column("nome"))
            .order_by(total.desc(), literal_column("nome"))
            .limit(self.LIMITE_RANKING)
        )
        return [{"nome": r.nome, "total": int(r.total)} for r in query.all()]

    def get_por_resumo(
        self,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[Sequence[str]] = None,
    ) -> List[Dict]:
        total = func.count(distinct(Fato.protocolo)).label("total")
        query = self.db.query(Fato.resumo_conversa.label("nome"), total).filter(
            Fato.resumo_conversa.isnot(None),
            Fato.resumo_conversa != "",
        )
        query = self._filtros(query, data_inicio, data_fim, casas)
        query = (
            query.group_by(Fato.resumo_conversa)
            .order_by(total.desc(), Fato.resumo_conversa)
            .limit(self.LIMITE_RANKING)
        )
        return [{"nome": r.nome, "total": int(r.total)} for r in query.all()]

    def get_timeline(
        self,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[Sequence[str]] = None,
        hoje: Optional[date] = None,
    ) -> List[Dict]:
        dia = func.date(Fato.data_hora_fim)
        query = self.db.query(
            dia.label("data"),
            func.count(distinct(Fato.protocolo)).label("total"),
        )
        query = self._filtros(query, data_inicio, data_fim, casas)

        if not (data_inicio and data_fim):
            hoje = hoje or date.today()
            query = query.filter(
                Fato.data_hora_fim >= self._inicio_do_dia(hoje - timedelta(days=self.DIAS_TIMELINE))
            )

        query = query.group_by(dia).order_by(dia)
        return [{"data": str(r.data), "total": int(r.total)} for r in query.all()]

    # =====================================================
    # MÉTRICAS CONSOLIDADAS
    # =====================================================

    def get_estatisticas(
        self,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[Sequence[str]] = None,
        hoje: Optional[date] = None,
    ) -> Dict:
        """Retorna todas as métricas do painel em um único objeto."""
        return {
            "totais": self.get_totais(data_inicio, data_fim, casas, hoje),
            "duracaoMedia": self.get_duracao_media(data_inicio, data_fim, casas),
            "porCanal": self.get_por_canal(data_inicio, data_fim, casas),
            "porCasa": self.get_por_casa(data_inicio, data_fim, casas),
            "porResumo": self.get_por_resumo(data_inicio, data_fim, casas),
            "timeline": self.get_timeline(data_inicio, data_fim, casas, hoje),
        }

    # =====================================================
    # CONSULTAS DE REGISTROS
    # =====================================================

    def get_casas(self) -> List[str]:
        """Casas distintas (vazia/nula aparece como "Falta de Interação")."""
        nome = self._casa_expr().label("nome")
        query = self._filtro_finalizados(self.db.query(nome).distinct()).order_by(literal_column("nome"))
        return [r.nome for r in query.all()]

    def get_recentes(
        self,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        casas: Optional[Sequence[str]] = None,
    ) -> List[Dict]:
        """Último registro (maior id) de cada protocolo, do fim mais recente ao mais antigo."""
        ultimos = self._filtros(
            self.db.query(func.max(Fato.id).label("max_id")),
            data_inicio, data_fim, casas,
        ).group_by(Fato.protocolo).subquery()

        query = (
            self.db.query(Fato)
            .join(ultimos, Fato.id == ultimos.c.max_id)
            .order_by(Fato.data_hora_fim.desc())
        )
        return [self._com_casa_padrao(self._linha_para_dict(r)) for r in query.all()]

    def buscar_protocolo(self, protocolo: str) -> List[Dict]:
        """Registro mais recente do protocolo. Levanta ProtocoloNaoEncontradoError se não existir."""
        r = (
            self.db.query(Fato)
            .filter(Fato.protocolo == protocolo)
            .order_by(Fato.id.desc())
            .first()
        )
        if r is None:
            raise ProtocoloNaoEncontradoError(protocolo)
        return [self._com_casa_padrao(self._linha_para_dict(r))]

    def _com_casa_padrao(self, linha: Dict) -> Dict:
        casa = (linha.get("casa") or "").strip()
        linha["casa"] = casa or self.CASA_SEM_INTERACAO
        return linha
