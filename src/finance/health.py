"""
Financial health score for a condominium.

The score starts at 50 and moves with two indicators computed over the last
12 months of approved transactions:

- operating margin: (income - expenses) / income, in percent
- liquidity: current balance / average monthly expense
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone

BASE_SCORE = 50
MONTHS = 12

COLOR_GREEN = "#10B981"
COLOR_AMBER = "#F59E0B"
COLOR_RED = "#EF4444"


@dataclass
class FinancialHealth:
    """Indicators returned by the health check (keys match the dashboard)."""

    saldo_atual: float
    total_receitas: float
    total_despesas: float
    resultado: float
    health_score: int
    classification: str
    color: str
    margem_operacional: float
    indice_liquidez: float

    def to_dict(self) -> dict:
        return asdict(self)


def one_year_before(moment: datetime) -> datetime:
    """Same calendar day one year earlier (Feb 29 maps to Feb 28)."""
    try:
        return moment.replace(year=moment.year - 1)
    except ValueError:
        return moment.replace(year=moment.year - 1, day=28)


def window_start(now: datetime | None = None) -> datetime:
    """Start of the 12-month window used by the health check."""
    return one_year_before(now or datetime.now(timezone.utc))


def classify(score: int) -> tuple[str, str]:
    """Label and color for a score."""
    if score < 40:
        return "Crítico", COLOR_RED
    if score < 60:
        return "Atenção", COLOR_AMBER
    if score >= 80:
        return "Excelente", COLOR_GREEN
    return "Saudável", COLOR_GREEN


def score_indicators(margem_operacional: float, indice_liquidez: float) -> int:
    score = BASE_SCORE

    if margem_operacional > 5:
        score += 20
    elif margem_operacional < 0:
        score -= 30

    if indice_liquidez > 3:
        score += 20
    elif indice_liquidez < 1:
        score -= 20

    return score


def compute_health(saldo_atual: float | None, amounts: list[float]) -> FinancialHealth:
    """
    Compute the health report.

    Args:
        saldo_atual: Current balance (None counts as 0)
        amounts: Signed amounts of approved transactions in the window
            (income positive, expenses negative)

    Returns:
        FinancialHealth with totals, indicators, score and classification
    """
    saldo = saldo_atual or 0.0

    receitas = sum(a for a in amounts if a > 0)
    despesas = abs(sum(a for a in amounts if a < 0))
    resultado = receitas - despesas

    margem = (resultado / receitas) * 100 if receitas > 0 else 0.0
    despesa_media_mensal = despesas / MONTHS
    liquidez = saldo / despesa_media_mensal if despesa_media_mensal > 0 else 0.0

    score = score_indicators(margem, liquidez)
    classification, color = classify(score)

    return FinancialHealth(
        saldo_atual=saldo,
        total_receitas=receitas,
        total_despesas=despesas,
        resultado=resultado,
        health_score=score,
        classification=classification,
        color=color,
        margem_operacional=margem,
        indice_liquidez=liquidez,
    )
