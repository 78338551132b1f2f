from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from routine_tracking.domain.constants import (
    LOG_DOWNTIME,
    LOG_SCRAP,
    STATUS_COMPLETED,
    STATUS_MISSED,
)
from routine_tracking.domain.models import OperationalLog, TaskCompletion

RECENT_LOGS_LIMIT = 5
DEFAULT_LANGUAGE = "pt"

PROMPT_TEMPLATES = {
    "pt": (
        "Atue como um Especialista Sênior em Gestão Industrial e Melhoria Contínua.\n"
        "Analise os seguintes dados da fábrica e gere um Plano de Ação conciso e estratégico "
        "em formato Markdown.\n"
        "Responda em PORTUGUÊS.\n\n"
        "Gere:\n"
        "1. Análise Breve da Situação (Identifique gargalos ou problemas de disciplina).\n"
        "2. 3 Sugestões Práticas para melhoria imediata.\n"
        "3. Um Plano de Ação estruturado para a próxima semana."
    ),
    "en": (
        "Act as a Senior Industrial Management and Continuous Improvement Specialist.\n"
        "Analyze the following factory data and generate a concise and strategic Action Plan "
        "in Markdown format.\n"
        "Respond in ENGLISH.\n\n"
        "Generate:\n"
        "1. Brief Situation Analysis (Identify bottlenecks or discipline issues).\n"
        "2. 3 Practical Suggestions for immediate improvement.\n"
        "3. A structured Action Plan for the next week."
    ),
    "es": (
        "Actúe como un Especialista Senior en Gestión Industrial y Mejora Continua.\n"
        "Analice los siguientes datos de la fábrica y genere un Plan de Acción conciso y "
        "estratégico en formato Markdown.\n"
        "Responda en ESPAÑOL.\n\n"
        "Genere:\n"
        "1. Breve Análisis de la Situación (Identifique cuellos de botella o problemas de "
        "disciplina).\n"
        "2. 3 Sugerencias Prácticas para la mejora inmediata.\n"
        "3. Un Plan de Acción estructurado para la próxima semana."
    ),
}


@dataclass(frozen=True)
class InsightCounters:
    scrap_total: float
    downtime_total: float
    completed_count: int
    missed_count: int
    recent_logs: list[str]


def _format_value(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _format_log_line(log: OperationalLog) -> str:
    return f"[{log.kind}] {log.description} (Value: {_format_value(log.value)})"


def build_insight_counters(
    logs: Iterable[OperationalLog],
    completions: Iterable[TaskCompletion],
) -> InsightCounters:
    logs = list(logs)
    completions = list(completions)
    recent = sorted(logs, key=lambda log: log.timestamp)[-RECENT_LOGS_LIMIT:]
    return InsightCounters(
        scrap_total=sum(log.value for log in logs if log.kind == LOG_SCRAP),
        downtime_total=sum(log.value for log in logs if log.kind == LOG_DOWNTIME),
        completed_count=sum(1 for c in completions if c.status == STATUS_COMPLETED),
        missed_count=sum(1 for c in completions if c.status == STATUS_MISSED),
        recent_logs=[_format_log_line(log) for log in recent],
    )


def build_prompt(counters: InsightCounters, language: str = DEFAULT_LANGUAGE) -> str:
    base_prompt = PROMPT_TEMPLATES.get(language) or PROMPT_TEMPLATES[DEFAULT_LANGUAGE]
    recent_lines = "\n".join(f"- {line}" for line in counters.recent_logs) or "- (none)"
    lines = [
        base_prompt,
        "",
        "DATA / DADOS / DATOS:",
        f"- Scrap/Refugo: {_format_value(counters.scrap_total)}",
        f"- Downtime/Parada: {_format_value(counters.downtime_total)}",
        f"- Tasks Completed/Tarefas Feitas: {counters.completed_count}",
        f"- Tasks Missed/Tarefas Perdidas: {counters.missed_count}",
        "",
        "RECENT LOGS / OCORRÊNCIAS:",
        recent_lines,
        "",
        "Mantenha o tom profissional e direto. / Keep professional tone. / "
        "Mantenga el tono profesional.",
    ]
    return "\n".join(lines)
