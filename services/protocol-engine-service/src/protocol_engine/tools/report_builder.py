"""Protocol report builder.

Lays out the printable report of an evaluation as an ordered list of
sections. Rasterising the sections (PDF, print CSS) is the renderer's job;
render_text() gives a plain-text rendering for previews and e-mail.

Section order:
    header, patient_id, case_summary, resin_recommendation, protocol_table,
    alternative, checklist, cementation, alerts_warnings, ideal_resin,
    confidence, signature, footer

Optional sections are omitted when they have nothing to show.
"""

from __future__ import annotations

from typing import Any

from protocol_engine.schemas.protocol import CementationStep, ProtocolComputed
from protocol_engine.schemas.report import ProtocolReport, ReportData, ReportSection
from protocol_engine.tools.confidence_config import get_confidence_config
from protocol_engine.tools.treatment_config import PORCELAIN_TREATMENT_TYPE

SECTION_ORDER: tuple[str, ...] = (
    "header",
    "patient_id",
    "case_summary",
    "resin_recommendation",
    "protocol_table",
    "alternative",
    "checklist",
    "cementation",
    "alerts_warnings",
    "ideal_resin",
    "confidence",
    "signature",
    "footer",
)

BRAND_NAME = "ToSmile.ai"
REPORT_SUBTITLE = "Protocolo de Restauracao Estetica"
AI_DISCLAIMER = (
    "Este planejamento foi gerado por Inteligencia Artificial e serve como "
    "ferramenta de apoio a decisao clinica. Nao substitui uma avaliacao clinica "
    "criteriosa realizada por Cirurgiao-Dentista."
)

_BULLET = "•"


def report_data_from_computed(computed: ProtocolComputed, **case: Any) -> ReportData:
    """Combine a resolved protocol with case metadata."""
    return ReportData(
        treatment_type=computed.treatment_type,
        resin=computed.resin,
        layers=computed.layers,
        alternative=computed.protocol_alternative,
        checklist=computed.checklist,
        alerts=computed.alerts,
        warnings=computed.warnings,
        confidence=computed.confidence,
        cementation_protocol=computed.cementation_protocol,
        **case,
    )


def _header(data: ReportData) -> ReportSection:
    title = data.clinic_name or BRAND_NAME
    subtitle = f"{BRAND_NAME} - {REPORT_SUBTITLE}" if data.clinic_name else REPORT_SUBTITLE
    lines = [subtitle, data.created_at.strftime("%d/%m/%Y")]
    if data.dentist_name:
        lines.append(data.dentist_name)
    if data.dentist_cro:
        lines.append(f"CRO: {data.dentist_cro}")
    return ReportSection(key="header", title=title, lines=lines)


def _patient_id(data: ReportData) -> ReportSection | None:
    if not data.patient_name:
        return None
    return ReportSection(key="patient_id", title="Paciente", lines=[data.patient_name])


def _case_summary(data: ReportData) -> ReportSection:
    lines = [
        f"Idade: {data.patient_age} anos",
        f"Dente: {data.tooth}",
        f"Regiao: {data.region}",
        f"Classe: {data.cavity_class}",
        f"Tamanho: {data.restoration_size}",
        f"Cor: {data.tooth_color}",
        f"Nivel estetico: {data.aesthetic_level}",
    ]
    badges = [
        label
        for label, flag in (
            ("Bruxismo", data.bruxism),
            ("Estratificacao", data.stratification_needed),
            ("No Estoque", data.is_from_inventory),
        )
        if flag
    ]
    if badges:
        lines.append(" | ".join(badges))
    return ReportSection(key="case_summary", title="RESUMO DO CASO", lines=lines)


def _resin_recommendation(data: ReportData) -> ReportSection | None:
    resin = data.resin
    if resin is None:
        return None
    lines = [
        f"{resin.name} ({resin.manufacturer})",
        f"Tipo: {resin.type}  {_BULLET}  Opacidade: {resin.opacity}  {_BULLET}  "
        f"Resistencia: {resin.resistance}",
        f"Polimento: {resin.polishing}  {_BULLET}  Estetica: {resin.aesthetics}",
    ]
    if data.recommendation_text:
        lines.append(f"Justificativa da IA: {data.recommendation_text}")
    return ReportSection(key="resin_recommendation", title="RESINA RECOMENDADA", lines=lines)


def _protocol_table(data: ReportData) -> ReportSection | None:
    if not data.layers:
        return None
    lines = ["Camada | Resina | Cor | Espessura | Tecnica"]
    for layer in data.layers:
        lines.append(
            " | ".join(
                [
                    f"{layer.order}. {layer.name}",
                    layer.resin_brand or "-",
                    layer.shade or "-",
                    layer.thickness or "-",
                    layer.technique or "-",
                ]
            )
        )
    return ReportSection(key="protocol_table", title="PROTOCOLO DE CAMADAS", lines=lines)


def _alternative(data: ReportData) -> ReportSection | None:
    alt = data.alternative
    if alt is None:
        return None
    return ReportSection(
        key="alternative",
        title="ALTERNATIVA SIMPLIFICADA",
        lines=[
            f"{alt.resin} - {alt.shade}",
            f"Tecnica: {alt.technique}",
            f"Trade-off: {alt.tradeoff}",
        ],
    )


def _checklist(data: ReportData) -> ReportSection | None:
    if not data.checklist:
        return None
    lines = [f"[ ] {i}. {item}" for i, item in enumerate(data.checklist, start=1)]
    return ReportSection(key="checklist", title="PASSO A PASSO", lines=lines)


def _ordered(steps: list[CementationStep]) -> list[CementationStep]:
    return sorted(steps, key=lambda s: s.order)


def _step_with_material(step: CementationStep) -> str:
    detail = f"{step.material} - {step.time}" if step.time else step.material
    return f"{step.order}. {step.step} ({detail})"


def _cementation(data: ReportData) -> ReportSection | None:
    protocol = data.cementation_protocol
    if data.treatment_type != PORCELAIN_TREATMENT_TYPE or protocol is None:
        return None

    lines: list[str] = []
    if protocol.ceramic_treatment:
        lines.append("Tratamento da Ceramica")
        lines.extend(_step_with_material(s) for s in _ordered(protocol.ceramic_treatment))
    if protocol.tooth_treatment:
        lines.append("Tratamento do Dente")
        lines.extend(_step_with_material(s) for s in _ordered(protocol.tooth_treatment))
    if protocol.cementation is not None:
        details = protocol.cementation
        lines.extend(
            [
                "Cimentacao",
                f"Cimento: {details.cement_brand}",
                f"Cor: {details.shade}",
                f"Fotopolimerizacao: {details.light_curing_time}",
                f"Tipo: {details.cement_type}",
            ]
        )
    if protocol.finishing:
        lines.append("Acabamento e Polimento")
        lines.extend(
            f"{s.order}. {s.step} - {s.material}" for s in _ordered(protocol.finishing)
        )
    if protocol.post_operative:
        lines.append("Orientacoes Pos-operatorias")
        lines.extend(f"{_BULLET} {item}" for item in protocol.post_operative)

    return ReportSection(
        key="cementation", title="PROTOCOLO DE CIMENTACAO DE FACETAS", lines=lines
    )


def _alerts_warnings(data: ReportData) -> ReportSection | None:
    if not data.alerts and not data.warnings:
        return None
    lines: list[str] = []
    if data.alerts:
        lines.append("ALERTAS")
        lines.extend(f"{_BULLET} {a}" for a in data.alerts)
    if data.warnings:
        lines.append("O QUE NAO FAZER")
        lines.extend(f"{_BULLET} {w}" for w in data.warnings)
    return ReportSection(key="alerts_warnings", title="ALERTAS E CUIDADOS", lines=lines)


def _ideal_resin(data: ReportData) -> ReportSection | None:
    ideal = data.ideal_resin
    if ideal is None or data.resin is None or ideal.name == data.resin.name:
        return None
    lines = [f"{ideal.name} ({ideal.manufacturer})"]
    if data.ideal_reason:
        lines.append(data.ideal_reason)
    return ReportSection(key="ideal_resin", title="OPCAO IDEAL (fora do estoque)", lines=lines)


def _confidence(data: ReportData) -> ReportSection | None:
    if not data.confidence:
        return None
    config = get_confidence_config(data.confidence)
    return ReportSection(
        key="confidence", title="CONFIANCA", lines=[f"Confianca: {config.pdf_label}"]
    )


def _signature(data: ReportData) -> ReportSection:
    lines = ["Assinatura do Profissional", "Data de Execucao"]
    if data.dentist_name:
        lines.append(data.dentist_name)
    return ReportSection(key="signature", title="VALIDACAO PROFISSIONAL", lines=lines)


def _footer(data: ReportData) -> ReportSection:
    return ReportSection(key="footer", title="", lines=[AI_DISCLAIMER, f"Gerado por {BRAND_NAME}"])


_SECTION_BUILDERS = (
    _header,
    _patient_id,
    _case_summary,
    _resin_recommendation,
    _protocol_table,
    _alternative,
    _checklist,
    _cementation,
    _alerts_warnings,
    _ideal_resin,
    _confidence,
    _signature,
    _footer,
)


def build_report(data: ReportData) -> ProtocolReport:
    """Lay out the report sections for one evaluation.

    Args:
        data: Case metadata and resolved protocol fields.

    Returns:
        ProtocolReport with sections in SECTION_ORDER, optional ones
        omitted when empty.
    """
    sections = [s for s in (build(data) for build in _SECTION_BUILDERS) if s is not None]
    return ProtocolReport(sections=sections)


def render_text(report: ProtocolReport) -> str:
    """Render report sections as plain text, one blank line between sections."""
    blocks = []
    for section in report.sections:
        body = [section.title] if section.title else []
        body.extend(section.lines)
        blocks.append("\n".join(body))
    return "\n\n".join(blocks) + "\n"
