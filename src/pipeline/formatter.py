"""Render scored jobs as chat text (WhatsApp-style *bold* markup)."""

from src.core.schemas import CandidateProfile, ScoredJob

NO_JOBS_TEXT = "Nenhuma vaga encontrada que corresponda ao seu perfil no momento."
TOP_MATCH_THRESHOLD = 0.7


def format_job(scored: ScoredJob) -> str:
    job = scored.job
    score = f" ({scored.score * 100:.0f}% compatível)" if scored.score else ""
    tag = "💡 *SUGESTÃO* " if scored.is_suggestion else ""
    return (
        f"{tag}🏢 *{job.title}*{score}\n"
        f"📊 Senioridade: {job.seniority.label}\n"
        f"📍 Localização: {job.location}\n"
        f"📝 Descrição: {job.description}"
    )


def format_jobs_list(jobs: list[ScoredJob]) -> str:
    """Numbered job list with a header; suggestions get an extra footer."""
    if not jobs:
        return NO_JOBS_TEXT

    has_suggestions = any(s.is_suggestion for s in jobs)
    if has_suggestions:
        lines = ["💡 *Sugestões de vagas relacionadas ao seu perfil:*", ""]
    else:
        lines = ["🎯 *Vagas encontradas para você:*", ""]

    for index, scored in enumerate(jobs, start=1):
        lines.append(f"{index}. {format_job(scored)}")
        lines.append("")

    if has_suggestions:
        lines.append(
            "💡 *Estas são sugestões baseadas no seu perfil. "
            "Se nenhuma te interessar, me conte mais sobre suas preferências!*"
        )

    return "\n".join(lines).rstrip()


def compose_candidate_reply(
    jobs: list[ScoredJob],
    profile: CandidateProfile | None,
    registration_link: str,
) -> str:
    """Job list, a personalized preamble, and the call-to-action link."""
    if profile is not None and profile.name:
        greeting = f"Olá {profile.name}! 😊 "
    else:
        greeting = "Perfeito! "

    if jobs:
        top = jobs[0]
        if top.score is not None and top.score > TOP_MATCH_THRESHOLD:
            greeting += (
                "Encontrei algumas vagas que combinam muito com seu perfil! "
                f"A vaga de {top.job.title} parece ser especialmente adequada para você."
            )
        else:
            greeting += "Encontrei algumas oportunidades interessantes!"
    else:
        greeting += "Vou continuar buscando oportunidades que combinem com seu perfil."

    return (
        f"{format_jobs_list(jobs)}\n\n"
        f"{greeting}\n\n"
        "💡 Se essas vagas não forem exatamente o que você está procurando, "
        "me conte mais sobre suas preferências e posso buscar outras opções!\n\n"
        f"📝 Para se candidatar, acesse: {registration_link}"
    )
