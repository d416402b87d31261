"""Keyword detectors run before (or instead of) the LLM.

Each predicate is a substring check of the message against a fixed
phrase list. Both sides are lower-cased and accent-folded, so "nao quero"
matches "não quero".
"""

import re
from enum import Enum

from src.core.schemas import CandidateProfile, Classification, fold_text
from src.pipeline.vocabulary import DRIVER_KEYWORDS


def _folded(phrases: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(fold_text(p) for p in phrases)


NEGATIVE_KEYWORDS = _folded((
    "não quero", "não gosto", "não me interessa", "não serve", "não combina",
    "não é isso", "não é o que procuro", "não é adequado", "não é ideal",
    "não atende", "não satisfaz", "não é o que preciso", "não é o que busco",
))

MORE_KEYWORDS = _folded((
    "mais vagas", "outras vagas", "mais opções", "outras opções", "mais oportunidades",
    "tem mais", "tem outras", "mostre mais", "outras possibilidades", "mais alternativas",
))

DIFFERENT_KEYWORDS = _folded((
    "diferente", "outro tipo", "outra área", "outro setor", "outro ramo",
    "algo diferente", "outro tipo de trabalho", "outra área de atuação",
))

ATTENDANT_KEYWORDS = _folded((
    "quero conversar com uma atendente", "quero falar com uma atendente",
    "preciso conversar com uma atendente", "preciso falar com uma atendente",
    "quero falar com alguém", "quero conversar com alguém",
    "preciso falar com alguém", "preciso conversar com alguém",
    "atendimento humano", "atendimento pessoal",
    "falar com uma pessoa", "conversar com uma pessoa",
    "atendimento direto", "falar diretamente", "conversar diretamente",
))

END_KEYWORDS = _folded((
    "encerrar", "finalizar", "terminar", "acabar", "fim", "sair",
    "sair do chat", "sair da conversa", "sair do atendimento",
    "encerrar chat", "encerrar conversa", "encerrar atendimento",
    "finalizar chat", "finalizar conversa", "finalizar atendimento",
    "terminar chat", "terminar conversa", "terminar atendimento",
    "tchau", "adeus", "até logo", "até mais",
    "obrigado", "obrigada", "valeu", "ok", "okay", "beleza", "blz",
    "entendi", "compreendi", "perfeito", "ótimo", "excelente", "muito bem",
    "tudo bem", "td bem", "tudo certo", "certo", "sim", "claro",
    "entendido", "combinado",
))

# Substring cues for a contact that has not picked a path yet.
# Checked in this order; the first hit wins.
CLASSIFICATION_KEYWORDS: tuple[tuple[Classification, tuple[str, ...]], ...] = (
    (Classification.CANDIDATE, _folded((
        "candidato", "candidata", "procuro emprego", "procurando emprego",
        "procuro vaga", "procurando vaga", "quero uma vaga",
    ))),
    (Classification.COMPANY, _folded((
        "empresa", "serviços de rh", "quero contratar", "precisamos contratar",
    ))),
    (Classification.OTHER, _folded((
        "outros", "outras dúvidas", "outros assuntos",
    ))),
)

# Whole-message menu answers that switch an already classified contact.
CLASSIFICATION_OPTIONS: dict[str, Classification] = {
    fold_text(option): classification
    for classification, options in (
        (Classification.COMPANY, ("empresa", "sou empresa", "represento uma empresa")),
        (Classification.CANDIDATE, ("candidato", "candidata", "sou candidato", "sou candidata")),
        (Classification.OTHER, ("outros", "outro", "outros assuntos", "outras dúvidas")),
    )
    for option in options
}

_DRIVER_KEYWORDS = _folded(DRIVER_KEYWORDS)
_PUNCTUATION = re.compile(r"[^\w\s]")


class CandidateIntent(str, Enum):
    NEGATIVE = "negative"
    MORE = "more"
    DIFFERENT = "different"
    SEARCH = "search"


def _contains_any(message: str, phrases: tuple[str, ...]) -> bool:
    text = fold_text(message)
    return any(phrase in text for phrase in phrases)


def is_negative_response(message: str) -> bool:
    return _contains_any(message, NEGATIVE_KEYWORDS)


def is_asking_for_more(message: str) -> bool:
    return _contains_any(message, MORE_KEYWORDS)


def is_asking_for_different(message: str) -> bool:
    return _contains_any(message, DIFFERENT_KEYWORDS)


def wants_attendant(message: str) -> bool:
    return _contains_any(message, ATTENDANT_KEYWORDS)


def wants_to_end(message: str) -> bool:
    return _contains_any(message, END_KEYWORDS)


def detect_explicit_classification(message: str, exact: bool = False) -> Classification | None:
    """Return the classification the contact explicitly asked for, if any.

    Args:
        message: Raw inbound text.
        exact: When True, only a whole-message menu answer counts
            ("empresa", "sou candidato", ...). Used once a contact is
            already classified so ordinary sentences don't flip it.
    """
    if exact:
        normalized = " ".join(_PUNCTUATION.sub(" ", fold_text(message)).split())
        return CLASSIFICATION_OPTIONS.get(normalized)

    text = fold_text(message)
    for classification, keywords in CLASSIFICATION_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return classification
    return None


def candidate_intent(message: str) -> CandidateIntent:
    """Route a candidate message: clarifying prompt or a new job search."""
    if is_negative_response(message):
        return CandidateIntent.NEGATIVE
    if is_asking_for_more(message):
        return CandidateIntent.MORE
    if is_asking_for_different(message):
        return CandidateIntent.DIFFERENT
    return CandidateIntent.SEARCH


def is_driver_candidate(profile: CandidateProfile | None, message: str = "") -> bool:
    """True when the message or profile mentions driving or a driver's license."""
    texts = [message]
    if profile is not None:
        texts += [profile.skills or "", profile.current_position or "", profile.experience or ""]
    return any(_contains_any(text, _DRIVER_KEYWORDS) for text in texts)
