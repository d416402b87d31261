"""Keyword tables used by the job match scorer.

Terms are written in Brazilian Portuguese and stored accent-folded (see
fold_text), so the scorer matches them as substrings of folded text.
Catalog titles in PROFESSION_ALTERNATIVES are kept verbatim.
"""

from src.core.schemas import fold_text


def _terms(*terms: str) -> tuple[str, ...]:
    return tuple(dict.fromkeys(fold_text(t) for t in terms))


def _table(table: dict[str, tuple[str, ...]]) -> dict[str, tuple[str, ...]]:
    return {fold_text(key): _terms(*values) for key, values in table.items()}


# Skill category -> terms that count as the same skill in a job description.
SKILL_SYNONYMS: dict[str, tuple[str, ...]] = _table({
    "cnh": ("cnh", "carteira de motorista", "carteira nacional de habilitação", "habilitação", "habilitacao"),
    "caminhão": ("caminhão", "caminhao", "truck", "veículo pesado", "veiculo pesado"),
    "vendas": ("vendas", "vender", "comercial", "atendimento", "prospecção", "prospecção de clientes"),
    "excel": ("excel", "planilhas", "microsoft excel"),
    "word": ("word", "microsoft word", "processador de texto"),
    "javascript": ("javascript", "js", "node.js", "nodejs"),
    "react": ("react", "react.js", "reactjs"),
    "node.js": ("node.js", "nodejs", "node"),
    "administração": ("administração", "administracao", "administrativo", "gestão", "gestao"),
    "logística": ("logística", "logistica", "expedição", "expedicao", "estoque"),
    "mecânica": ("mecânica", "mecanica", "mecânico", "mecanico", "manutenção", "manutencao"),
    "segurança": ("segurança", "seguranca", "prevenção", "prevencao"),
    "atendimento": ("atendimento", "atender", "cliente", "clientes", "suporte"),
    "carros": ("carros", "automóveis", "automoveis", "veículos", "veiculos", "mecânica", "mecanica"),
    "motorista": ("motorista", "dirigir", "cnh", "caminhão", "caminhao", "veículo", "veiculo"),
    "produção": ("produção", "producao", "produzir", "fabricação", "fabricacao"),
    "expedição": ("expedição", "expedicao", "estoque", "logística", "logistica"),
    "ti": ("ti", "tecnologia da informação", "informática", "informatica", "computador", "sistema"),
    "informática": ("informática", "informatica", "ti", "computador", "sistema", "suporte"),
})

# Exact skill -> looser keywords that still suggest the job uses it.
RELATED_KEYWORDS: dict[str, tuple[str, ...]] = _table({
    "motorista": ("dirigir", "cnh", "caminhão", "caminhao", "veículo", "veiculo", "transporte", "entrega", "coleta"),
    "mecânico": ("manutenção", "manutencao", "reparo", "carros", "automóveis", "automoveis", "veículos", "veiculos"),
    "vendas": (
        "comercial", "atendimento", "cliente", "clientes", "prospecção",
        "prospecção de clientes", "negociação", "negociacao",
    ),
    "administrativo": (
        "administração", "administracao", "gestão", "gestao", "organização",
        "organizacao", "controle",
    ),
    "ti": (
        "informática", "informatica", "computador", "sistema", "suporte",
        "tecnologia", "programação", "programacao",
    ),
    "logística": (
        "expedição", "expedicao", "estoque", "armazenagem", "distribuição",
        "distribuicao", "transporte",
    ),
    "produção": ("fabricação", "fabricacao", "produzir", "manufatura", "operar", "equipamentos"),
    "segurança": ("prevenção", "prevencao", "proteção", "protecao", "riscos", "acidentes", "trabalho"),
})

# Job category (found in title or description) -> message terms that ask for it.
MESSAGE_SYNONYMS: dict[str, tuple[str, ...]] = _table({
    "motorista": (
        "motorista", "motorista de caminhão", "motorista de carro", "motorista de van",
        "motorista de ônibus", "motorista de entrega", "motorista de coleta",
        "cnh", "cnh c", "cnh d", "cnh e",
    ),
    "mecânico": (
        "mecânico", "mecanico", "mecânica", "mecanica", "manutenção de veículos",
        "manutencao de veiculos", "reparo de veículos", "reparo de veiculos",
    ),
    "vendedor": ("vendedor", "vendedora", "vendas", "comercial", "atendimento", "prospecção", "prospecção de clientes"),
    "administrativo": (
        "administrativo", "administração", "administracao", "secretária", "secretaria",
        "assistente administrativo", "auxiliar administrativo",
    ),
    "técnico": (
        "técnico", "tecnico", "técnica", "tecnica", "suporte técnico", "suporte tecnico",
        "manutenção", "manutencao",
    ),
    "logística": (
        "logística", "logistica", "expedição", "expedicao", "estoque", "armazenagem",
        "distribuição", "distribuicao",
    ),
    "segurança": (
        "segurança", "seguranca", "segurança do trabalho", "seguranca do trabalho",
        "prevenção", "prevencao",
    ),
    "estagiário": ("estagiário", "estagiario", "estágio", "estagio", "estudante", "universitário", "universitario"),
})

# Profession mentioned by the candidate -> catalog titles worth suggesting.
# Order matters: the first profession found wins.
_PROFESSION_ALTERNATIVES: dict[str, tuple[str, ...]] = {
    "motorista": ("Auxiliar de Expedição", "Assistente de Logística", "Auxiliar de Produção/Expedição"),
    "mecânico": ("Vendedor de Peças", "Auxiliar de Produção/Expedição", "Assistente de Logística"),
    "vendedor": ("Assistente de Vendas", "Atendimento ao Cliente", "Consultor especialista B2B", "Assistente Comercial"),
    "administrativo": ("Estagiário Administrativo", "Assistente de Logística", "Secretária"),
    "técnico": ("Técnico de Informática", "Técnico em Segurança do Trabalho", "Auxiliar de Produção/Expedição"),
    "logística": ("Auxiliar de Expedição", "Assistente de Logística", "Auxiliar de Produção/Expedição"),
    "segurança": ("Técnico em Segurança do Trabalho", "Auxiliar de Produção/Expedição"),
    "estagiário": ("Estagiário Administrativo", "Auxiliar de Expedição", "Auxiliar de Produção/Expedição"),
}
PROFESSION_ALTERNATIVES: dict[str, tuple[str, ...]] = {
    fold_text(profession): titles for profession, titles in _PROFESSION_ALTERNATIVES.items()
}

# Title fragments of entry-level postings offered when nothing else fits.
GENERIC_SUGGESTION_TERMS: tuple[str, ...] = _terms("Assistente", "Auxiliar", "Estagiário")

KNOWN_LOCALITIES: tuple[str, ...] = _terms("lajeado", "estrela", "arroio do meio", "venâncio aires")

REMOTE_TERMS: tuple[str, ...] = _terms("remoto", "home office")

DRIVER_KEYWORDS: tuple[str, ...] = _terms(
    "motorista", "motorista de caminhão", "motorista de carro", "motorista de van",
    "motorista de ônibus", "motorista de entrega", "motorista de coleta",
    "cnh", "cnh c", "cnh d", "cnh e", "carteira de motorista",
    "carteira nacional de habilitação", "habilitação", "habilitacao",
)

# Free-text level words, checked in this order before years of experience.
EXPERIENCE_LEVEL_TERMS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("intern", _terms("estágio", "estagiário")),
    ("junior", _terms("júnior", "iniciante")),
    ("mid", _terms("pleno", "intermediário")),
    ("senior", _terms("sênior", "experiente")),
)
