"""Prompt templates for classification, profile extraction and free chat."""

from src.core.config import CompanyConfig

CLASSIFY_SYSTEM = "Você classifica mensagens de contatos de uma consultoria de RH. Responda com uma única palavra."

CLASSIFY_TEMPLATE = """Analise a seguinte mensagem e classifique o tipo de usuário:

MENSAGEM: "{message}"

CLASSIFICAÇÕES POSSÍVEIS:
- "company": a pessoa representa uma empresa, quer contratar a consultoria ou precisa de serviços de RH, recrutamento ou seleção
- "candidate": a pessoa procura emprego, quer se candidatar, tem interesse em vagas ou quer trabalhar
- "other": outras dúvidas, perguntas, informações ou qualquer assunto não relacionado a contratação de serviços ou busca de emprego

PALAVRAS-CHAVE PARA EMPRESA:
- empresa, contratar, serviços, RH, recrutamento, seleção, funcionários, colaboradores

PALAVRAS-CHAVE PARA CANDIDATO:
- emprego, vaga, candidatar, trabalhar, experiência, currículo, desempregado, oportunidade

PALAVRAS-CHAVE PARA OUTROS ASSUNTOS:
- outros, outras dúvidas, outros assuntos, dúvidas, perguntas, informações, ajuda

Responda apenas com "company", "candidate" ou "other"."""

EXTRACT_SYSTEM = "Você extrai dados profissionais de mensagens de candidatos. Responda APENAS com JSON válido."

EXTRACT_TEMPLATE = """Extraia informações profissionais da seguinte mensagem:

MENSAGEM: "{message}"

Retorne APENAS um objeto JSON, sem texto adicional, com os campos:
{{
  "name": "nome da pessoa",
  "experience": "anos de experiência ou nível (júnior, pleno, sênior)",
  "skills": "habilidades mencionadas, separadas por vírgula",
  "location": "localização ou cidade",
  "current_position": "cargo atual",
  "desired_salary": "pretensão salarial",
  "interests": "áreas de interesse ou preferências mencionadas"
}}

Use null para qualquer informação não mencionada.
Interprete com bom senso: "trabalho com vendas" gera "vendas" como habilidade;
"sou motorista" gera "motorista" como habilidade e como cargo atual."""


def classify_prompt(message: str) -> str:
    return CLASSIFY_TEMPLATE.format(message=message)


def extract_prompt(message: str) -> str:
    return EXTRACT_TEMPLATE.format(message=message)


def conversation_system_prompt(
    company: CompanyConfig,
    *,
    user_type: str | None = None,
    business_hours: bool | None = None,
    job_count: int | None = None,
) -> str:
    """System prompt for free-form replies, with the live context appended."""
    hours = {True: "Sim", False: "Não", None: "desconhecido"}[business_hours]
    jobs = "desconhecido" if job_count is None else str(job_count)
    return f"""Você é um assistente virtual especializado em recrutamento e seleção da {company.name}.

ESTILO:
- Seja natural, caloroso e empático, sem soar robótico
- Use emojis com moderação
- Use o nome da pessoa quando disponível

FUNÇÕES:
1. Empresas: não processe vagas; informe que um atendente humano fará o contato.
2. Candidatos: colete informações de forma conversacional e indique o cadastro em {company.registration_link}

CONTEXTO ATUAL:
- Tipo de usuário: {user_type or "não identificado"}
- Horário comercial: {hours}
- Vagas disponíveis: {jobs}

INFORMAÇÕES DA EMPRESA:
- Nome: {company.name}
- Website: {company.website}
- Email: {company.email}

Responda sempre em português brasileiro."""


def render_transcript(messages: list[dict[str, str]]) -> str:
    """Flatten chat history into a single prompt for single-turn providers."""
    speakers = {"user": "Contato", "assistant": "Assistente", "agent": "Assistente"}
    lines = [f"{speakers.get(m.get('role', 'user'), 'Contato')}: {m.get('content', '')}" for m in messages]
    lines.append("Assistente:")
    return "\n".join(lines)
