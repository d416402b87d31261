"""Canned Portuguese replies sent by the assistant."""

from datetime import datetime

from src.core.config import CompanyConfig

APOLOGY = "Desculpe, ocorreu um erro. Tente novamente em alguns instantes."

LLM_UNAVAILABLE = (
    "Desculpe, estou enfrentando dificuldades técnicas. Tente novamente em alguns instantes."
)

NEGATIVE_FEEDBACK_PROMPT = """Entendo! 😊

Não se preocupe, posso te ajudar a encontrar outras opções.

🤔 Me conte um pouco mais sobre o que você está procurando:
• Que tipo de trabalho você gostaria?
• Tem alguma preferência de localização?
• Qual sua experiência profissional?
• Que habilidades você tem?

Assim posso te mostrar vagas mais adequadas ao seu perfil! 🎯"""

MORE_OPTIONS_PROMPT = """Claro! 😊

Vou buscar mais opções para você.

🔍 Pode me dar mais detalhes sobre:
• Que tipo de trabalho você prefere?
• Qual sua experiência?
• Onde você gostaria de trabalhar?
• Que habilidades você tem?

Assim posso encontrar vagas que realmente combinem com você! 🎯"""


def _stamp(now: datetime | None) -> str:
    return (now or datetime.now()).strftime("%d/%m/%Y %H:%M:%S")


def greeting(company: CompanyConfig) -> str:
    return f"""Olá! 👋 Bem-vindo à {company.name}!

Sou o assistente virtual da {company.name} e estou aqui para ajudá-lo!

🤔 Como posso ajudá-lo hoje?

*Digite "empresa" se você representa uma empresa interessada em nossos serviços de RH*

*Digite "candidato" se você está procurando oportunidades de emprego*

*Digite "outros" se você tem outras dúvidas ou assuntos para conversar*

Escolha uma das opções acima e eu direcionarei você da melhor forma! 😊"""


def human_transfer(company: CompanyConfig, *, recruiting: bool = True) -> str:
    """Ask the contact to wait for a human agent."""
    specialist = "especialistas em recrutamento e seleção" if recruiting else "especialistas"
    return f"""Olá! 👋

Obrigado pelo seu contato com a {company.name}!

📞 Um de nossos {specialist} irá atendê-lo em breve.

⏰ Por favor, aguarde um momento enquanto transferimos você para um atendente humano.

Enquanto isso, você pode conhecer mais sobre nossos serviços em: {company.website}

Obrigado pela paciência! 🙏"""


def candidate_onboarding(company: CompanyConfig) -> str:
    return f"""Olá! 👋

Sou o assistente virtual da {company.name} e vou te ajudar a encontrar as melhores oportunidades!

🎯 Para encontrar vagas que realmente combinem com você, preciso conhecer um pouco mais sobre seu perfil.

📝 Pode me contar sobre:
• Seu nome
• Sua experiência profissional (anos ou nível: júnior, pleno, sênior)
• Suas principais habilidades
• Onde você gostaria de trabalhar
• Seu cargo atual (se aplicável)

Exemplo: "Me chamo João, tenho 3 anos de experiência como motorista, tenho CNH categoria D e moro em Lajeado."

Vamos começar? 😊"""


def end_of_conversation(company: CompanyConfig, now: datetime | None = None) -> str:
    """Closing text when the contact ends the chat."""
    return f"""✅ *Atendimento Finalizado*

Obrigado por escolher a {company.name}!

Foi um prazer atendê-lo! 🙏

Se precisar de mais informações no futuro, sinta-se à vontade para enviar uma nova mensagem a qualquer momento.

📞 Nossos canais de contato:
• Website: {company.website}
• Email: {company.email}

Tenha um excelente dia! 😊

---
*Atendimento finalizado pelo usuário em {_stamp(now)}*"""


def inactivity_closing(company: CompanyConfig) -> str:
    return f"""⏰ *Atendimento Finalizado*

Olá! Percebemos que você não interagiu conosco nos últimos minutos.

📞 Se precisar de mais informações, sinta-se à vontade para enviar uma nova mensagem a qualquer momento!

Obrigado por escolher a {company.name}! 🙏

---
*Este atendimento foi finalizado automaticamente por inatividade.*"""


def follow_up(company: CompanyConfig, idle_minutes: int) -> str:
    return f"""⏰ *Ainda está conosco?*

Olá! Percebemos que você não interagiu conosco nos últimos minutos.

🤔 Você ainda deseja conversar com a {company.name}?

📞 Todos os nossos atendentes estão ocupados no momento, mas retornaremos assim que possível!

💬 Se ainda estiver interessado, responda com "sim" ou envie uma nova mensagem.

Obrigado pela paciência! 🙏

---
*Esta mensagem foi enviada automaticamente após {idle_minutes} minutos de inatividade.*"""


def manual_started(agent_id: str, now: datetime | None = None) -> str:
    return f"""👤 *Atendimento Iniciado*

Olá! Meu nome é {agent_id} e vou atendê-lo agora.

Como posso ajudá-lo hoje?

---
*Atendimento iniciado em {_stamp(now)}*"""


def manual_finished(company: CompanyConfig, agent_id: str, now: datetime | None = None) -> str:
    return f"""✅ *Atendimento Finalizado*

Obrigado por escolher a {company.name}!

O atendimento foi finalizado por {agent_id}.

Se precisar de mais informações, sinta-se à vontade para enviar uma nova mensagem a qualquer momento!

Obrigado pela confiança! 🙏

---
*Atendimento finalizado em {_stamp(now)}*"""


def bot_is_back(company: CompanyConfig) -> str:
    return f"""✅ *Atendimento Manual Encerrado*

O atendimento manual foi encerrado e o assistente virtual da {company.name} está de volta!

---
*Sistema reiniciado automaticamente*"""
