"""
src/app.py

Local chat UI. Each message is answered on its own; the chat history shown
on screen is not sent back to the model.
"""


import logging
from functools import lru_cache

import gradio as gr

from config import DOMAIN_DESCRIPTION, configure_logging
from orchestrator.errors import AssistantError
from orchestrator.prompts import SYSTEM_TEMPLATE
from orchestrator.router import Orchestrator, build_orchestrator


logger = logging.getLogger(__name__)

APP_TITLE = "Grand Old RAG: Expert AI Chat"
APP_DESC = (
    f"Ask about {DOMAIN_DESCRIPTION}. "
    "The assistant writes SELECT queries against the database and answers from the results."
)
EXAMPLES = [
    "List the top 3 teams by wins",
    "Which player has kicked the most goals?",
]


@lru_cache(maxsize=1)
def _orchestrator() -> Orchestrator:

    return build_orchestrator()


async def respond(message: str, history) -> str:
    """Chat callback: final answer text, or the error as a reply."""

    if not (message or "").strip():
        return "Please type a question."

    try:
        return await _orchestrator().handle(message)
    except (AssistantError, FileNotFoundError) as e:
        logger.error("Chat request failed: %s", e)
        return f"Error processing your request: {e}"


def app():
    with gr.Blocks(title=APP_TITLE) as demo:
        gr.Markdown(f"# {APP_TITLE}")
        gr.Markdown(APP_DESC)

        gr.ChatInterface(fn=respond, examples=EXAMPLES)

        with gr.Accordion("About", open=False):
            gr.Markdown("The assistant's system prompt (the live schema is filled in per question):")
            gr.Code(value=SYSTEM_TEMPLATE, language=None, interactive=False)

    return demo


if __name__ == "__main__":

    configure_logging()
    app().launch()

# EOF
