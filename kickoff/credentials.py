"""API key selection gate."""
import logging
from typing import Optional

import click

logger = logging.getLogger(__name__)


def ensure_authorized(capability: Optional[object]) -> bool:
    """Ask the capability whether a key is selected; no capability means yes."""
    if capability is None:
        return True
    return bool(capability.has_selected_api_key())


class PromptKeySelector:
    """Key selector for terminal sessions.

    Reports whether the client holds a key, and asks for one on the terminal
    when opened. The key lives only for this session.
    """

    def __init__(self, client):
        self.client = client

    def has_selected_api_key(self) -> bool:
        return bool(self.client.api_key)

    def open_select_key(self) -> None:
        key = click.prompt("Gemini API key", hide_input=True, default="", show_default=False)
        if key.strip():
            self.client.api_key = key.strip()
            logger.info("API key updated for this session")
        else:
            logger.warning("No API key entered")
