from core.llm import get_model
from core.settings import settings

__all__ = ["settings", "get_model"]
