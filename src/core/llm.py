from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_google_genai import ChatGoogleGenerativeAI

from core.settings import settings

FAKE_MODEL = "fake"


def get_model(model_name: str) -> BaseChatModel:
    """
    Build the chat model for a configured model name.

    Names starting with "gemini" go to Google Generative AI, names starting
    with "claude" go to Anthropic, and "fake" returns a canned offline model
    for local development.

    A new client is built on every call. Each Streamlit run drives its own
    event loop, and provider async clients must not outlive the loop they
    were created on.

    Raises:
        ValueError: If the model name does not match a known provider
    """
    if model_name == FAKE_MODEL:
        return FakeListChatModel(responses=['[{"title": "Review today\'s plan"}]'])

    if model_name.startswith("gemini"):
        kwargs = {}
        if settings.GOOGLE_API_KEY:
            kwargs["google_api_key"] = settings.GOOGLE_API_KEY.get_secret_value()
        return ChatGoogleGenerativeAI(model=model_name, temperature=0.5, **kwargs)

    if model_name.startswith("claude"):
        kwargs = {}
        if settings.ANTHROPIC_API_KEY:
            kwargs["api_key"] = settings.ANTHROPIC_API_KEY.get_secret_value()
        return ChatAnthropic(model=model_name, temperature=0.5, **kwargs)

    raise ValueError(f"Unsupported model: {model_name}")
