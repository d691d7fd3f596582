from .config import AgentConfig, ApiConfig, ConfirmationConfig, load_agent_config

__all__ = ["AgentConfig", "ApiConfig", "ConfirmationConfig", "load_agent_config"]
