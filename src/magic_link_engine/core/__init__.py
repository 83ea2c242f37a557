from .config import settings
from .security import SecurityUtils, action_token_signer

__all__ = ["settings", "SecurityUtils", "action_token_signer"]
